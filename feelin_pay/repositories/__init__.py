"""Repository layer. Every owner-owned query is scoped by owner_id."""

from feelin_pay.repositories.owner_repository import OwnerRepository
from feelin_pay.repositories.membership_repository import MembershipRepository
from feelin_pay.repositories.worker_repository import WorkerRepository

__all__ = [
    "OwnerRepository",
    "MembershipRepository",
    "WorkerRepository",
]
