"""
Worker repository: the worker directory consumed by the duty scheduler.
"""

from typing import List

from sqlalchemy.orm import Session, selectinload

from feelin_pay.models.worker import Worker


class WorkerRepository:
    """Repository for worker and schedule data access."""

    def __init__(self, db_session: Session):
        self.db = db_session

    def list_active_with_schedules(self, owner_id: str) -> List[Worker]:
        """
        Active workers for an owner with shifts and breaks eagerly loaded.

        Ordered by creation time, then id, so the on-duty phone list is stable.
        """
        return (
            self.db.query(Worker)
            .options(selectinload(Worker.shifts), selectinload(Worker.breaks))
            .filter(
                Worker.owner_id == owner_id,
                Worker.is_active.is_(True),
            )
            .order_by(Worker.created_at.asc(), Worker.id.asc())
            .all()
        )
