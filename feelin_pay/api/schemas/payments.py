"""
Pydantic schemas for the payment events API.

Field names on the wire are camelCase, matching the mobile bridge.
"""

from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class PaymentEventRequest(BaseModel):
    """A payment notification captured on the owner's phone."""

    model_config = ConfigDict(populate_by_name=True)

    owner_id: str = Field(..., alias="ownerId", min_length=1)
    payer_name: str = Field(..., alias="payerName", min_length=1, max_length=255)
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    security_code: Optional[str] = Field(None, alias="securityCode", max_length=32)
    method: Literal["yape", "plin"] = "yape"
    delegated_credential_token: Optional[str] = Field(None, alias="delegatedCredentialToken")

    @field_validator("payer_name")
    @classmethod
    def payer_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("payerName must not be blank")
        return v.strip()

    @field_validator("security_code")
    @classmethod
    def strip_security_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return v.strip() or None

    @model_validator(mode="after")
    def security_code_required_for_yape(self) -> "PaymentEventRequest":
        if self.method != "plin" and not self.security_code:
            raise ValueError("securityCode is required unless method is plin")
        return self


class PaymentResultData(BaseModel):
    """Outcome flags for one processed payment."""

    model_config = ConfigDict(populate_by_name=True)

    payer_name: str = Field(..., alias="payerName")
    amount: float
    security_code: Optional[str] = Field(None, alias="securityCode")
    ledger_recorded: bool = Field(..., alias="ledgerRecorded")
    ledger_error: Optional[str] = Field(None, alias="ledgerError")
    notified: bool
    on_duty_phone_numbers: List[str] = Field(default_factory=list, alias="onDutyPhoneNumbers")


class PaymentEventResponse(BaseModel):
    success: bool = True
    data: PaymentResultData
