"""
Pydantic Schemas — Request & Response models for API validation.
"""
from datetime import date, datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from members_api.models.member import MembershipType


# ──────────────── Registration ────────────────

class RegistrationRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)
    school: str = Field(..., min_length=1, max_length=128)
    award_type: str = Field(..., min_length=1, max_length=64)
    award_year: int = Field(..., ge=1900, le=2100)
    phone_number: str = Field(..., min_length=9, max_length=16, description="07XXXXXXXX or 2547XXXXXXXX")
    amount: float = Field(..., description="Must match a membership plan amount")


class RegistrationResponse(BaseModel):
    message: str = "STK push sent. Complete the payment on your phone."
    checkout_request_id: str = Field(..., alias="checkoutRequestID")
    payment_id: int = Field(..., alias="paymentId")

    class Config:
        populate_by_name = True


# ──────────────── M-Pesa Callback ────────────────

class CallbackItem(BaseModel):
    Name: str
    Value: Optional[Any] = None  # Balance is sent without a Value


class CallbackItems(BaseModel):
    Item: List[CallbackItem] = []


class STKCallback(BaseModel):
    MerchantRequestID: Optional[str] = None
    CheckoutRequestID: str
    ResultCode: int
    ResultDesc: str = ""
    CallbackMetadata: Optional[CallbackItems] = None

    def metadata_value(self, name: str) -> Optional[Any]:
        if not self.CallbackMetadata:
            return None
        for item in self.CallbackMetadata.Item:
            if item.Name == name:
                return item.Value
        return None


class CallbackBody(BaseModel):
    stkCallback: STKCallback


class CallbackEnvelope(BaseModel):
    Body: CallbackBody


class CallbackAck(BaseModel):
    ResultCode: int = 0
    ResultDesc: str = "Accepted"


# ──────────────── Members ────────────────

class MemberCheckRequest(BaseModel):
    name: str = Field(..., min_length=1)


class MemberCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=128)
    school: Optional[str] = None
    award_type: str = Field(..., min_length=1, max_length=64)
    award_year: int = Field(..., ge=1900, le=2100)
    membership_type: MembershipType
    paid: bool = True
    expires_at: Optional[date] = None


class MemberResponse(BaseModel):
    id: int
    full_name: str
    school: Optional[str] = None
    award_type: str
    award_year: int
    membership_type: MembershipType
    paid: bool
    expires_at: Optional[date] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ──────────────── Gateway ────────────────

class TokenResponse(BaseModel):
    access_token: str


# ──────────────── Generic ────────────────

class HealthResponse(BaseModel):
    status: str
    database: str
    mpesa_env: str
    version: str
    uptime_seconds: float


class ErrorResponse(BaseModel):
    error: str
    details: Optional[Any] = None
