"""
Registration Routes — Start a membership payment via M-Pesa STK push.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from members_api.database import get_db
from members_api.dependencies import get_registration_service
from members_api.schemas.schemas import RegistrationRequest, RegistrationResponse
from members_api.services.registration_service import RegistrationService
from members_api.utils.rate_limiter import register_rate_limit

router = APIRouter(prefix="/api", tags=["Registration"])


@router.post("/register", response_model=RegistrationResponse)
def register(
    payload: RegistrationRequest,
    db: Session = Depends(get_db),
    service: RegistrationService = Depends(get_registration_service),
    _throttle: bool = Depends(register_rate_limit),
):
    """Record a pending payment request and prompt the payer's phone."""
    payment_request = service.register(db, payload)

    return RegistrationResponse(
        checkout_request_id=payment_request.checkout_request_id,
        payment_id=payment_request.id,
    )
