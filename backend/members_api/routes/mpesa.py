"""
M-Pesa Routes — STK callback receiver and token debug endpoint.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from members_api.database import get_db
from members_api.dependencies import get_gateway, get_reconciliation_service
from members_api.schemas.schemas import CallbackAck, CallbackEnvelope, TokenResponse
from members_api.services.gateway_client import DarajaClient
from members_api.services.reconciliation_service import ReconciliationService

router = APIRouter(prefix="/api/mpesa", tags=["M-Pesa"])


@router.post("/callback", response_model=CallbackAck)
def stk_callback(
    payload: CallbackEnvelope,
    db: Session = Depends(get_db),
    service: ReconciliationService = Depends(get_reconciliation_service),
):
    """Receive Safaricom's STK result and reconcile it.

    Rejected or cancelled payments are acknowledged with ResultCode 0 so the
    provider does not redeliver them.
    """
    result = service.process_callback(db, payload.Body.stkCallback)
    return CallbackAck(ResultCode=0, ResultDesc=result.description)


@router.get("/token", response_model=TokenResponse)
def get_token(gateway: DarajaClient = Depends(get_gateway)):
    """Debug: fetch a raw access token from the gateway."""
    return TokenResponse(access_token=gateway.get_access_token())
