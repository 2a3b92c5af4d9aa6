"""
Reconciliation Service — Applies an M-Pesa STK callback to payment and membership state.

Everything happens in one transaction: the payment request row is locked,
the member is created/renewed/upgraded, the request is marked paid, and the
whole lot commits or rolls back together.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from members_api.errors import PaymentAmountMismatch, PaymentRequestNotFound
from members_api.models.member import Member, MembershipType
from members_api.models.payment_request import PaymentRequest
from members_api.schemas.schemas import STKCallback
from members_api.services.event_service import PaymentEventService
from members_api.utils.dates import add_months

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationResult:
    outcome: str                  # rejected | duplicate | confirmed
    description: str
    member: Optional[Member] = None


def compute_expiry(membership_type: MembershipType, existing: Optional[Member], today: date) -> Optional[date]:
    """Expiry after a payment of `membership_type`.

    Monthly renewals extend from the current expiry while it is still valid,
    otherwise from today. Lifetime has no expiry.
    """
    if membership_type == MembershipType.LIFETIME:
        return None
    base = today
    if existing is not None and existing.expires_at is not None and existing.expires_at >= today:
        base = existing.expires_at
    return add_months(base, 1)


class ReconciliationService:

    def process_callback(self, db: Session, callback: STKCallback, today: Optional[date] = None) -> ReconciliationResult:
        today = today or date.today()

        if callback.ResultCode != 0:
            logger.info(
                "Payment not completed for checkout %s: [%s] %s",
                callback.CheckoutRequestID, callback.ResultCode, callback.ResultDesc,
            )
            return ReconciliationResult("rejected", "Callback received; payment not completed")

        try:
            result = self._apply_payment(db, callback, today)
            db.commit()
        except Exception:
            db.rollback()
            raise

        return result

    def _apply_payment(self, db: Session, callback: STKCallback, today: date) -> ReconciliationResult:
        payment_request = (
            db.query(PaymentRequest)
            .filter(PaymentRequest.checkout_request_id == callback.CheckoutRequestID)
            .with_for_update()
            .first()
        )
        if payment_request is None:
            raise PaymentRequestNotFound(f"No payment request for checkout {callback.CheckoutRequestID}")

        if not payment_request.is_pending:
            # Provider redelivery of a callback we already applied.
            logger.warning("Duplicate callback for paid request %s ignored", payment_request.id)
            PaymentEventService.record(
                db, payment_request.id, "DUPLICATE_CALLBACK",
                payload={"checkout_request_id": callback.CheckoutRequestID},
            )
            return ReconciliationResult("duplicate", "Payment already processed")

        paid_amount = callback.metadata_value("Amount")
        if paid_amount is not None and float(paid_amount) != payment_request.amount:
            raise PaymentAmountMismatch(
                f"Checkout {callback.CheckoutRequestID} paid {paid_amount}, "
                f"request {payment_request.id} expects {payment_request.amount}"
            )

        member = (
            db.query(Member)
            .filter(
                Member.full_name == payment_request.full_name,
                Member.award_type == payment_request.award_type,
                Member.award_year == payment_request.award_year,
            )
            .first()
        )

        membership_type = MembershipType(payment_request.membership_type)
        expires_at = compute_expiry(membership_type, member, today)

        if member is None:
            member = Member(
                full_name=payment_request.full_name,
                school=payment_request.school,
                award_type=payment_request.award_type,
                award_year=payment_request.award_year,
                membership_type=membership_type,
                paid=True,
                expires_at=expires_at,
            )
            db.add(member)
            action = "created"
        elif membership_type == MembershipType.LIFETIME:
            member.membership_type = MembershipType.LIFETIME
            member.paid = True
            member.expires_at = None
            action = "upgraded"
        elif member.membership_type == MembershipType.LIFETIME:
            # Lifetime outranks a monthly top-up; nothing to extend.
            member.paid = True
            action = "unchanged"
        else:
            member.paid = True
            member.expires_at = expires_at
            action = "renewed"

        payment_request.mark_paid(
            receipt=_as_str(callback.metadata_value("MpesaReceiptNumber")),
            result_desc=callback.ResultDesc,
        )
        db.flush()

        PaymentEventService.record(
            db, payment_request.id, "PAYMENT_CONFIRMED",
            payload={
                "checkout_request_id": callback.CheckoutRequestID,
                "receipt": payment_request.mpesa_receipt,
                "member_id": member.id,
            },
            metadata={
                "member_action": action,
                "expires_at": member.expires_at.isoformat() if member.expires_at else None,
            },
        )
        logger.info(
            "Payment request %s paid; member %s %s (expires %s)",
            payment_request.id, member.id, action, member.expires_at,
        )
        return ReconciliationResult("confirmed", "Payment processed successfully", member)


def _as_str(value) -> Optional[str]:
    return None if value is None else str(value)
