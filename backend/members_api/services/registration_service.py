"""
Registration Service — Records a pending payment request, then triggers the STK push.
"""
import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from members_api.errors import GatewayError, InvalidAmountError, PaymentInitiationError
from members_api.models.member import MembershipType
from members_api.models.payment_request import PaymentRequest, PaymentStatus
from members_api.schemas.schemas import RegistrationRequest
from members_api.services.event_service import PaymentEventService
from members_api.services.gateway_client import DarajaClient
from members_api.utils.phone import normalize_phone

logger = logging.getLogger(__name__)


class RegistrationService:
    """Create-or-update a pending PaymentRequest and start the payment on the payer's phone."""

    def __init__(self, plans: Dict[int, str], gateway: DarajaClient):
        self.plans = {int(amount): MembershipType(kind) for amount, kind in plans.items()}
        self.gateway = gateway

    def membership_type_for(self, amount: float) -> MembershipType:
        """Look up the plan for an amount. Raises InvalidAmountError if unmapped."""
        if float(amount).is_integer() and int(amount) in self.plans:
            return self.plans[int(amount)]
        raise InvalidAmountError(f"No membership plan costs {amount}; valid amounts: {sorted(self.plans)}")

    def register(self, db: Session, payload: RegistrationRequest) -> PaymentRequest:
        """Run the registration flow and return the request carrying its checkout id.

        The request row is committed before the gateway is called, so a
        gateway failure leaves it pending rather than rolled back.
        """
        membership_type = self.membership_type_for(payload.amount)
        phone = normalize_phone(payload.phone_number)
        amount = int(payload.amount)

        payment_request = self._save_pending(db, payload, membership_type, phone, amount)

        try:
            response = self.gateway.stk_push(phone, amount)
        except GatewayError as e:
            self._record_failure(db, payment_request, e.to_dict())
            raise

        checkout_request_id = response.get("CheckoutRequestID")
        if not checkout_request_id:
            self._record_failure(db, payment_request, response)
            raise PaymentInitiationError(details=response)

        try:
            payment_request.checkout_request_id = checkout_request_id
            payment_request.merchant_request_id = response.get("MerchantRequestID")
            PaymentEventService.record(
                db, payment_request.id, "STK_PUSH_SENT",
                payload={"checkout_request_id": checkout_request_id},
                metadata={"response_description": response.get("ResponseDescription")},
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            "Payment request %s awaiting callback (checkout %s)",
            payment_request.id, checkout_request_id,
        )
        return payment_request

    def _save_pending(
        self,
        db: Session,
        payload: RegistrationRequest,
        membership_type: MembershipType,
        phone: str,
        amount: int,
    ) -> PaymentRequest:
        """Upsert and commit the pending row.

        A concurrent registration for the same identity can win the insert;
        the pending-identity unique index then rejects ours and the second
        attempt finds and updates the winner's row.
        """
        for attempt in (1, 2):
            try:
                payment_request = self._upsert_pending(db, payload, membership_type, phone, amount)
                PaymentEventService.record(
                    db, payment_request.id, "PAYMENT_REQUESTED",
                    payload={"phone": phone, "amount": amount, "membership_type": membership_type.value},
                )
                db.commit()
                return payment_request
            except IntegrityError:
                db.rollback()
                if attempt == 2:
                    raise
                logger.info("Pending request for %s created concurrently; updating it", payload.full_name)
            except Exception:
                db.rollback()
                raise

    def _find_pending(self, db: Session, payload: RegistrationRequest) -> Optional[PaymentRequest]:
        return (
            db.query(PaymentRequest)
            .filter(
                PaymentRequest.full_name == payload.full_name,
                PaymentRequest.award_type == payload.award_type,
                PaymentRequest.award_year == payload.award_year,
                PaymentRequest.status == PaymentStatus.PENDING,
            )
            .with_for_update()
            .first()
        )

    def _upsert_pending(
        self,
        db: Session,
        payload: RegistrationRequest,
        membership_type: MembershipType,
        phone: str,
        amount: int,
    ) -> PaymentRequest:
        existing = self._find_pending(db, payload)

        if existing:
            existing.school = payload.school
            existing.phone_number = phone
            existing.amount = amount
            existing.membership_type = membership_type
            existing.created_at = datetime.utcnow()
            # The previous push was for the old amount; its callback must not settle this one.
            existing.checkout_request_id = None
            existing.merchant_request_id = None
            db.flush()
            logger.info("Updated pending payment request %s", existing.id)
            return existing

        payment_request = PaymentRequest(
            full_name=payload.full_name,
            school=payload.school,
            award_type=payload.award_type,
            award_year=payload.award_year,
            membership_type=membership_type,
            phone_number=phone,
            amount=amount,
            status=PaymentStatus.PENDING,
        )
        db.add(payment_request)
        db.flush()  # Get the ID
        logger.info("Created payment request %s", payment_request.id)
        return payment_request

    def _record_failure(self, db: Session, payment_request: PaymentRequest, detail: dict):
        """Note a failed push on the trail; the request itself stays pending."""
        logger.warning("STK push failed for payment request %s: %s", payment_request.id, detail)
        try:
            PaymentEventService.record(db, payment_request.id, "STK_PUSH_FAILED", payload=detail)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Could not record STK_PUSH_FAILED for request %s", payment_request.id)
