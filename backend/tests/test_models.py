import pytest
from sqlalchemy.exc import IntegrityError

from members_api.errors import InvalidPaymentTransition
from members_api.models import MembershipType, PaymentRequest, PaymentStatus
from members_api.services.event_service import PaymentEventService

from conftest import add_pending_request


def test_mark_paid_from_pending():
    request = PaymentRequest(status=PaymentStatus.PENDING, membership_type=MembershipType.MONTHLY)
    request.mark_paid(receipt="QKX1", result_desc="ok")
    assert request.status == PaymentStatus.PAID
    assert request.mpesa_receipt == "QKX1"
    assert request.paid_at is not None


def test_paid_is_terminal():
    request = PaymentRequest(status=PaymentStatus.PAID, membership_type=MembershipType.MONTHLY)
    with pytest.raises(InvalidPaymentTransition):
        request.mark_paid()


def test_status_persisted_as_value(db):
    request = add_pending_request(db)
    raw = db.connection().exec_driver_sql(
        "SELECT status, membership_type FROM payment_requests WHERE id = ?", (request.id,)
    ).one()
    assert tuple(raw) == ("pending", "monthly")


def test_event_chain_links_and_verifies(db):
    request = add_pending_request(db)
    first = PaymentEventService.record(db, request.id, "PAYMENT_REQUESTED", payload={"amount": 2})
    second = PaymentEventService.record(db, request.id, "STK_PUSH_SENT", payload={"id": "ws_CO_1"})
    db.commit()

    assert first.previous_hash == ""
    assert second.previous_hash == first.payload_hash
    assert PaymentEventService.verify_chain(db, request.id)["valid"] is True

    second.previous_hash = "tampered"
    db.commit()
    result = PaymentEventService.verify_chain(db, request.id)
    assert result["valid"] is False
    assert result["broken_at"] == second.id


def test_one_pending_request_per_identity(db):
    add_pending_request(db, checkout_id="ws_CO_1")
    with pytest.raises(IntegrityError):
        add_pending_request(db, checkout_id="ws_CO_2")
    db.rollback()


def test_paid_and_pending_requests_coexist(db):
    paid = add_pending_request(db, checkout_id="ws_CO_1")
    paid.mark_paid(receipt="QKX1")
    db.commit()

    add_pending_request(db, checkout_id="ws_CO_2")
    add_pending_request(db, checkout_id="ws_CO_3", award_year=2023)

    assert db.query(PaymentRequest).filter_by(status=PaymentStatus.PENDING).count() == 2
