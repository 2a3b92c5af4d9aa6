"""
Shared fixtures: an app on in-memory SQLite with a scripted M-Pesa client.
"""
from datetime import date

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from members_api.config import Settings
from members_api.database import build_engine
from members_api.errors import GatewayTokenError
from members_api.main import create_app
from members_api.models import Member, MembershipType, PaymentRequest, PaymentStatus


class FakeGateway:
    """Stands in for DarajaClient; returns queued STK responses."""

    def __init__(self):
        self.calls = []
        self.responses = []
        self.token_error = None
        self._counter = 0

    def get_access_token(self):
        if self.token_error:
            raise GatewayTokenError(self.token_error)
        return "fake-token"

    def stk_push(self, phone, amount, account_reference=None, description=None):
        self.calls.append({"phone": phone, "amount": amount})
        self.get_access_token()
        if self.responses:
            response = self.responses.pop(0)
            if isinstance(response, Exception):
                raise response
            return response
        self._counter += 1
        return {
            "MerchantRequestID": f"MR-{self._counter}",
            "CheckoutRequestID": f"ws_CO_{self._counter:04d}",
            "ResponseCode": "0",
            "ResponseDescription": "Success. Request accepted for processing",
        }


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        LOG_DIR=str(tmp_path / "logs"),
        MPESA_CONSUMER_KEY="key",
        MPESA_CONSUMER_SECRET="secret",
        MPESA_SHORTCODE="174379",
        MPESA_PASSKEY="passkey",
        MEMBERSHIP_PLANS={2: "monthly", 5: "lifetime"},
        REGISTER_RATE_LIMIT=0,
    )


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(settings, gateway):
    engine = build_engine(settings, poolclass=StaticPool)
    return create_app(settings, engine=engine, gateway=gateway)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def db(app, client):
    session = app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


def registration(**overrides):
    body = {
        "full_name": "Jane Wanjiku",
        "school": "Alliance Girls",
        "award_type": "Gold",
        "award_year": 2024,
        "phone_number": "0712345678",
        "amount": 2,
    }
    body.update(overrides)
    return body


def callback(checkout_id, result_code=0, receipt="QKX1ABC2DE", amount=2):
    stk = {
        "MerchantRequestID": "MR-1",
        "CheckoutRequestID": checkout_id,
        "ResultCode": result_code,
        "ResultDesc": "The service request is processed successfully." if result_code == 0
        else "Request cancelled by user",
    }
    if result_code == 0:
        stk["CallbackMetadata"] = {
            "Item": [
                {"Name": "Amount", "Value": amount},
                {"Name": "MpesaReceiptNumber", "Value": receipt},
                {"Name": "Balance"},
                {"Name": "TransactionDate", "Value": 20240612103015},
                {"Name": "PhoneNumber", "Value": 254712345678},
            ]
        }
    return {"Body": {"stkCallback": stk}}


def add_member(db, membership_type=MembershipType.MONTHLY, expires_at=None, **fields):
    member = Member(
        full_name=fields.get("full_name", "Jane Wanjiku"),
        school=fields.get("school", "Alliance Girls"),
        award_type=fields.get("award_type", "Gold"),
        award_year=fields.get("award_year", 2024),
        membership_type=membership_type,
        paid=fields.get("paid", True),
        expires_at=expires_at,
    )
    db.add(member)
    db.commit()
    return member


def add_pending_request(db, checkout_id="ws_CO_9000", membership_type=MembershipType.MONTHLY, amount=2, **fields):
    payment_request = PaymentRequest(
        full_name=fields.get("full_name", "Jane Wanjiku"),
        school="Alliance Girls",
        award_type=fields.get("award_type", "Gold"),
        award_year=fields.get("award_year", 2024),
        membership_type=membership_type,
        phone_number="254712345678",
        amount=amount,
        status=PaymentStatus.PENDING,
        checkout_request_id=checkout_id,
    )
    db.add(payment_request)
    db.commit()
    return payment_request


TODAY = date(2024, 6, 12)
