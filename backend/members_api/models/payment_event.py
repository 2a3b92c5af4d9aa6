"""
Payment Event Model — Tamper-evident trail of each payment request's lifecycle.
Every event is SHA-256 hashed and chained to the previous one.
"""
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, JSON, ForeignKey

from members_api.database import Base


class PaymentEvent(Base):
    __tablename__ = "payment_events"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    payment_request_id = Column(Integer, ForeignKey("payment_requests.id"), nullable=False, index=True)

    action = Column(String(32), nullable=False)
    # Actions: PAYMENT_REQUESTED, STK_PUSH_SENT, STK_PUSH_FAILED,
    #          PAYMENT_CONFIRMED, DUPLICATE_CALLBACK

    payload_hash = Column(String(64))       # SHA-256 chained with previous_hash
    previous_hash = Column(String(64))

    event_metadata = Column(JSON, default=dict)
    timestamp = Column(DateTime, default=datetime.utcnow)
