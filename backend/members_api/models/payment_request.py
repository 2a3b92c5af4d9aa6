"""
Payment Request Model — One STK push attempt awaiting its callback.
Maps to the 'payment_requests' table.
"""
import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Column, String, Integer, DateTime, Enum, Index, text

from members_api.database import Base
from members_api.errors import InvalidPaymentTransition
from members_api.models.member import MembershipType, enum_values


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


# Legal transitions; PAID is terminal.
TRANSITIONS = {
    PaymentStatus.PENDING: {PaymentStatus.PAID},
    PaymentStatus.PAID: set(),
}


class PaymentRequest(Base):
    __tablename__ = "payment_requests"
    __table_args__ = (
        Index("ix_payment_request_identity", "full_name", "award_type", "award_year", "status"),
        # At most one pending request per identity. MySQL has no partial indexes,
        # so there the registration row lock is the only guard.
        Index(
            "uq_payment_request_pending_identity",
            "full_name", "award_type", "award_year",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ).ddl_if(dialect=("sqlite", "postgresql")),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    full_name = Column(String(128), nullable=False)
    school = Column(String(128))
    award_type = Column(String(64), nullable=False)
    award_year = Column(Integer, nullable=False)

    membership_type = Column(
        Enum(MembershipType, native_enum=False, length=16, values_callable=enum_values),
        nullable=False,
    )
    phone_number = Column(String(16), nullable=False)  # 2547XXXXXXXX
    amount = Column(Integer, nullable=False)           # KES

    status = Column(
        Enum(PaymentStatus, native_enum=False, length=16, values_callable=enum_values),
        default=PaymentStatus.PENDING,
        nullable=False,
    )
    checkout_request_id = Column(String(64), unique=True, nullable=True)
    merchant_request_id = Column(String(64), nullable=True)
    mpesa_receipt = Column(String(32), nullable=True)
    result_desc = Column(String(256), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    paid_at = Column(DateTime, nullable=True)

    def transition_to(self, new_status: PaymentStatus):
        current = self.status or PaymentStatus.PENDING
        if new_status not in TRANSITIONS[current]:
            raise InvalidPaymentTransition(
                f"Payment request {self.id} cannot move from {current.value} to {new_status.value}"
            )
        self.status = new_status

    def mark_paid(self, receipt: Optional[str] = None, result_desc: Optional[str] = None):
        """Settle the request. Raises InvalidPaymentTransition unless pending."""
        self.transition_to(PaymentStatus.PAID)
        self.mpesa_receipt = receipt
        self.result_desc = result_desc
        self.paid_at = datetime.utcnow()

    @property
    def is_pending(self) -> bool:
        return self.status == PaymentStatus.PENDING
