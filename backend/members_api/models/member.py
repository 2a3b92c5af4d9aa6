"""
Member Model — Paid membership per (full name, award type, award year).
Maps to the 'members' table.
"""
import enum
from datetime import datetime

from sqlalchemy import Column, String, Integer, Date, DateTime, Boolean, Enum, UniqueConstraint

from members_api.database import Base


class MembershipType(str, enum.Enum):
    LIFETIME = "lifetime"
    MONTHLY = "monthly"


def enum_values(enum_cls):
    """Persist enum values ('paid') rather than member names ('PAID')."""
    return [member.value for member in enum_cls]


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        UniqueConstraint("full_name", "award_type", "award_year", name="uq_member_identity"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    full_name = Column(String(128), nullable=False, index=True)
    school = Column(String(128))
    award_type = Column(String(64), nullable=False)
    award_year = Column(Integer, nullable=False)

    membership_type = Column(
        Enum(MembershipType, native_enum=False, length=16, values_callable=enum_values),
        nullable=False,
    )
    paid = Column(Boolean, default=False, nullable=False)
    expires_at = Column(Date, nullable=True)  # None for lifetime members

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
