"""
Membership Service — Member lookups and the administrative insert path.
"""
from datetime import date
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from members_api.errors import DuplicateMemberError, MemberNotFound
from members_api.models.member import Member, MembershipType
from members_api.schemas.schemas import MemberCreateRequest


class MembershipService:

    @staticmethod
    def check(db: Session, name: str, today: Optional[date] = None) -> list[Member]:
        """Members named `name` holding valid paid membership today.

        Raises:
            MemberNotFound: if nobody by that name currently holds one.
        """
        today = today or date.today()
        members = (
            db.query(Member)
            .filter(
                Member.full_name == name,
                Member.paid.is_(True),
                or_(
                    Member.membership_type == MembershipType.LIFETIME,
                    Member.expires_at >= today,
                ),
            )
            .order_by(Member.id.asc())
            .all()
        )
        if not members:
            raise MemberNotFound(f"No active membership for '{name}'")
        return members

    @staticmethod
    def create(db: Session, payload: MemberCreateRequest) -> Member:
        """Insert a member directly, bypassing payment."""
        member = Member(
            full_name=payload.full_name,
            school=payload.school,
            award_type=payload.award_type,
            award_year=payload.award_year,
            membership_type=payload.membership_type,
            paid=payload.paid,
            expires_at=None if payload.membership_type == MembershipType.LIFETIME else payload.expires_at,
        )
        db.add(member)
        try:
            db.commit()
        except IntegrityError as e:
            db.rollback()
            raise DuplicateMemberError(
                f"{payload.full_name} ({payload.award_type} {payload.award_year})"
            ) from e
        db.refresh(member)
        return member
