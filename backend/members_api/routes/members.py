"""
Member Routes — Membership checks and administrative inserts.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from members_api.database import get_db
from members_api.schemas.schemas import MemberCheckRequest, MemberCreateRequest, MemberResponse
from members_api.services.membership_service import MembershipService

router = APIRouter(prefix="/api/members", tags=["Members"])


@router.post("/check", response_model=list[MemberResponse])
def check_membership(payload: MemberCheckRequest, db: Session = Depends(get_db)):
    """Members by this name with valid paid membership (lifetime or unexpired)."""
    return MembershipService.check(db, payload.name)


@router.post("", response_model=MemberResponse, status_code=201)
def create_member(payload: MemberCreateRequest, db: Session = Depends(get_db)):
    """Insert a member directly (administrative path, no payment)."""
    return MembershipService.create(db, payload)
