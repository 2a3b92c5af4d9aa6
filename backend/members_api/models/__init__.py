from members_api.models.member import Member, MembershipType
from members_api.models.payment_request import PaymentRequest, PaymentStatus
from members_api.models.payment_event import PaymentEvent

__all__ = ["Member", "MembershipType", "PaymentRequest", "PaymentStatus", "PaymentEvent"]
