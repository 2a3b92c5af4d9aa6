from members_api.services.gateway_client import DarajaClient
from members_api.services.event_service import PaymentEventService
from members_api.services.registration_service import RegistrationService
from members_api.services.reconciliation_service import ReconciliationService
from members_api.services.membership_service import MembershipService

__all__ = [
    "DarajaClient", "PaymentEventService", "RegistrationService",
    "ReconciliationService", "MembershipService",
]
