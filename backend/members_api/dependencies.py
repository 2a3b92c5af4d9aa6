"""
FastAPI dependencies handing out the settings and services built in create_app().
"""
from fastapi import Depends, Request

from members_api.config import Settings
from members_api.services.gateway_client import DarajaClient
from members_api.services.reconciliation_service import ReconciliationService
from members_api.services.registration_service import RegistrationService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> DarajaClient:
    return request.app.state.gateway


def get_registration_service(
    settings: Settings = Depends(get_app_settings),
    gateway: DarajaClient = Depends(get_gateway),
) -> RegistrationService:
    return RegistrationService(settings.MEMBERSHIP_PLANS, gateway)


def get_reconciliation_service() -> ReconciliationService:
    return ReconciliationService()
