"""
API dependencies for FastAPI endpoints.
Provides access to the service container, wallet validation and secret checks.
"""

import secrets
from typing import Optional

from fastapi import Depends, Path, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

import structlog

from snakepill.core.config import Settings
from snakepill.core.exceptions import AuthenticationError, ValidationError
from snakepill.services.container import ServiceContainer
from snakepill.services.eligibility_reconciler import EligibilityReconciler
from snakepill.services.player_store import PlayerStore
from snakepill.services.tax_distributor import TaxDistributor
from snakepill.utils.validation import validate_wallet_address


logger = structlog.get_logger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    return request.app.state.services


def get_app_settings(services: ServiceContainer = Depends(get_services)) -> Settings:
    return services.settings


def get_store(services: ServiceContainer = Depends(get_services)) -> PlayerStore:
    return services.store


def get_reconciler(services: ServiceContainer = Depends(get_services)) -> EligibilityReconciler:
    return services.reconciler


def get_distributor(services: ServiceContainer = Depends(get_services)) -> TaxDistributor:
    return services.distributor


async def validate_wallet_param(
    wallet: str = Path(..., description="Solana wallet address")
) -> str:
    """Validate wallet address path parameter."""
    if not validate_wallet_address(wallet):
        logger.warning("Invalid wallet address provided", wallet=wallet)
        raise ValidationError("Invalid wallet address", {"wallet": wallet})
    return wallet


def _token_matches(
    credentials: Optional[HTTPAuthorizationCredentials],
    secret: str
) -> bool:
    if credentials is None:
        return False
    return secrets.compare_digest(credentials.credentials.encode(), secret.encode())


async def require_cron_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings)
) -> None:
    """Cron endpoints are open unless CRON_SECRET is configured."""
    if settings.cron_secret and not _token_matches(credentials, settings.cron_secret):
        logger.warning("Rejected cron request with bad secret")
        raise AuthenticationError("Unauthorized")


async def require_admin_secret(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_app_settings)
) -> None:
    """Admin endpoints are closed unless ADMIN_SECRET is configured and matches."""
    if not settings.admin_secret or not _token_matches(credentials, settings.admin_secret):
        logger.warning("Rejected admin request")
        raise AuthenticationError("Unauthorized")
