"""Health check endpoint."""

import logging

from fastapi import APIRouter

from sbtmint.api.models import HealthResponse
from sbtmint.config import get_config
from sbtmint.services import get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
def health():
    """Report registry size and wallet connectivity."""
    cfg = get_config()
    orchestrator = get_orchestrator()
    status = "healthy"
    wallet_ok = False
    accepted = 0

    try:
        accepted = len(orchestrator.registry.identifiers())
    except Exception:
        logger.warning("Registry health check failed", exc_info=True)
        status = "degraded"

    wallet = orchestrator.minter.wallet
    if wallet is not None:
        wallet_ok = wallet.is_available()
    if not wallet_ok:
        status = "degraded"

    return HealthResponse(
        status=status,
        registry_backend=cfg.registry_backend,
        accepted_count=accepted,
        wallet_available=wallet_ok,
        contract_address=orchestrator.minter.contract_address,
    )
