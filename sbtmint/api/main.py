"""SBTMint FastAPI application."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from sbtmint.api.auth import request_logging_middleware
from sbtmint.config import get_config
from sbtmint.services import get_orchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle handler."""
    config = get_config()

    if not config.demo_mode and not config.api_key:
        logger.critical("SBTMINT_API_KEY is not set. Set it in .env or export it. Use SBTMINT_DEMO_MODE=true to skip.")
        sys.exit(1)

    get_orchestrator()
    logger.info(
        "SBTMint API starting - registry=%s, wallet=%s, rpc=%s",
        config.registry_backend, config.wallet_mode, config.eth_rpc_url,
    )
    yield
    logger.info("SBTMint API shutdown")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    app = FastAPI(
        title="SBTMint API",
        description="Verify a published work by DOI and mint a soulbound authorship credential",
        version="0.1.0",
        lifespan=lifespan,
    )

    config = get_config()

    # CORS - restricted to configured origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
    )

    # Request logging and X-Request-ID middleware
    app.add_middleware(BaseHTTPMiddleware, dispatch=request_logging_middleware)

    from sbtmint.api.routes.submissions import router as submissions_router
    from sbtmint.api.routes.health import router as health_router

    app.include_router(submissions_router)
    app.include_router(health_router)

    return app


app = create_app()
