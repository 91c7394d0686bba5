"""Process-wide wiring of the submission pipeline.

The API and the CLI share one registry per process so the duplicate guard
holds across every entry point. Components are built lazily from
``get_config()`` on first use.
"""

from __future__ import annotations

import logging
import threading

from sbtmint.config import get_config
from sbtmint.minter import CredentialMinter
from sbtmint.orchestrator import SubmissionOrchestrator
from sbtmint.registry import IdentifierRegistry, create_registry
from sbtmint.verifier import MetadataVerifier, OpenAlexClient
from sbtmint.wallet import WalletProvider, create_wallet_provider

logger = logging.getLogger(__name__)

_orchestrator: SubmissionOrchestrator | None = None
_lock = threading.Lock()


def build_orchestrator(
    registry: IdentifierRegistry | None = None,
    wallet: WalletProvider | None = None,
    client: OpenAlexClient | None = None,
) -> SubmissionOrchestrator:
    """Assemble an orchestrator from config, overriding any given component."""
    cfg = get_config()
    registry = registry or create_registry(cfg)
    client = client or OpenAlexClient(
        base_url=cfg.openalex_base_url,
        resolver_base=cfg.doi_resolver_base,
        timeout=cfg.lookup_timeout_seconds,
        mailto=cfg.contact_email,
    )
    if wallet is None:
        wallet = create_wallet_provider(cfg)
    verifier = MetadataVerifier(registry, client)
    minter = CredentialMinter(wallet, contract_address=cfg.contract_address)
    logger.info(
        "Pipeline ready - registry=%s wallet=%s contract=%s",
        type(registry).__name__,
        type(wallet).__name__ if wallet else "none",
        cfg.contract_address,
    )
    return SubmissionOrchestrator(registry, verifier, minter)


def get_orchestrator() -> SubmissionOrchestrator:
    """Return the process-wide orchestrator (double-checked locking)."""
    global _orchestrator
    if _orchestrator is None:
        with _lock:
            if _orchestrator is None:
                _orchestrator = build_orchestrator()
    return _orchestrator


def set_orchestrator(orchestrator: SubmissionOrchestrator | None) -> None:
    """Replace (or with None, reset) the process-wide orchestrator."""
    global _orchestrator
    with _lock:
        _orchestrator = orchestrator
