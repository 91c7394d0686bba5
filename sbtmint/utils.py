"""
Utility functions for SBTMint

Provides logging setup, DOI normalization, and the shared exception hierarchy
"""

import logging
from pathlib import Path
from typing import Optional


# ═══════════════════════════════════════════════════════════════════
# LOGGING
# ═══════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """Configure logging for SBTMint"""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers
    )


def get_logger(name: str) -> logging.Logger:
    """Get logger instance for module"""
    return logging.getLogger(name)


# ═══════════════════════════════════════════════════════════════════
# DOI NORMALIZATION
# ═══════════════════════════════════════════════════════════════════

_RESOLVER_PREFIXES = (
    "https://doi.org/",
    "http://doi.org/",
    "https://dx.doi.org/",
    "http://dx.doi.org/",
)


def normalize_doi(doi: str | None) -> str:
    """Strip whitespace, a ``doi:`` scheme and any doi.org resolver prefix.

    Case is preserved: the registry treats identifiers as opaque strings.
    """
    if not doi:
        return ""
    value = doi.strip()
    if value[:4].lower() == "doi:":
        value = value[4:].strip()

    for prefix in _RESOLVER_PREFIXES:
        if value.lower().startswith(prefix):
            value = value[len(prefix):]
            break

    return value.strip()


# ═══════════════════════════════════════════════════════════════════
# EXCEPTIONS
# ═══════════════════════════════════════════════════════════════════

class SBTMintError(Exception):
    """Base exception for SBTMint"""
    pass


class InvalidTransition(SBTMintError):
    """A submission state machine was driven along an edge it does not have"""
    pass


class SubmissionCancelled(SBTMintError):
    """The caller abandoned a submission before it reached a terminal state"""
    pass


class WalletUnavailable(SBTMintError):
    """No wallet provider connection could be established"""
    pass


class WalletRejected(SBTMintError):
    """The wallet holder declined an authorization or signing request"""
    pass
