"""
SBTMint - DOI-verified soulbound credential minting

Verifies a published work against OpenAlex and mints a non-transferable
authorship token (SBT) for it, at most once per DOI.
"""

__version__ = "0.1.0"

from sbtmint.config import Config, get_config
from sbtmint.minter import CredentialMinter
from sbtmint.models import (
    Accepted,
    CanonicalWork,
    Failed,
    MintErrorKind,
    MintFailure,
    MintResult,
    Rejected,
    RejectKind,
    Rejection,
    SubmissionRequest,
)
from sbtmint.orchestrator import SubmissionOrchestrator, SubmissionState
from sbtmint.registry import (
    IdentifierRegistry,
    InMemoryIdentifierRegistry,
    SQLiteIdentifierRegistry,
)
from sbtmint.verifier import MetadataVerifier, OpenAlexClient

__all__ = [
    "Config",
    "get_config",
    "Accepted",
    "CanonicalWork",
    "Failed",
    "MintErrorKind",
    "MintFailure",
    "MintResult",
    "Rejected",
    "RejectKind",
    "Rejection",
    "SubmissionRequest",
    "IdentifierRegistry",
    "InMemoryIdentifierRegistry",
    "SQLiteIdentifierRegistry",
    "MetadataVerifier",
    "OpenAlexClient",
    "CredentialMinter",
    "SubmissionOrchestrator",
    "SubmissionState",
]
