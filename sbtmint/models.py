"""Domain value objects for the submission pipeline.

Every step returns one of these instead of raising: the verifier yields a
``CanonicalWork`` or a ``Rejection``, the minter a ``MintResult`` or a
``MintFailure``, and the orchestrator folds them into exactly one
``SubmissionOutcome`` per attempt.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Literal, Union

DUPLICATE_MESSAGE = "This DOI has already been submitted!"
NOT_FOUND_MESSAGE = "Invalid DOI. Please check and try again."
MINT_FAILED_MESSAGE = "Transaction could not be processed. Try again."
MINT_SUCCESS_TITLE = "SBT Minted Successfully!"


@dataclass(frozen=True)
class SubmissionRequest:
    """One submission attempt as entered by the researcher."""

    identifier: str
    claimed_title: str
    repository_link: str = ""
    abstract_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class CanonicalWork:
    """Work record returned by the bibliographic registry."""

    external_id: str
    canonical_title: str


@dataclass(frozen=True)
class MintResult:
    transaction_reference: str


# ---------------------------------------------------------------------------
# Rejections (business rules, no side effects performed)
# ---------------------------------------------------------------------------

class RejectKind(str, Enum):
    DUPLICATE = "duplicate"
    NOT_FOUND = "not_found"
    TITLE_MISMATCH = "title_mismatch"


@dataclass(frozen=True)
class Rejection:
    """Why a submission was turned away before any wallet interaction.

    ``canonical_title`` is only set for TITLE_MISMATCH so the caller can show
    the title the registry expects.
    """

    kind: RejectKind
    canonical_title: str | None = None

    @classmethod
    def duplicate(cls) -> Rejection:
        return cls(RejectKind.DUPLICATE)

    @classmethod
    def not_found(cls) -> Rejection:
        return cls(RejectKind.NOT_FOUND)

    @classmethod
    def title_mismatch(cls, canonical_title: str) -> Rejection:
        return cls(RejectKind.TITLE_MISMATCH, canonical_title=canonical_title)

    @property
    def message(self) -> str:
        if self.kind is RejectKind.DUPLICATE:
            return DUPLICATE_MESSAGE
        if self.kind is RejectKind.TITLE_MISMATCH:
            return f'Title mismatch! Expected title: "{self.canonical_title}"'
        return NOT_FOUND_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "canonical_title": self.canonical_title}


# ---------------------------------------------------------------------------
# Mint failures (infrastructure or user action, after verification passed)
# ---------------------------------------------------------------------------

class MintErrorKind(str, Enum):
    NO_WALLET = "no_wallet"
    USER_DECLINED = "user_declined"
    TRANSACTION_FAILED = "transaction_failed"


@dataclass(frozen=True)
class MintFailure:
    """A failed mint. ``cause`` keeps the underlying error text for logs."""

    kind: MintErrorKind
    cause: str = ""

    @property
    def message(self) -> str:
        return MINT_FAILED_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "cause": self.cause}


# ---------------------------------------------------------------------------
# Terminal outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Accepted:
    mint: MintResult
    status: Literal["accepted"] = "accepted"

    @property
    def transaction_reference(self) -> str:
        return self.mint.transaction_reference

    @property
    def message(self) -> str:
        return f"Transaction Hash: {self.mint.transaction_reference}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "title": MINT_SUCCESS_TITLE,
            "message": self.message,
            "transaction_reference": self.mint.transaction_reference,
        }


@dataclass(frozen=True)
class Rejected:
    reason: Rejection
    status: Literal["rejected"] = "rejected"

    @property
    def message(self) -> str:
        return self.reason.message

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "reason": self.reason.to_dict(),
        }


@dataclass(frozen=True)
class Failed:
    cause: MintFailure
    status: Literal["failed"] = "failed"

    @property
    def message(self) -> str:
        return self.cause.message

    def to_dict(self) -> dict[str, Any]:
        # The raw cause stays server-side; callers only see the kind.
        return {
            "status": self.status,
            "message": self.message,
            "error": self.cause.kind.value,
        }


SubmissionOutcome = Union[Accepted, Rejected, Failed]
VerificationResult = Union[CanonicalWork, Rejection]
MintOutcome = Union[MintResult, MintFailure]
