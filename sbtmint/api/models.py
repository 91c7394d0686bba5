"""Pydantic request/response models for the SBTMint API."""

from pydantic import BaseModel, Field, field_validator

from sbtmint.models import SubmissionRequest
from sbtmint.utils import normalize_doi


def _checked_doi(raw: str) -> str:
    value = normalize_doi(raw)
    if len(value) < 5:
        raise ValueError("DOI must be at least 5 characters.")
    return value


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------

class SubmissionPayload(BaseModel):
    """Submission form fields with the form's minimum-length rules."""

    doi: str = Field(..., min_length=5, max_length=300)
    title: str = Field(..., min_length=5, max_length=1000)
    repository: str | None = Field(default=None, max_length=500)
    abstract: str = Field(..., min_length=20, max_length=10000)

    @field_validator("doi")
    @classmethod
    def normalise_doi(cls, v: str) -> str:
        return _checked_doi(v)

    @field_validator("repository", mode="before")
    @classmethod
    def blank_repository_to_none(cls, v):
        if v is None:
            return None
        value = str(v).strip()
        return value or None

    def to_request(self) -> SubmissionRequest:
        return SubmissionRequest(
            identifier=self.doi,
            claimed_title=self.title,
            repository_link=self.repository or "",
            abstract_text=self.abstract,
        )


class RejectionDetail(BaseModel):
    kind: str
    canonical_title: str | None = None


class SubmissionResponse(BaseModel):
    status: str
    message: str
    title: str | None = None
    transaction_reference: str | None = None
    reason: RejectionDetail | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# Verification (dry run)
# ---------------------------------------------------------------------------

class VerifyRequest(BaseModel):
    doi: str = Field(..., min_length=5, max_length=300)
    title: str = Field(..., min_length=5, max_length=1000)

    @field_validator("doi")
    @classmethod
    def normalise_doi(cls, v: str) -> str:
        return _checked_doi(v)


class VerifyResponse(BaseModel):
    doi: str
    verified: bool
    message: str = ""
    external_id: str | None = None
    canonical_title: str | None = None
    reason: RejectionDetail | None = None


# ---------------------------------------------------------------------------
# Registry / Health
# ---------------------------------------------------------------------------

class RegistryResponse(BaseModel):
    identifiers: list[str] = []
    count: int = 0


class MembershipResponse(BaseModel):
    doi: str
    submitted: bool = False
    in_flight: bool = False


class HealthResponse(BaseModel):
    status: str = "healthy"
    registry_backend: str = ""
    accepted_count: int = 0
    wallet_available: bool = False
    contract_address: str = ""
