"""Submission endpoints - verify a DOI and mint its authorship SBT."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from sbtmint.api.auth import rate_limit_read, rate_limit_submit, throttle_doi
from sbtmint.api.models import (
    MembershipResponse,
    RegistryResponse,
    RejectionDetail,
    SubmissionPayload,
    SubmissionResponse,
    VerifyRequest,
    VerifyResponse,
)
from sbtmint.models import (
    Accepted,
    Failed,
    RejectKind,
    Rejected,
    Rejection,
    SubmissionOutcome,
    SubmissionRequest,
)
from sbtmint.services import get_orchestrator
from sbtmint.utils import normalize_doi

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["submissions"])


def _status_code(outcome: SubmissionOutcome) -> int:
    if isinstance(outcome, Accepted):
        return 200
    if isinstance(outcome, Rejected):
        return 409 if outcome.reason.kind is RejectKind.DUPLICATE else 422
    return 502


def _to_response(outcome: SubmissionOutcome) -> SubmissionResponse:
    if isinstance(outcome, Accepted):
        body = outcome.to_dict()
        return SubmissionResponse(
            status=body["status"],
            message=body["message"],
            title=body["title"],
            transaction_reference=body["transaction_reference"],
        )
    if isinstance(outcome, Rejected):
        return SubmissionResponse(
            status=outcome.status,
            message=outcome.message,
            reason=RejectionDetail(**outcome.reason.to_dict()),
        )
    if isinstance(outcome, Failed):
        return SubmissionResponse(
            status=outcome.status,
            message=outcome.message,
            error=outcome.cause.kind.value,
        )
    raise TypeError(f"Unknown submission outcome: {type(outcome).__name__}")


@router.post(
    "/submissions",
    response_model=SubmissionResponse,
    dependencies=[Depends(rate_limit_submit)],
)
def submit(payload: SubmissionPayload):
    """Verify the work against OpenAlex and mint its SBT.

    Returns 200 with the transaction hash on success, 409 for a DOI that was
    already submitted, 422 when the DOI cannot be resolved or the title does
    not match, and 502 when minting fails.
    """
    throttle_doi(payload.doi)
    orchestrator = get_orchestrator()
    outcome = orchestrator.submit(payload.to_request())
    response = _to_response(outcome)
    return JSONResponse(status_code=_status_code(outcome), content=response.model_dump())


@router.post(
    "/verify",
    response_model=VerifyResponse,
    dependencies=[Depends(rate_limit_submit)],
)
def verify(request: VerifyRequest):
    """Dry-run the verification gate. Nothing is minted or recorded."""
    orchestrator = get_orchestrator()
    result = orchestrator.verify_only(
        SubmissionRequest(identifier=request.doi, claimed_title=request.title)
    )
    if isinstance(result, Rejection):
        return VerifyResponse(
            doi=request.doi,
            verified=False,
            message=result.message,
            reason=RejectionDetail(**result.to_dict()),
        )
    return VerifyResponse(
        doi=request.doi,
        verified=True,
        external_id=result.external_id,
        canonical_title=result.canonical_title,
    )


@router.get(
    "/submissions",
    response_model=RegistryResponse,
    dependencies=[Depends(rate_limit_read)],
)
def list_submissions():
    """List every DOI for which an SBT has been minted."""
    identifiers = get_orchestrator().registry.identifiers()
    return RegistryResponse(identifiers=identifiers, count=len(identifiers))


@router.get(
    "/submissions/{doi:path}",
    response_model=MembershipResponse,
    dependencies=[Depends(rate_limit_read)],
)
def get_submission(doi: str):
    """Report whether a DOI was already submitted or is being processed."""
    registry = get_orchestrator().registry
    identifier = normalize_doi(doi)
    return MembershipResponse(
        doi=identifier,
        submitted=registry.has(identifier),
        in_flight=registry.is_reserved(identifier),
    )
