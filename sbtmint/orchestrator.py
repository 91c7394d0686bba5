"""Submission orchestrator - the state machine behind "Submit & Mint SBT".

    IDLE -> VERIFYING -> MINTING -> SUCCEEDED
                 |           |
                 v           v
             REJECTED      FAILED

Each submission runs in a fresh ``SubmissionRun``. Transitions are computed
by ``transition`` from the current state and the outcome of the step that
just finished; the orchestrator only feeds it outcomes and turns the
terminal state into a ``SubmissionOutcome``.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sbtmint.minter import CredentialMinter
from sbtmint.models import (
    Accepted,
    CanonicalWork,
    Failed,
    MintFailure,
    MintResult,
    Rejected,
    Rejection,
    SubmissionOutcome,
    SubmissionRequest,
    VerificationResult,
)
from sbtmint.registry import IdentifierRegistry
from sbtmint.utils import InvalidTransition, SubmissionCancelled
from sbtmint.verifier import MetadataVerifier

logger = logging.getLogger(__name__)


class SubmissionState(str, Enum):
    IDLE = "idle"
    VERIFYING = "verifying"
    MINTING = "minting"
    SUCCEEDED = "succeeded"
    REJECTED = "rejected"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({
    SubmissionState.SUCCEEDED,
    SubmissionState.REJECTED,
    SubmissionState.FAILED,
})


def transition(state: SubmissionState, outcome: Any) -> SubmissionState:
    """Next state for *state* given the step *outcome*.

    Raises ``InvalidTransition`` for any pair outside the diagram.
    """
    if state is SubmissionState.IDLE and isinstance(outcome, SubmissionRequest):
        return SubmissionState.VERIFYING
    if state is SubmissionState.VERIFYING:
        if isinstance(outcome, Rejection):
            return SubmissionState.REJECTED
        if isinstance(outcome, CanonicalWork):
            return SubmissionState.MINTING
    if state is SubmissionState.MINTING:
        if isinstance(outcome, MintResult):
            return SubmissionState.SUCCEEDED
        if isinstance(outcome, MintFailure):
            return SubmissionState.FAILED
    raise InvalidTransition(
        f"No transition from {state.value} on {type(outcome).__name__}"
    )


@dataclass
class SubmissionRun:
    """State and history of a single submission attempt."""

    request: SubmissionRequest
    state: SubmissionState = SubmissionState.IDLE
    history: list[SubmissionState] = field(default_factory=lambda: [SubmissionState.IDLE])
    outcome: SubmissionOutcome | None = None

    def advance(self, step_outcome: Any) -> SubmissionState:
        new_state = transition(self.state, step_outcome)
        logger.info(
            "Submission %s: %s -> %s",
            self.request.identifier, self.state.value, new_state.value,
        )
        self.state = new_state
        self.history.append(new_state)
        return new_state

    def finish(self, outcome: SubmissionOutcome) -> SubmissionOutcome:
        self.outcome = outcome
        return outcome


class SubmissionOrchestrator:
    """Sequence registry -> verifier -> minter -> registry for each submission.

    The identifier is reserved before anything else happens, so concurrent
    submissions for the same DOI cannot both reach the minter. The
    reservation is released on every exit that does not end in
    ``registry.add`` - rejection, mint failure, cancellation, or an
    unexpected error - which keeps the identifier eligible for a retry.
    """

    def __init__(
        self,
        registry: IdentifierRegistry,
        verifier: MetadataVerifier,
        minter: CredentialMinter,
    ) -> None:
        self.registry = registry
        self.verifier = verifier
        self.minter = minter

    def verify_only(self, request: SubmissionRequest) -> VerificationResult:
        """Run the verification gate without reserving or minting."""
        return self.verifier.verify(request.identifier, request.claimed_title)

    def submit(
        self,
        request: SubmissionRequest,
        cancel_event: threading.Event | None = None,
    ) -> SubmissionOutcome:
        run = self.run(request, cancel_event=cancel_event)
        if run.outcome is None:
            raise InvalidTransition(
                f"Submission for {request.identifier} stopped in non-terminal state {run.state.value}"
            )
        return run.outcome

    def run(
        self,
        request: SubmissionRequest,
        cancel_event: threading.Event | None = None,
    ) -> SubmissionRun:
        """Drive one submission to a terminal state and return its run.

        Raises ``SubmissionCancelled`` if *cancel_event* is set before the
        mint transaction is sent, including while the wallet is still asking
        for account approval. Once a transaction has been sent the run always
        completes so that the registry records it.
        """
        run = SubmissionRun(request)
        identifier = request.identifier
        run.advance(request)

        with self.registry.reservation(identifier) as held:
            if not held:
                logger.info("Submission %s: identifier taken or in flight", identifier)
                reason = Rejection.duplicate()
                run.advance(reason)
                run.finish(Rejected(reason))
                return run

            self._check_cancelled(cancel_event, run)
            verification = self.verifier.verify(identifier, request.claimed_title)
            run.advance(verification)
            if isinstance(verification, Rejection):
                run.finish(Rejected(verification))
                return run

            self._check_cancelled(cancel_event, run)
            minted = self.minter.mint(
                request.claimed_title, identifier, request.repository_link,
                cancel_event=cancel_event,
            )
            run.advance(minted)
            if isinstance(minted, MintFailure):
                logger.warning(
                    "Submission %s failed (%s): %s",
                    identifier, minted.kind.value, minted.cause,
                )
                run.finish(Failed(minted))
                return run

            self.registry.add(identifier)
            run.finish(Accepted(minted))
            return run

    @staticmethod
    def _check_cancelled(cancel_event: threading.Event | None, run: SubmissionRun) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.info(
                "Submission %s cancelled in state %s",
                run.request.identifier, run.state.value,
            )
            raise SubmissionCancelled(
                f"Submission for {run.request.identifier} cancelled during {run.state.value}"
            )
