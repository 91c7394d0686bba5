"""Metadata verification against the OpenAlex works API.

A work is looked up by its resolver URL
(``https://api.openalex.org/works/https://doi.org/<doi>``), and the
returned canonical title is compared to the title the researcher claimed.
Every way the lookup can go wrong collapses into a single NOT_FOUND
rejection for the caller; the specific cause is only logged.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from sbtmint.models import CanonicalWork, Rejection, VerificationResult
from sbtmint.registry import IdentifierRegistry

logger = logging.getLogger(__name__)

_DEFAULT_BASE_URL = "https://api.openalex.org/works/"
_DEFAULT_RESOLVER = "https://doi.org/"
_DEFAULT_TIMEOUT = 10.0
_USER_AGENT = "SBTMint-Verifier/0.1"


class LookupFailure(Exception):
    """Internal lookup error. ``category`` is one of
    http_status, transport, timeout, malformed.
    """

    def __init__(self, category: str, detail: str) -> None:
        super().__init__(f"{category}: {detail}")
        self.category = category
        self.detail = detail


def titles_match(canonical: str, claimed: str) -> bool:
    """Case-insensitive comparison ignoring leading/trailing whitespace only."""
    return canonical.strip().lower() == claimed.strip().lower()


class OpenAlexClient:
    """Thin wrapper around the OpenAlex single-work endpoint.

    Docs: https://docs.openalex.org/api-entities/works/get-a-single-work
    """

    def __init__(
        self,
        base_url: str = _DEFAULT_BASE_URL,
        resolver_base: str = _DEFAULT_RESOLVER,
        timeout: float = _DEFAULT_TIMEOUT,
        mailto: str = "",
    ) -> None:
        self.base_url = base_url
        self.resolver_base = resolver_base
        self.timeout = timeout
        self.mailto = mailto

    def work_url(self, identifier: str) -> str:
        """Lookup URL for *identifier*, addressed by its resolver URL."""
        return f"{self.base_url}{self.resolver_base}{identifier}"

    def get_work(self, identifier: str) -> dict[str, Any]:
        """Fetch the raw work record. Raises ``LookupFailure``."""
        url = self.work_url(identifier)
        params = {"mailto": self.mailto} if self.mailto else None
        try:
            resp = httpx.get(
                url,
                params=params,
                headers={"User-Agent": _USER_AGENT},
                timeout=self.timeout,
                follow_redirects=True,
            )
        except httpx.TimeoutException as exc:
            raise LookupFailure("timeout", str(exc)) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            # InvalidURL (e.g. control characters in the DOI) is not an HTTPError
            raise LookupFailure("transport", str(exc)) from exc

        if not 200 <= resp.status_code < 300:
            raise LookupFailure("http_status", f"HTTP {resp.status_code} from {url}")

        try:
            data = resp.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise LookupFailure("malformed", f"non-JSON body from {url}") from exc

        if not isinstance(data, dict):
            raise LookupFailure("malformed", f"unexpected payload type {type(data).__name__}")
        return data


class MetadataVerifier:
    """Gate that must pass before any wallet interaction is attempted."""

    def __init__(
        self,
        registry: IdentifierRegistry,
        client: OpenAlexClient | None = None,
    ) -> None:
        self.registry = registry
        self.client = client or OpenAlexClient()

    def lookup(self, identifier: str) -> CanonicalWork | None:
        """Resolve *identifier* to its canonical record, or None if unusable."""
        try:
            data = self.client.get_work(identifier)
        except LookupFailure as exc:
            logger.warning(
                "Lookup failed for %s (category=%s): %s",
                identifier, exc.category, exc.detail,
            )
            return None

        external_id = data.get("id")
        title = data.get("title")
        if not external_id or not title:
            logger.warning(
                "Lookup failed for %s (category=malformed): missing id or title",
                identifier,
            )
            return None
        return CanonicalWork(external_id=str(external_id), canonical_title=str(title))

    def verify(self, identifier: str, claimed_title: str) -> VerificationResult:
        """Check *identifier* is new, resolvable, and titled *claimed_title*."""
        if self.registry.has(identifier):
            logger.info("Verify %s: already submitted", identifier)
            return Rejection.duplicate()

        work = self.lookup(identifier)
        if work is None:
            return Rejection.not_found()

        if not titles_match(work.canonical_title, claimed_title):
            logger.info(
                "Verify %s: title mismatch (claimed=%r canonical=%r)",
                identifier, claimed_title, work.canonical_title,
            )
            return Rejection.title_mismatch(work.canonical_title)

        logger.info("Verify %s: matched %s", identifier, work.external_id)
        return work
