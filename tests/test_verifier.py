"""Tests for OpenAlex lookup and title verification.

All HTTP traffic is mocked - no real network calls are made.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from sbtmint.models import CanonicalWork, RejectKind, Rejection
from sbtmint.registry import InMemoryIdentifierRegistry
from sbtmint.verifier import (
    LookupFailure,
    MetadataVerifier,
    OpenAlexClient,
    titles_match,
)
from tests.fakes import FakeOpenAlex, work


def _make_mock_response(status_code: int = 200, json_data=None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    if json_data is not None:
        resp.json.return_value = json_data
    else:
        resp.json.side_effect = json.JSONDecodeError("Expecting value", "", 0)
    return resp


# ---------------------------------------------------------------------------
# Title comparison
# ---------------------------------------------------------------------------
class TestTitlesMatch:
    def test_case_and_outer_whitespace_ignored(self):
        assert titles_match(" Deep Learning ", "deep learning") is True

    def test_trailing_period_is_significant(self):
        assert titles_match("Deep Learning", "Deep learning.") is False

    def test_internal_whitespace_is_significant(self):
        assert titles_match("Deep  Learning", "Deep Learning") is False

    def test_punctuation_is_significant(self):
        assert titles_match("Graph-Theory", "Graph Theory") is False

    def test_exact_match(self):
        assert titles_match("Graph Theory Basics", "Graph Theory Basics") is True


# ---------------------------------------------------------------------------
# OpenAlexClient
# ---------------------------------------------------------------------------
class TestOpenAlexClient:
    def test_url_is_built_from_resolver_form(self):
        client = OpenAlexClient()
        assert (
            client.work_url("10.1/abc")
            == "https://api.openalex.org/works/https://doi.org/10.1/abc"
        )

    def test_get_work_returns_payload(self):
        resp = _make_mock_response(200, {"id": "W1", "title": "T"})
        with patch("sbtmint.verifier.httpx.get", return_value=resp) as mock_get:
            data = OpenAlexClient(timeout=3.0).get_work("10.1/abc")
        assert data == {"id": "W1", "title": "T"}
        args, kwargs = mock_get.call_args
        assert args[0] == "https://api.openalex.org/works/https://doi.org/10.1/abc"
        assert kwargs["timeout"] == 3.0

    def test_mailto_is_sent_when_configured(self):
        resp = _make_mock_response(200, {"id": "W1", "title": "T"})
        with patch("sbtmint.verifier.httpx.get", return_value=resp) as mock_get:
            OpenAlexClient(mailto="lab@example.org").get_work("10.1/abc")
        assert mock_get.call_args.kwargs["params"] == {"mailto": "lab@example.org"}

    def test_404_raises_http_status(self):
        resp = _make_mock_response(404, {"error": "not found"})
        with patch("sbtmint.verifier.httpx.get", return_value=resp):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/missing")
        assert excinfo.value.category == "http_status"

    def test_timeout_raises_timeout(self):
        with patch("sbtmint.verifier.httpx.get", side_effect=httpx.ReadTimeout("timed out")):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/slow")
        assert excinfo.value.category == "timeout"

    def test_connect_error_raises_transport(self):
        with patch("sbtmint.verifier.httpx.get", side_effect=httpx.ConnectError("refused")):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/abc")
        assert excinfo.value.category == "transport"

    def test_invalid_url_raises_transport(self):
        err = httpx.InvalidURL("Invalid non-printable ASCII character in URL")
        with patch("sbtmint.verifier.httpx.get", side_effect=err):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/ab\ncd")
        assert excinfo.value.category == "transport"

    def test_html_body_raises_malformed(self):
        resp = _make_mock_response(200)
        with patch("sbtmint.verifier.httpx.get", return_value=resp):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/abc")
        assert excinfo.value.category == "malformed"

    def test_list_body_raises_malformed(self):
        resp = _make_mock_response(200, [{"id": "W1"}])
        with patch("sbtmint.verifier.httpx.get", return_value=resp):
            with pytest.raises(LookupFailure) as excinfo:
                OpenAlexClient().get_work("10.1/abc")
        assert excinfo.value.category == "malformed"


# ---------------------------------------------------------------------------
# MetadataVerifier
# ---------------------------------------------------------------------------
class TestMetadataVerifier:
    def test_match_returns_canonical_work(self, registry, lookup):
        result = MetadataVerifier(registry, lookup).verify("10.1/abc", "graph theory basics ")
        assert result == CanonicalWork(
            external_id="https://openalex.org/W1",
            canonical_title="Graph Theory Basics",
        )

    def test_mismatch_carries_canonical_title(self, registry, lookup):
        result = MetadataVerifier(registry, lookup).verify("10.1/xyz", "Wrong Title")
        assert result == Rejection.title_mismatch("Correct Title")
        assert result.message == 'Title mismatch! Expected title: "Correct Title"'

    def test_duplicate_skips_lookup(self, registry, lookup):
        registry.add("10.1/abc")
        result = MetadataVerifier(registry, lookup).verify("10.1/abc", "Graph Theory Basics")
        assert isinstance(result, Rejection)
        assert result.kind is RejectKind.DUPLICATE
        assert lookup.calls == []

    def test_reserved_identifier_is_not_a_duplicate(self, registry, lookup):
        registry.try_reserve("10.1/abc")
        result = MetadataVerifier(registry, lookup).verify("10.1/abc", "Graph Theory Basics")
        assert isinstance(result, CanonicalWork)

    def test_unknown_doi_is_not_found(self, registry, lookup):
        result = MetadataVerifier(registry, lookup).verify("10.1/missing", "Anything")
        assert result == Rejection.not_found()
        assert result.message == "Invalid DOI. Please check and try again."

    @pytest.mark.parametrize("payload", [
        {"id": "https://openalex.org/W9"},
        {"title": "Graph Theory Basics"},
        {"id": "", "title": "Graph Theory Basics"},
        {"id": "https://openalex.org/W9", "title": None},
    ])
    def test_missing_id_or_title_is_not_found(self, payload):
        lookup = FakeOpenAlex({"10.1/abc": payload})
        result = MetadataVerifier(InMemoryIdentifierRegistry(), lookup).verify(
            "10.1/abc", "Graph Theory Basics",
        )
        assert result == Rejection.not_found()

    def test_timeout_is_not_found(self, registry):
        client = OpenAlexClient(timeout=0.5)
        with patch("sbtmint.verifier.httpx.get", side_effect=httpx.ConnectTimeout("slow")):
            result = MetadataVerifier(registry, client).verify("10.1/abc", "Graph Theory Basics")
        assert result == Rejection.not_found()

    def test_control_character_in_doi_is_not_found(self, registry):
        # httpx rejects the URL while building the request, before any I/O
        result = MetadataVerifier(registry, OpenAlexClient()).verify("10.1/ab\ncd", "Some Title")
        assert result == Rejection.not_found()

    def test_server_error_is_not_found(self, registry):
        resp = _make_mock_response(503, {"error": "unavailable"})
        with patch("sbtmint.verifier.httpx.get", return_value=resp):
            result = MetadataVerifier(registry, OpenAlexClient()).verify("10.1/abc", "X")
        assert result == Rejection.not_found()

    def test_verifier_never_adds_to_registry(self, registry, lookup):
        MetadataVerifier(registry, lookup).verify("10.1/abc", "Graph Theory Basics")
        assert registry.has("10.1/abc") is False

    def test_default_client_is_openalex(self, registry):
        verifier = MetadataVerifier(registry)
        assert isinstance(verifier.client, OpenAlexClient)

    def test_lookup_uses_trimmed_fields_only_for_comparison(self):
        lookup = FakeOpenAlex({"10.1/dl": work(" Deep Learning ")})
        result = MetadataVerifier(InMemoryIdentifierRegistry(), lookup).verify("10.1/dl", "deep learning")
        assert isinstance(result, CanonicalWork)
        assert result.canonical_title == " Deep Learning "
