"""Access control for the SBTMint API.

- Bearer key check against ``SBTMINT_API_KEY`` (bypassed in demo mode)
- Sliding-window throttles: per caller for submit and read endpoints,
  and per DOI so one work cannot be hammered through the lookup/mint path
- ``X-Request-ID`` propagation and one log line per request
"""

import hashlib
import logging
import threading
import time
import uuid
from collections import defaultdict, deque

from fastapi import Depends, HTTPException, Request, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sbtmint.config import get_config

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)

DEMO_CALLER = "demo"


# ---------------------------------------------------------------------------
# API key
# ---------------------------------------------------------------------------

def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer_scheme),
) -> str:
    """Return the caller's key, or ``"demo"`` when demo mode is on."""
    cfg = get_config()
    if cfg.demo_mode:
        return DEMO_CALLER

    if not cfg.api_key:
        # lifespan refuses to start without a key; only reachable after a config reload
        raise HTTPException(status_code=500, detail="SBTMINT_API_KEY is not configured.")

    if credentials is None or credentials.credentials != cfg.api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing or wrong API key. Send 'Authorization: Bearer <key>'.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


# ---------------------------------------------------------------------------
# Throttling
# ---------------------------------------------------------------------------

class SlidingWindowLimiter:
    """Counts hits per key over a rolling window."""

    def __init__(self) -> None:
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def hit(self, key: str, limit: int, window_seconds: float) -> None:
        """Record one hit for *key*; raise 429 if *limit* is already reached."""
        now = time.monotonic()
        with self._lock:
            hits = self._hits[key]
            while hits and now - hits[0] >= window_seconds:
                hits.popleft()
            if len(hits) >= limit:
                retry_after = max(1, int(window_seconds - (now - hits[0])) + 1)
                logger.info("Throttled %s (%d per %ss)", key, limit, window_seconds)
                raise HTTPException(
                    status_code=429,
                    detail=f"Too many requests. Limit is {limit} per {window_seconds:g}s.",
                    headers={"Retry-After": str(retry_after)},
                )
            hits.append(now)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


limiter = SlidingWindowLimiter()


def reset_rate_limits() -> None:
    limiter.reset()


def _caller_key(api_key: str) -> str:
    # Buckets are keyed by a digest, not the raw key
    return hashlib.sha256(api_key.encode()).hexdigest()[:16]


def rate_limit_submit(api_key: str = Depends(require_api_key)) -> str:
    """Throttle verify/submit calls per caller (``submit_rate_limit``)."""
    cfg = get_config()
    limiter.hit(
        f"submit:{_caller_key(api_key)}",
        cfg.submit_rate_limit,
        cfg.rate_limit_window_seconds,
    )
    return api_key


def rate_limit_read(api_key: str = Depends(require_api_key)) -> str:
    """Throttle registry and membership reads per caller (``read_rate_limit``)."""
    cfg = get_config()
    limiter.hit(
        f"read:{_caller_key(api_key)}",
        cfg.read_rate_limit,
        cfg.rate_limit_window_seconds,
    )
    return api_key


def throttle_doi(doi: str) -> None:
    """Throttle submissions of one DOI across all callers (``doi_submit_limit``)."""
    cfg = get_config()
    limiter.hit(f"doi:{doi}", cfg.doi_submit_limit, cfg.rate_limit_window_seconds)


# ---------------------------------------------------------------------------
# Request tracing
# ---------------------------------------------------------------------------

def _client_fingerprint(request: Request) -> str:
    host = request.client.host if request.client else None
    if not host:
        return "unknown"
    return hashlib.sha256(host.encode()).hexdigest()[:12]


async def request_logging_middleware(request: Request, call_next):
    """Echo or assign ``X-Request-ID`` and log method, path, status and latency."""
    incoming = request.headers.get("X-Request-ID", "")
    request_id = incoming if 0 < len(incoming) <= 64 else uuid.uuid4().hex
    start = time.monotonic()

    response: Response = await call_next(request)

    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request_id=%s client=%s %s %s -> %d in %dms",
        request_id,
        _client_fingerprint(request),
        request.method,
        request.url.path,
        response.status_code,
        int((time.monotonic() - start) * 1000),
    )
    return response
