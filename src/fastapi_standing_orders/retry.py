"""Outbound call executor with per-attempt timeouts and exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, replace
from typing import Any

import httpx

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[Any]]


@dataclass(frozen=True)
class Endpoint:
    """Method and path template of one remote operation."""

    method: str
    path: str

    def bind(self, **params: Any) -> Endpoint:
        return replace(self, path=self.path.format(**params))


@dataclass(frozen=True)
class RetryPolicy:
    """How many times and how patiently a call is attempted.

    ``max_backoff_seconds`` caps a single backoff delay; ``None`` leaves
    the exponential growth uncapped.
    """

    max_attempts: int = 3
    timeout_seconds: float = 10.0
    backoff_seconds: float = 0.5
    honor_retry_after: bool = True
    max_backoff_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")


PROXY_POLICY = RetryPolicy(max_attempts=2, timeout_seconds=10.0)
ADMIN_POLICY = RetryPolicy(max_attempts=5, timeout_seconds=30.0, backoff_seconds=1.0)


@dataclass(frozen=True)
class Success:
    response: httpx.Response


@dataclass(frozen=True)
class ClientError:
    """Non-retryable response: any non-2xx status except 429 and 5xx."""

    status_code: int
    body: str


@dataclass(frozen=True)
class RetryableFailure:
    """429, 5xx, timeout or transport error.

    ``status_code`` is ``None`` for network failures.
    """

    status_code: int | None = None
    body: str = ""
    error: str = ""
    retry_after: float | None = None


@dataclass(frozen=True)
class Exhausted:
    last: RetryableFailure
    attempts: int


CallOutcome = Success | ClientError | RetryableFailure | Exhausted


def parse_retry_after(value: str | None) -> int | None:
    """Parse a ``Retry-After`` header given as whole seconds.

    Anything but ASCII digits (fractions, exponents, ``inf``, ``nan``,
    HTTP dates) is ignored.
    """
    if value is None:
        return None
    value = value.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    return int(value)


def compute_backoff_delay(
    attempt: int,
    policy: RetryPolicy,
    retry_after: float | None = None,
) -> float:
    """Compute the wait before the next attempt.

    ``attempt`` is the 0-based index of the attempt that just failed.

    delay = backoff_seconds * 2^attempt, unless the server asked for a
    specific delay and the policy honors it.
    """
    if retry_after is not None and policy.honor_retry_after:
        return retry_after
    delay = policy.backoff_seconds * (2**attempt)
    if policy.max_backoff_seconds is not None:
        delay = min(delay, policy.max_backoff_seconds)
    return delay


def classify_response(response: httpx.Response) -> CallOutcome:
    status = response.status_code
    if 200 <= status < 300:
        return Success(response)
    if status == 429 or 500 <= status < 600:
        return RetryableFailure(
            status_code=status,
            body=response.text,
            retry_after=parse_retry_after(response.headers.get("Retry-After")),
        )
    return ClientError(status_code=status, body=response.text)


async def _attempt(
    http: httpx.AsyncClient,
    endpoint: Endpoint,
    policy: RetryPolicy,
    json: Any,
    params: Mapping[str, Any] | None,
    headers: Mapping[str, str] | None,
) -> CallOutcome:
    try:
        async with asyncio.timeout(policy.timeout_seconds):
            response = await http.request(
                endpoint.method,
                endpoint.path,
                json=json,
                params=params,
                headers=headers,
            )
    except TimeoutError:
        return RetryableFailure(
            error=f"timed out after {policy.timeout_seconds}s",
        )
    except httpx.TransportError as exc:
        return RetryableFailure(error=str(exc) or type(exc).__name__)
    return classify_response(response)


async def execute(
    http: httpx.AsyncClient,
    endpoint: Endpoint,
    policy: RetryPolicy,
    *,
    json: Any = None,
    params: Mapping[str, Any] | None = None,
    headers: Mapping[str, str] | None = None,
    sleep: Sleep = asyncio.sleep,
) -> CallOutcome:
    """Perform one remote call, retrying retryable failures.

    Returns ``Success`` or ``ClientError`` as soon as one is observed,
    and ``Exhausted`` when the last allowed attempt was still retryable.
    """
    last = RetryableFailure(error="no attempt made")

    for attempt in range(policy.max_attempts):
        outcome = await _attempt(http, endpoint, policy, json, params, headers)
        if not isinstance(outcome, RetryableFailure):
            return outcome

        last = outcome
        if attempt + 1 >= policy.max_attempts:
            break

        delay = compute_backoff_delay(attempt, policy, outcome.retry_after)
        logger.warning(
            "%s %s attempt %d/%d failed (%s), retrying in %.2fs",
            endpoint.method,
            endpoint.path,
            attempt + 1,
            policy.max_attempts,
            outcome.status_code or outcome.error,
            delay,
        )
        await sleep(delay)

    logger.error(
        "%s %s exhausted after %d attempts",
        endpoint.method,
        endpoint.path,
        policy.max_attempts,
    )
    return Exhausted(last=last, attempts=policy.max_attempts)
