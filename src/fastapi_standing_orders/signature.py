"""App proxy request signature verification."""

from __future__ import annotations

import hashlib
import hmac
import re
from collections.abc import Iterable, Mapping

SIGNATURE_PARAM = "signature"

_HEX_DIGEST = re.compile(r"[0-9a-f]{64}")

QueryParams = Mapping[str, str] | Iterable[tuple[str, str]]


def _pairs(params: QueryParams) -> Iterable[tuple[str, str]]:
    if isinstance(params, Mapping):
        return params.items()
    return params


def build_message(params: QueryParams) -> str:
    """Rebuild the string the proxy signed.

    The ``signature`` parameter is dropped, repeated keys are joined with
    commas and ``key=value`` pairs are concatenated in sorted key order
    without separators.
    """
    grouped: dict[str, list[str]] = {}
    for key, value in _pairs(params):
        if key == SIGNATURE_PARAM:
            continue
        grouped.setdefault(key, []).append(value)
    return "".join(
        f"{key}={','.join(grouped[key])}" for key in sorted(grouped)
    )


def compute_signature(params: QueryParams, secret: str) -> str:
    """Hex HMAC-SHA256 of the signed message."""
    return hmac.new(
        secret.encode("utf-8"),
        build_message(params).encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def verify_signature(
    params: QueryParams,
    signature: str | None,
    secret: str | None,
) -> bool:
    """Check ``signature`` against ``params`` signed with ``secret``.

    Returns ``False`` instead of raising when the secret is unset or the
    signature is missing or is not exactly 64 lower-case hex digits.
    """
    if not secret or not signature:
        return False
    if not _HEX_DIGEST.fullmatch(signature):
        return False
    return hmac.compare_digest(signature, compute_signature(params, secret))
