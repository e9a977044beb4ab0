"""
Integrity hashing for private package data.

Private payloads (package details, PII, transfer terms) never go on-chain.
Instead the owning organization submits a SHA-256 digest of a canonical
JSON rendering of the payload plus a random salt, and later proves that
privately-held data still matches by recomputing the same digest.

Canonical form:
    - object keys sorted at every nesting level
    - compact separators, no whitespace
    - UTF-8, non-ASCII characters kept as-is
    - numbers rendered like ECMAScript Number#toString (5.0 -> 5,
      1e-07 -> 1e-7, 1e21 -> 1e+21)
    - None kept as null, never dropped
    - NaN / Infinity rejected

Example:
    >>> salt = generate_salt()
    >>> digest = compute_store_object_hash(details, {"name": "Alice"}, salt)
    >>> await packages.check_package_details_and_pii_hash("pkg-1", digest)
"""

from __future__ import annotations

import hashlib
import hmac
import json
import math
import secrets
from collections.abc import Mapping
from decimal import Decimal
from enum import Enum
from typing import Any

from fraktal.core.exceptions import ValidationError
from fraktal.core.types import PackageDetails, StoreObject


def _normalize(value: Any) -> Any:
    """Convert a value tree into plain JSON types."""
    if isinstance(value, Enum):
        return _normalize(value.value)
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            raise ValidationError("Cannot hash non-finite number", details={"value": repr(value)})
        return value
    if hasattr(value, "to_api_dict"):
        return _normalize(value.to_api_dict())
    if isinstance(value, Mapping):
        normalized = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise ValidationError(
                    "Object keys must be strings", details={"key": repr(key)}
                )
            normalized[key] = _normalize(item)
        return normalized
    if isinstance(value, (list, tuple)):
        return [_normalize(item) for item in value]
    raise ValidationError(
        f"Value of type {type(value).__name__} is not JSON-representable",
        details={"type": type(value).__name__},
    )


def format_number(value: float) -> str:
    """
    Render a finite float the way ECMAScript Number#toString does.

    repr() already yields the shortest digit string that round-trips, which
    is the digit string ECMAScript picks; only the placement of the decimal
    point and the exponent notation differ.
    """
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    _, digit_tuple, exponent = Decimal(repr(abs(value))).as_tuple()
    digits = "".join(map(str, digit_tuple)).rstrip("0")
    exponent += len(digit_tuple) - len(digits)
    k = len(digits)
    n = exponent + k  # position of the decimal point relative to the digits

    if k <= n <= 21:
        return sign + digits + "0" * (n - k)
    if 0 < n <= 21:
        return f"{sign}{digits[:n]}.{digits[n:]}"
    if -6 < n <= 0:
        return f"{sign}0.{'0' * -n}{digits}"
    mantissa = digits if k == 1 else f"{digits[0]}.{digits[1:]}"
    return f"{sign}{mantissa}e{'+' if n > 0 else '-'}{abs(n - 1)}"


def _encode(value: Any) -> str:
    if value is None:
        return "null"
    if value is True:
        return "true"
    if value is False:
        return "false"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, dict):
        members = (f"{_encode(key)}:{_encode(value[key])}" for key in sorted(value))
        return "{" + ",".join(members) + "}"
    return "[" + ",".join(_encode(item) for item in value) + "]"


def canonical_json(value: Any) -> str:
    """Render a JSON-safe value tree deterministically."""
    return _encode(_normalize(value))


def compute_integrity_hash(parts: Any) -> str:
    """
    Compute the lowercase hex SHA-256 digest of the canonical form of `parts`.

    The same logical value always yields the same digest, regardless of key
    insertion order.
    """
    return hashlib.sha256(canonical_json(parts).encode("utf-8")).hexdigest()


def verify_integrity_hash(parts: Any, expected_hash: str) -> bool:
    """Check `parts` against a previously computed digest."""
    actual = compute_integrity_hash(parts)
    return hmac.compare_digest(actual, expected_hash.strip().lower())


def build_store_object(
    package_details: PackageDetails | Mapping[str, Any],
    pii: Mapping[str, Any],
    salt: str,
) -> dict[str, Any]:
    """Assemble the object hashed at creation and presented at transfer."""
    if isinstance(package_details, PackageDetails):
        return StoreObject(salt=salt, pii=dict(pii), package_details=package_details).to_api_dict()
    if not salt:
        raise ValidationError("Salt cannot be empty")
    return {"salt": salt, "pii": dict(pii), "packageDetails": dict(package_details)}


def compute_store_object_hash(
    package_details: PackageDetails | Mapping[str, Any],
    pii: Mapping[str, Any],
    salt: str,
) -> str:
    """Digest of the salted package details + PII store object."""
    return compute_integrity_hash(build_store_object(package_details, pii, salt))


def generate_salt(nbytes: int = 16) -> str:
    """Generate a random hex salt."""
    return secrets.token_hex(nbytes)
