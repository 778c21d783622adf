"""Fee rate and amount parsing helpers."""

from __future__ import annotations

from typing import Any

from .errors import LocalValidationError

U64_MAX = 2**64 - 1
WU_PER_VB = 4
# spaced deserializes fee rates as sat per 1000 weight units.
KWU_PER_VB = 1000 // WU_PER_VB


def parse_fee_rate(raw: Any) -> int:
    """Return a positive integer sat/vB fee rate or raise ``LocalValidationError``."""

    if isinstance(raw, bool):
        raise LocalValidationError(f"Invalid fee rate: {raw!r}")
    if isinstance(raw, int):
        value = raw
    else:
        try:
            value = int(str(raw).strip())
        except ValueError as exc:
            raise LocalValidationError(f"Invalid fee rate {raw!r}: expected sat/vB integer") from exc
    if value <= 0:
        raise LocalValidationError(f"Invalid fee rate {value}: must be greater than 0 sat/vB")
    if value * KWU_PER_VB > U64_MAX:
        raise LocalValidationError(f"Invalid fee rate {value}: too large")
    return value


def sat_vb_to_sat_kwu(rate: int) -> int:
    """Convert a sat/vB fee rate to sat/kwu."""

    return rate * KWU_PER_VB


def parse_amount(raw: Any, label: str = "amount") -> int:
    """Parse a satoshi amount (non-negative u64)."""

    if isinstance(raw, bool):
        raise LocalValidationError(f"Invalid {label}: {raw!r}")
    try:
        value = raw if isinstance(raw, int) else int(str(raw).strip())
    except ValueError as exc:
        raise LocalValidationError(f"Invalid {label} {raw!r}: expected an integer in satoshi") from exc
    if value < 0 or value > U64_MAX:
        raise LocalValidationError(f"Invalid {label} {value}: out of range")
    return value
