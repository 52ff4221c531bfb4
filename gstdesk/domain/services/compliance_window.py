# gstdesk/domain/services/compliance_window.py
"""
Government timing rules for e-Invoice / e-WayBill lifecycle actions.

All predicates take the current time as an argument. Timestamps may be
``datetime`` objects or the string formats the IRP and EWB portals return;
naive values are read as IST. A reference that cannot be parsed means the
window is already closed.

Policies
--------
* IRN cancellation          24h from acknowledgment, status GENERATED
* e-WayBill cancellation     24h from generation,     status ACTIVE
* e-WayBill accept / reject  72h from receipt,        status RECEIVED
* Transporter change         no window,               status ACTIVE
* Validity extension         new expiry <= now + 72h, after current expiry
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from gstdesk.domain.models.master_codes import (
    EWB_STATUS_ACTIVE,
    EWB_STATUS_RECEIVED,
    IRN_STATUS_GENERATED,
)

IST = timezone(timedelta(hours=5, minutes=30), name="IST")

EXTENSION_CEILING_HOURS = 72

_SECONDS_PER_HOUR = 3600

# Formats seen in IRP / EWB responses and the dashboard date pickers
_TIMESTAMP_FORMATS = (
    "%d/%m/%Y %I:%M:%S %p",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
)


@dataclass(frozen=True)
class CompliancePolicy:
    name: str
    window_hours: float | None
    permitted_status: str | None


IRN_CANCELLATION = CompliancePolicy("irn_cancellation", 24, IRN_STATUS_GENERATED)
EWB_CANCELLATION = CompliancePolicy("ewb_cancellation", 24, EWB_STATUS_ACTIVE)
EWB_ACCEPT_REJECT = CompliancePolicy("ewb_accept_reject", 72, EWB_STATUS_RECEIVED)
EWB_TRANSPORTER_CHANGE = CompliancePolicy("ewb_transporter_change", None, EWB_STATUS_ACTIVE)

POLICIES: dict[str, CompliancePolicy] = {
    p.name: p
    for p in (IRN_CANCELLATION, EWB_CANCELLATION, EWB_ACCEPT_REJECT, EWB_TRANSPORTER_CHANGE)
}


@dataclass(frozen=True)
class WindowStatus:
    """Outcome of evaluating a policy at a given instant."""
    policy: str
    permitted: bool
    hours_remaining: float
    expires_at: datetime | None = None
    status_ok: bool = True


# ---------------------------------------------------------------------------
# Timestamp helpers
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> datetime | None:
    """Parse a portal timestamp into an aware datetime, or ``None``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        parsed = None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            for fmt in _TIMESTAMP_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
        if parsed is None:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=IST)
    return parsed


def _shift(moment: datetime, hours: float) -> datetime | None:
    """``moment + hours``, or ``None`` past the ``datetime`` range."""
    try:
        return moment + timedelta(hours=hours)
    except OverflowError:
        return None


def hours_elapsed(reference: Any, now: Any) -> float | None:
    """Hours between ``reference`` and ``now``; ``None`` if either is unusable."""
    ref = parse_timestamp(reference)
    current = parse_timestamp(now)
    if ref is None or current is None:
        return None
    return (current - ref).total_seconds() / _SECONDS_PER_HOUR


def hours_remaining(reference: Any, now: Any, window_hours: float) -> float:
    """Hours left in a ``window_hours`` window opened at ``reference``.

    Never negative. An unparseable reference, or one later than ``now``,
    counts as an expired window.
    """
    elapsed = hours_elapsed(reference, now)
    if elapsed is None or elapsed < 0:
        return 0.0
    return max(0.0, float(window_hours) - elapsed)


def _status_matches(status: Any, permitted_status: str | None) -> bool:
    if permitted_status is None:
        return True
    if not isinstance(status, str):
        return False
    return status.strip().upper() == permitted_status.upper()


def is_action_permitted(
    reference: Any,
    now: Any,
    window_hours: float,
    status: Any = None,
    permitted_status: str | None = None,
) -> bool:
    """True while the window is open and the status is the permitted one."""
    if not _status_matches(status, permitted_status):
        return False
    return hours_remaining(reference, now, window_hours) > 0


# ---------------------------------------------------------------------------
# Policy evaluation
# ---------------------------------------------------------------------------

def evaluate(
    policy: CompliancePolicy,
    reference: Any,
    now: Any,
    status: Any = None,
) -> WindowStatus:
    """Evaluate ``policy`` for an entity in ``status`` anchored at ``reference``."""
    status_ok = _status_matches(status, policy.permitted_status)

    if policy.window_hours is None:
        return WindowStatus(
            policy=policy.name,
            permitted=status_ok,
            hours_remaining=0.0,
            status_ok=status_ok,
        )

    remaining = hours_remaining(reference, now, policy.window_hours)
    ref = parse_timestamp(reference)
    expires_at = _shift(ref, policy.window_hours) if ref is not None else None
    return WindowStatus(
        policy=policy.name,
        permitted=status_ok and remaining > 0,
        hours_remaining=remaining,
        expires_at=expires_at,
        status_ok=status_ok,
    )


def can_cancel_irn(ack_date: Any, now: Any, status: Any = IRN_STATUS_GENERATED) -> bool:
    return evaluate(IRN_CANCELLATION, ack_date, now, status).permitted


def can_cancel_ewb(generated_at: Any, now: Any, status: Any = EWB_STATUS_ACTIVE) -> bool:
    return evaluate(EWB_CANCELLATION, generated_at, now, status).permitted


def can_accept_or_reject_ewb(received_at: Any, now: Any, status: Any = EWB_STATUS_RECEIVED) -> bool:
    return evaluate(EWB_ACCEPT_REJECT, received_at, now, status).permitted


# ---------------------------------------------------------------------------
# Validity extension
# ---------------------------------------------------------------------------

def max_extension_deadline(now: Any) -> datetime | None:
    """Latest expiry an extension may request: ``now + 72h``."""
    current = parse_timestamp(now)
    if current is None:
        return None
    return _shift(current, EXTENSION_CEILING_HOURS)


def is_extension_permitted(current_expiry: Any, new_expiry: Any, now: Any) -> bool:
    """New expiry must be after the current one, in the future, and <= now + 72h.

    A missing/unparseable current expiry skips that comparison only.
    """
    new = parse_timestamp(new_expiry)
    current_time = parse_timestamp(now)
    if new is None or current_time is None:
        return False
    if new <= current_time:
        return False
    current = parse_timestamp(current_expiry)
    if current is not None and new <= current:
        return False
    deadline = _shift(current_time, EXTENSION_CEILING_HOURS)
    return deadline is not None and new <= deadline
