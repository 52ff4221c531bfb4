# tests/test_compliance_window.py
"""Tests for cancellation / accept-reject / extension timing rules."""

from datetime import datetime, timedelta, timezone

import pytest

from gstdesk.domain.services.compliance_window import (
    EWB_ACCEPT_REJECT,
    EWB_TRANSPORTER_CHANGE,
    IRN_CANCELLATION,
    IST,
    POLICIES,
    can_accept_or_reject_ewb,
    can_cancel_ewb,
    can_cancel_irn,
    evaluate,
    hours_elapsed,
    hours_remaining,
    is_action_permitted,
    is_extension_permitted,
    max_extension_deadline,
    parse_timestamp,
)

H = timedelta(hours=1)


# ---------------------------------------------------------------------------
# parsing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "raw",
    [
        "15/01/2025 10:00:00 AM",
        "15/01/2025 10:00:00",
        "15/01/2025 10:00",
        "2025-01-15 10:00:00",
        "2025-01-15T10:00:00",
        "2025-01-15T04:30:00Z",
        "2025-01-15T10:00:00+05:30",
    ],
)
def test_parse_portal_formats(raw, ack_time):
    assert parse_timestamp(raw) == ack_time


def test_naive_datetime_is_ist(ack_time):
    assert parse_timestamp(datetime(2025, 1, 15, 10, 0)) == ack_time


@pytest.mark.parametrize("raw", [None, "", "not a date", "32/13/2025", 12345])
def test_unparseable_timestamp(raw):
    assert parse_timestamp(raw) is None


# ---------------------------------------------------------------------------
# remaining hours
# ---------------------------------------------------------------------------

def test_full_window_when_no_time_elapsed(ack_time):
    assert hours_remaining(ack_time, ack_time, 24) == 24.0
    assert hours_remaining(ack_time, ack_time, 72) == 72.0


def test_zero_at_and_after_window_end(ack_time):
    assert hours_remaining(ack_time, ack_time + 24 * H, 24) == 0.0
    assert hours_remaining(ack_time, ack_time + 24 * H + timedelta(seconds=1), 24) == 0.0
    assert hours_remaining(ack_time, ack_time + 100 * H, 24) == 0.0


def test_fractional_hours_are_not_rounded(ack_time):
    assert hours_remaining(ack_time, ack_time + timedelta(minutes=90), 24) == 22.5
    assert hours_elapsed(ack_time, ack_time + timedelta(minutes=90)) == 1.5


def test_unparseable_reference_is_expired(ack_time):
    assert hours_remaining("garbage", ack_time, 24) == 0.0
    assert is_action_permitted("garbage", ack_time, 24) is False


def test_reference_in_future_is_expired(ack_time):
    assert hours_remaining(ack_time + H, ack_time, 24) == 0.0


def test_mixed_timezones_compare_as_instants(ack_time):
    utc_now = (ack_time + 2 * H).astimezone(timezone.utc)
    assert hours_remaining("15/01/2025 10:00:00", utc_now, 24) == 22.0


# ---------------------------------------------------------------------------
# permission
# ---------------------------------------------------------------------------

def test_cancel_window_expired_after_25_hours(ack_time):
    now = ack_time + 25 * H
    assert is_action_permitted(ack_time, now, 24, "GENERATED", "GENERATED") is False
    assert hours_remaining(ack_time, now, 24) == 0.0
    assert can_cancel_irn(ack_time, now) is False


def test_accept_window_open_after_10_hours(ack_time):
    status = evaluate(EWB_ACCEPT_REJECT, ack_time, ack_time + 10 * H, "RECEIVED")
    assert status.permitted is True
    assert status.hours_remaining == 62.0
    assert status.expires_at == ack_time + 72 * H


def test_exact_window_end_is_not_permitted(ack_time):
    assert can_cancel_ewb(ack_time, ack_time + 24 * H) is False
    assert can_cancel_ewb(ack_time, ack_time + 24 * H - timedelta(seconds=1)) is True
    assert can_accept_or_reject_ewb(ack_time, ack_time + 72 * H) is False


@pytest.mark.parametrize("elapsed", [0, 1, 12, 23, 25, 100])
@pytest.mark.parametrize("status", ["CANCELLED", "FAILED", "", None, "ACTIVE"])
def test_wrong_status_never_permitted(ack_time, elapsed, status):
    assert is_action_permitted(ack_time, ack_time + elapsed * H, 24, status, "GENERATED") is False
    assert evaluate(IRN_CANCELLATION, ack_time, ack_time + elapsed * H, status).permitted is False


def test_status_match_ignores_case_and_whitespace(ack_time):
    assert can_cancel_irn(ack_time, ack_time + H, " generated ") is True
    assert can_accept_or_reject_ewb(ack_time, ack_time + H, "Received") is True


def test_transporter_change_has_no_window(ack_time):
    assert evaluate(EWB_TRANSPORTER_CHANGE, None, ack_time + 1000 * H, "ACTIVE").permitted is True
    assert evaluate(EWB_TRANSPORTER_CHANGE, None, ack_time, "CANCELLED").permitted is False


def test_policies_registry():
    assert POLICIES["irn_cancellation"].window_hours == 24
    assert POLICIES["ewb_cancellation"].permitted_status == "ACTIVE"
    assert POLICIES["ewb_accept_reject"].window_hours == 72
    assert POLICIES["ewb_transporter_change"].window_hours is None


# ---------------------------------------------------------------------------
# extension
# ---------------------------------------------------------------------------

def test_extension_ceiling_is_from_now(ack_time):
    now = ack_time + 30 * H
    assert max_extension_deadline(now) == now + 72 * H


def test_extension_rules(ack_time):
    now = ack_time
    current = now + 5 * H
    assert is_extension_permitted(current, now + 48 * H, now) is True
    assert is_extension_permitted(current, now + 72 * H, now) is True
    assert is_extension_permitted(current, now + 72 * H + timedelta(minutes=1), now) is False
    assert is_extension_permitted(current, current, now) is False
    assert is_extension_permitted(current, now + 4 * H, now) is False
    assert is_extension_permitted(None, now - H, now) is False
    assert is_extension_permitted(None, "bad", now) is False


def test_extension_accepts_portal_strings():
    now = datetime(2025, 1, 15, 10, 0, tzinfo=IST)
    assert is_extension_permitted("15/01/2025 23:59", "17/01/2025 10:00", now) is True
    assert is_extension_permitted("15/01/2025 23:59", "18/01/2025 10:01", now) is False


# ---------------------------------------------------------------------------
# end of the datetime range
# ---------------------------------------------------------------------------

def test_far_future_reference_is_closed_without_error(ack_time):
    result = evaluate(IRN_CANCELLATION, "9999-12-31T23:00:00", ack_time, "GENERATED")
    assert result.permitted is False
    assert result.hours_remaining == 0.0


def test_expiry_past_datetime_max_is_none():
    result = evaluate(IRN_CANCELLATION, "9999-12-31T22:00:00", "9999-12-31T23:00:00", "GENERATED")
    assert result.expires_at is None


def test_extension_ceiling_past_datetime_max():
    assert max_extension_deadline("9999-12-31T22:00:00") is None
    assert is_extension_permitted(None, "9999-12-31T23:00:00", "9999-12-31T22:00:00") is False
