"""Decision-table tests for the hiring and readiness translators."""
from __future__ import annotations

import datetime as dt

import pytest

from config.settings import settings
from interviews.errors import UnmappableRecordError
from interviews.workflow import (
    build_hiring_interview_task,
    build_readiness_interview_task,
    format_datetime,
    is_overdue,
    suggested_slot_times,
)
from storage.interviews import (
    AvailabilityRequestRecord,
    HiringApplicationRecord,
    HiringSlotRecord,
    ReadinessGateRecord,
    ReadinessSlotRecord,
)


NOW = dt.datetime(2025, 3, 10, 15, 0, tzinfo=dt.timezone.utc)


def _app(**overrides) -> HiringApplicationRecord:
    data = dict(
        id="app1",
        applicant_id="u1",
        applicant_name="Alex",
        position_title="Math Tutor",
        chapter_name="North",
        status="SUBMITTED",
        submitted_at=NOW - dt.timedelta(days=3),
    )
    data.update(overrides)
    return HiringApplicationRecord(**data)


def _hslot(status: str, hours: float = 24, **overrides) -> HiringSlotRecord:
    data = dict(id=f"s-{status.lower()}", status=status, scheduled_at=NOW + dt.timedelta(hours=hours))
    data.update(overrides)
    return HiringSlotRecord(**data)


def _gate(**overrides) -> ReadinessGateRecord:
    data = dict(
        id="gate1",
        instructor_id="i1",
        instructor_name="Ivy",
        chapter_name="North",
        status="REQUIRED",
        updated_at=NOW - dt.timedelta(days=1),
    )
    data.update(overrides)
    return ReadinessGateRecord(**data)


def _rslot(status: str, hours: float = 24, **overrides) -> ReadinessSlotRecord:
    data = dict(id=f"r-{status.lower()}", status=status, scheduled_at=NOW + dt.timedelta(hours=hours))
    data.update(overrides)
    return ReadinessSlotRecord(**data)


def _reviewer_hiring(record):
    return build_hiring_interview_task(record, audience="team", viewer_role="reviewer", now=NOW)


def _applicant_hiring(record):
    return build_hiring_interview_task(record, audience="mine", viewer_role="applicant", now=NOW)


def _reviewer_readiness(record, allow_waive=False):
    return build_readiness_interview_task(
        record, audience="team", viewer_role="reviewer", now=NOW, allow_waive=allow_waive
    )


def _instructor_readiness(record):
    return build_readiness_interview_task(record, audience="mine", viewer_role="instructor", now=NOW)


# ----------------------------------------------------------------------
# Time helpers
# ----------------------------------------------------------------------
def test_overdue_uses_slot_end_plus_grace(monkeypatch):
    slot = _hslot("CONFIRMED", hours=-0.5, duration_minutes=30)
    assert is_overdue(slot, NOW)
    monkeypatch.setattr(settings, "SCHEDULED_GRACE_MINUTES", 15)
    assert not is_overdue(slot, NOW)


def test_overdue_falls_back_to_default_duration():
    slot = _hslot("CONFIRMED", hours=-0.25)
    assert slot.duration_minutes is None
    assert not is_overdue(slot, NOW)


def test_suggested_slot_times_follow_lead_time(monkeypatch):
    monkeypatch.setattr(settings, "SLOT_LEAD_HOURS", 24)
    assert suggested_slot_times(NOW) == ["2025-03-11T15:00", "2025-03-11T17:00", "2025-03-11T19:00"]


def test_display_timezone_applies_and_unknown_zone_falls_back(monkeypatch):
    monkeypatch.setattr(settings, "DISPLAY_TIMEZONE", "America/New_York")
    assert format_datetime(NOW).startswith("2025-03-10 11:00")
    monkeypatch.setattr(settings, "DISPLAY_TIMEZONE", "Not/AZone")
    assert format_datetime(NOW) == "2025-03-10 15:00 UTC"
    assert format_datetime(None) == "-"


# ----------------------------------------------------------------------
# Hiring, applicant
# ----------------------------------------------------------------------
def test_applicant_with_proposed_slot_must_confirm():
    task = _applicant_hiring(_app(slots=[_hslot("POSTED")]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "confirm_hiring_slot"
    assert task.primary_action.slot_id == "s-posted"
    assert task.id == "hiring-app1"
    assert task.domain == "HIRING"
    assert task.audience == "mine"


def test_applicant_confirmed_future_slot_is_scheduled():
    task = _applicant_hiring(_app(slots=[_hslot("CONFIRMED", hours=2)]))
    assert task.stage == "SCHEDULED"
    assert task.primary_action.kind == "open_details"
    assert task.timestamps.scheduled_at == NOW + dt.timedelta(hours=2)


def test_applicant_overdue_slot_waits_on_interviewer():
    task = _applicant_hiring(_app(slots=[_hslot("CONFIRMED", hours=-2)]))
    assert task.stage == "BLOCKED"
    assert task.primary_action.kind == "open_details"
    assert any("interviewer" in blocker for blocker in task.blockers)


def test_applicant_completed_slot_is_completed():
    task = _applicant_hiring(_app(slots=[_hslot("COMPLETED", hours=-24, completed_at=NOW - dt.timedelta(hours=23))]))
    assert task.stage == "COMPLETED"
    assert task.timestamps.completed_at == NOW - dt.timedelta(hours=23)


def test_applicant_without_slot_is_blocked_on_reviewer():
    task = _applicant_hiring(_app())
    assert task.stage == "BLOCKED"
    assert task.blockers == ["Waiting for reviewer to post interview slot."]


def test_decision_recorded_completes_for_everyone():
    record = _app(status="INTERVIEW_COMPLETED", decision_accepted=True, slots=[_hslot("COMPLETED", hours=-48)])
    assert _applicant_hiring(record).stage == "COMPLETED"
    assert _reviewer_hiring(record).stage == "COMPLETED"
    assert _reviewer_hiring(record).primary_action.kind == "open_details"


# ----------------------------------------------------------------------
# Hiring, reviewer
# ----------------------------------------------------------------------
def test_reviewer_without_slots_posts_slots():
    task = _reviewer_hiring(_app())
    action = task.primary_action
    assert task.stage == "NEEDS_ACTION"
    assert action.kind == "post_hiring_slots_bulk"
    assert action.application_id == "app1"
    assert action.default_datetime_local == action.suggested_slots_local[0]
    assert len(action.suggested_slots_local) == 3
    assert action.default_duration_minutes == settings.DEFAULT_SLOT_DURATION_MINUTES
    assert task.title == "Alex · Math Tutor"
    assert task.subtitle.startswith("North · ")
    assert task.href == "/applications/app1"


def test_reviewer_optional_interview_is_completed():
    task = _reviewer_hiring(_app(interview_required=False))
    assert task.stage == "COMPLETED"
    assert task.primary_action.kind == "open_details"


def test_reviewer_overdue_confirmed_slot_completes_with_note():
    task = _reviewer_hiring(_app(slots=[_hslot("CONFIRMED", hours=-2)]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "complete_hiring_interview_and_note"
    assert task.primary_action.slot_id == "s-confirmed"
    assert task.primary_action.recommendation_options == ["STRONG_YES", "YES", "MAYBE", "NO"]


def test_reviewer_future_confirmed_slot_is_scheduled():
    task = _reviewer_hiring(_app(slots=[_hslot("CONFIRMED", hours=3)]))
    assert task.stage == "SCHEDULED"
    assert task.primary_action.kind == "open_details"


def test_reviewer_completed_without_recommendation_needs_note():
    task = _reviewer_hiring(_app(slots=[_hslot("COMPLETED", hours=-5)], recommendations=[None]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "add_hiring_recommendation_note"
    assert task.blockers == ["A recommendation is required before decision."]


def test_reviewer_completed_with_recommendation_is_ready_for_decision():
    task = _reviewer_hiring(_app(slots=[_hslot("COMPLETED", hours=-5)], recommendations=["YES"]))
    assert task.stage == "COMPLETED"
    assert task.primary_action.kind == "open_details"


def test_reviewer_posted_slot_waits_on_applicant():
    task = _reviewer_hiring(_app(slots=[_hslot("POSTED")]))
    assert task.stage == "BLOCKED"
    assert task.blockers == ["Applicant confirmation pending."]


def test_cancelled_slots_are_ignored():
    task = _reviewer_hiring(_app(slots=[_hslot("CANCELLED", hours=-10)]))
    assert task.primary_action.kind == "post_hiring_slots_bulk"


def test_missing_names_fall_back():
    task = _reviewer_hiring(_app(applicant_name=None, chapter_name=None))
    assert task.owner_name == "Applicant"
    assert task.subtitle.startswith("Global · ")


@pytest.mark.parametrize(
    "record",
    [
        _app(status="LOST_IN_MAIL"),
        _app(slots=[_hslot("TENTATIVE")]),
        _app(slots=[HiringSlotRecord(id="s1", status="POSTED", scheduled_at=None)]),
    ],
)
def test_hiring_anomalies_raise_unmappable(record):
    with pytest.raises(UnmappableRecordError) as excinfo:
        _reviewer_hiring(record)
    assert excinfo.value.record_id == "app1"


# ----------------------------------------------------------------------
# Readiness, common
# ----------------------------------------------------------------------
@pytest.mark.parametrize("status", ["PASSED", "WAIVED"])
def test_final_gate_is_completed(status):
    task = _reviewer_readiness(_gate(status=status, outcome="PASS"))
    assert task.stage == "COMPLETED"
    assert task.primary_action.kind == "open_details"
    assert _instructor_readiness(_gate(status=status)).stage == "COMPLETED"


def test_gate_without_instructor_is_blocked():
    task = _reviewer_readiness(_gate(instructor_id=None, instructor_name=None))
    assert task.stage == "BLOCKED"
    assert task.primary_action.kind == "open_details"
    assert any("instructor" in blocker.lower() for blocker in task.blockers)


def test_unknown_gate_status_raises():
    with pytest.raises(UnmappableRecordError):
        _reviewer_readiness(_gate(status="ARCHIVED"))


# ----------------------------------------------------------------------
# Readiness, instructor
# ----------------------------------------------------------------------
def test_instructor_confirms_posted_slot():
    task = _instructor_readiness(_gate(slots=[_rslot("POSTED")]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "confirm_readiness_slot"
    assert task.href == "/instructor-training"


def test_instructor_future_confirmed_slot_is_scheduled():
    task = _instructor_readiness(_gate(status="SCHEDULED", slots=[_rslot("CONFIRMED", hours=5)]))
    assert task.stage == "SCHEDULED"


def test_instructor_overdue_slot_waits_for_outcome():
    task = _instructor_readiness(_gate(status="SCHEDULED", slots=[_rslot("CONFIRMED", hours=-2)]))
    assert task.stage == "BLOCKED"
    assert task.blockers == ["Waiting for reviewer to record the interview outcome."]


def test_instructor_completed_slot_without_outcome_waits():
    task = _instructor_readiness(_gate(status="COMPLETED", slots=[_rslot("COMPLETED", hours=-3)]))
    assert task.stage == "BLOCKED"


def test_instructor_pending_request_is_blocked():
    request = AvailabilityRequestRecord(id="req1", status="PENDING", created_at=NOW - dt.timedelta(hours=6))
    task = _instructor_readiness(_gate(pending_requests=[request]))
    assert task.stage == "BLOCKED"
    assert task.blockers == ["Reviewer scheduling action is pending."]


def test_instructor_without_activity_requests_availability():
    task = _instructor_readiness(_gate())
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "request_readiness_availability"
    assert task.primary_action.instructor_id == "i1"


# ----------------------------------------------------------------------
# Readiness, reviewer
# ----------------------------------------------------------------------
def test_reviewer_accepts_pending_request():
    request = AvailabilityRequestRecord(id="req1", status="PENDING", created_at=NOW - dt.timedelta(hours=6))
    task = _reviewer_readiness(_gate(pending_requests=[request]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "accept_readiness_request"
    assert task.primary_action.request_id == "req1"
    assert task.timestamps.submitted_at == NOW - dt.timedelta(hours=6)
    assert task.href == "/interviews?scope=readiness"


def test_reviewer_overdue_slot_is_reclassified_to_needs_action():
    task = _reviewer_readiness(_gate(status="SCHEDULED", slots=[_rslot("CONFIRMED", hours=-2)]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "complete_readiness_interview_and_outcome"
    assert task.primary_action.outcome_options == ["PASS", "HOLD", "FAIL"]


def test_admin_reviewer_may_waive():
    task = _reviewer_readiness(_gate(status="SCHEDULED", slots=[_rslot("CONFIRMED", hours=-2)]), allow_waive=True)
    assert task.primary_action.outcome_options == ["PASS", "HOLD", "FAIL", "WAIVE"]


def test_reviewer_future_slot_is_scheduled():
    task = _reviewer_readiness(_gate(status="SCHEDULED", slots=[_rslot("CONFIRMED", hours=2)]))
    assert task.stage == "SCHEDULED"
    assert task.primary_action.kind == "open_details"


def test_reviewer_completed_slot_without_outcome_sets_outcome():
    task = _reviewer_readiness(_gate(status="COMPLETED", slots=[_rslot("COMPLETED", hours=-3)]))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "complete_readiness_interview_and_outcome"
    assert task.primary_action.slot_id == "r-completed"


def test_reviewer_posted_slot_waits_on_instructor():
    task = _reviewer_readiness(_gate(slots=[_rslot("POSTED")]))
    assert task.stage == "BLOCKED"
    assert task.blockers == ["Instructor confirmation pending."]


def test_reviewer_posts_slots_when_nothing_open():
    task = _reviewer_readiness(_gate())
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "post_readiness_slots_bulk"
    assert task.blockers == []


@pytest.mark.parametrize("status, outcome", [("HOLD", "HOLD"), ("FAILED", "FAIL")])
def test_follow_up_gate_reschedules_with_note(status, outcome):
    slots = [_rslot("COMPLETED", hours=-48, completed_at=NOW - dt.timedelta(hours=47))]
    task = _reviewer_readiness(_gate(status=status, outcome=outcome, slots=slots))
    assert task.stage == "NEEDS_ACTION"
    assert task.primary_action.kind == "post_readiness_slots_bulk"
    assert task.blockers == ["Previous interview outcome requires follow-up scheduling."]


@pytest.mark.parametrize("duration", [-30, 0, 24 * 60 + 1])
def test_out_of_range_duration_is_unmappable(duration):
    with pytest.raises(UnmappableRecordError, match="duration"):
        _reviewer_hiring(_app(slots=[_hslot("CONFIRMED", hours=-1, duration_minutes=duration)]))


def test_slot_time_past_calendar_end_is_unmappable():
    slot = _rslot("CONFIRMED", scheduled_at=dt.datetime(9999, 12, 31, 23, 50, tzinfo=dt.timezone.utc))
    with pytest.raises(UnmappableRecordError, match="out of range"):
        _reviewer_readiness(_gate(status="SCHEDULED", slots=[slot]))


def test_flagged_slot_field_is_unmappable():
    slot = _hslot("POSTED", invalid_fields=["duration_minutes"])
    with pytest.raises(UnmappableRecordError, match="invalid duration_minutes"):
        _applicant_hiring(_app(slots=[slot]))
