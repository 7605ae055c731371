"""Translate hiring applications and readiness gates into interview tasks.

Each translator walks a fixed decision tree over the record's persisted status
fields and returns exactly one :class:`InterviewTask`. Nothing here reads the
database or keeps state between calls; ``now`` is passed in so a confirmed slot
whose end time has passed is re-classified on every read.
"""
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Literal, Optional, Sequence, TypeVar, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config.settings import settings
from storage.interviews import (
    HiringApplicationRecord,
    HiringSlotRecord,
    ReadinessGateRecord,
    ReadinessSlotRecord,
)

from .errors import UnmappableRecordError
from .types import (
    AcceptReadinessRequest,
    AddHiringRecommendationNote,
    Audience,
    CompleteHiringInterviewAndNote,
    CompleteReadinessInterviewAndOutcome,
    ConfirmHiringSlot,
    ConfirmReadinessSlot,
    Domain,
    InterviewTask,
    OpenDetails,
    OutcomeOption,
    PostHiringSlotsBulk,
    PostReadinessSlotsBulk,
    PrimaryAction,
    RequestReadinessAvailability,
    Stage,
    TaskLink,
    TaskTimestamps,
)

APPLICATION_STATUSES = frozenset(
    {
        "SUBMITTED",
        "UNDER_REVIEW",
        "INTERVIEW_SCHEDULED",
        "INTERVIEW_COMPLETED",
        "ACCEPTED",
        "REJECTED",
        "WITHDRAWN",
    }
)
SLOT_STATUSES = frozenset({"POSTED", "CONFIRMED", "COMPLETED", "CANCELLED"})
GATE_STATUSES = frozenset({"REQUIRED", "SCHEDULED", "COMPLETED", "PASSED", "HOLD", "FAILED", "WAIVED"})
FINAL_GATE_STATUSES = frozenset({"PASSED", "WAIVED"})
FOLLOW_UP_GATE_STATUSES = frozenset({"HOLD", "FAILED"})

MAX_SLOT_DURATION_MINUTES = 24 * 60

TRAINING_HREF = "/instructor-training"

HiringViewerRole = Literal["applicant", "reviewer"]
ReadinessViewerRole = Literal["instructor", "reviewer"]

_Slot = TypeVar("_Slot", HiringSlotRecord, ReadinessSlotRecord)


# ----------------------------------------------------------------------
# Time helpers
# ----------------------------------------------------------------------
def display_timezone() -> dt.tzinfo:
    try:
        return ZoneInfo(settings.DISPLAY_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        return dt.timezone.utc


def _as_utc(value: dt.datetime) -> dt.datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc)


def to_datetime_local(value: dt.datetime) -> str:
    """Render ``value`` the way a ``datetime-local`` form input expects it."""

    return _as_utc(value).astimezone(display_timezone()).strftime("%Y-%m-%dT%H:%M")


def format_datetime(value: Optional[dt.datetime]) -> str:
    if value is None:
        return "-"
    return _as_utc(value).astimezone(display_timezone()).strftime("%Y-%m-%d %H:%M %Z")


def suggested_slot_times(now: dt.datetime) -> List[str]:
    """First suggested slot plus two alternatives two and four hours later."""

    first = _as_utc(now) + dt.timedelta(hours=settings.SLOT_LEAD_HOURS)
    return [to_datetime_local(first + dt.timedelta(hours=offset)) for offset in (0, 2, 4)]


def slot_end(slot: Union[HiringSlotRecord, ReadinessSlotRecord]) -> dt.datetime:
    if slot.scheduled_at is None:
        raise ValueError("slot has no scheduled time")
    minutes = slot.duration_minutes or settings.DEFAULT_SLOT_DURATION_MINUTES
    return _as_utc(slot.scheduled_at) + dt.timedelta(minutes=minutes)


def is_overdue(slot: Union[HiringSlotRecord, ReadinessSlotRecord], now: dt.datetime) -> bool:
    """True once the slot's end time plus the configured grace has passed."""

    grace = dt.timedelta(minutes=settings.SCHEDULED_GRACE_MINUTES)
    return slot_end(slot) + grace <= _as_utc(now)


# ----------------------------------------------------------------------
# Record inspection
# ----------------------------------------------------------------------
def _first(slots: Iterable[_Slot], status: str) -> Optional[_Slot]:
    return next((slot for slot in slots if slot.status == status), None)


def _completed_slot(slots: Sequence[_Slot]) -> Optional[_Slot]:
    found = _first(slots, "COMPLETED")
    if found is not None:
        return found
    return next(
        (slot for slot in slots if slot.completed_at is not None and slot.status != "CANCELLED"),
        None,
    )


def _check_record(record: Union[HiringApplicationRecord, ReadinessGateRecord]) -> None:
    """Raise :class:`UnmappableRecordError` for stored values the translators cannot use."""

    if record.invalid_fields:
        raise UnmappableRecordError(record.id, f"invalid {', '.join(record.invalid_fields)}")
    for request in getattr(record, "pending_requests", []):
        if request.invalid_fields:
            raise UnmappableRecordError(
                record.id, f"request {request.id} has invalid {', '.join(request.invalid_fields)}"
            )
    for slot in record.slots:
        if slot.invalid_fields:
            raise UnmappableRecordError(record.id, f"slot {slot.id} has invalid {', '.join(slot.invalid_fields)}")
        if slot.status not in SLOT_STATUSES:
            raise UnmappableRecordError(record.id, f"slot {slot.id} has unknown status {slot.status!r}")
        if slot.status in {"POSTED", "CONFIRMED"} and slot.scheduled_at is None:
            raise UnmappableRecordError(record.id, f"slot {slot.id} has no scheduled time")
        if slot.duration_minutes is not None and not 0 < slot.duration_minutes <= MAX_SLOT_DURATION_MINUTES:
            raise UnmappableRecordError(
                record.id, f"slot {slot.id} has out-of-range duration {slot.duration_minutes}"
            )
        if slot.scheduled_at is not None:
            try:
                slot_end(slot) + dt.timedelta(minutes=settings.SCHEDULED_GRACE_MINUTES)
                format_datetime(slot.scheduled_at)
            except OverflowError as exc:
                raise UnmappableRecordError(record.id, f"slot {slot.id} time is out of range") from exc


def _completed_at(slot: Union[HiringSlotRecord, ReadinessSlotRecord]) -> Optional[dt.datetime]:
    return slot.completed_at or slot.scheduled_at


def _scheduled_at(*slots: Optional[Union[HiringSlotRecord, ReadinessSlotRecord]]) -> Optional[dt.datetime]:
    for slot in slots:
        if slot is not None:
            return slot.scheduled_at
    return None


def _state_label(status: str) -> str:
    return status.replace("_", " ")


def _task(
    *,
    domain: Domain,
    record_id: str,
    audience: Audience,
    stage: Stage,
    title: str,
    subtitle: str,
    detail: str,
    owner_name: str,
    href: str,
    action: PrimaryAction,
    links: List[TaskLink],
    blockers: Sequence[str] = (),
    timestamps: Optional[TaskTimestamps] = None,
) -> InterviewTask:
    prefix = "hiring" if domain == "HIRING" else "readiness"
    return InterviewTask(
        id=f"{prefix}-{record_id}",
        domain=domain,
        audience=audience,
        stage=stage,
        title=title,
        subtitle=subtitle,
        detail=detail,
        owner_name=owner_name,
        href=href,
        primary_action=action,
        secondary_links=links,
        blockers=list(blockers),
        timestamps=timestamps or TaskTimestamps(),
    )


def build_unmappable_task(
    *,
    domain: Domain,
    record_id: str,
    audience: Audience,
    owner_name: str,
    href: str,
    reason: str,
) -> InterviewTask:
    """Blocked placeholder for a record the translators could not interpret."""

    return _task(
        domain=domain,
        record_id=record_id,
        audience=audience,
        stage="BLOCKED",
        title=f"{owner_name} · Needs review",
        subtitle="Record could not be classified",
        detail="This interview record has fields the command center cannot interpret.",
        owner_name=owner_name,
        href=href,
        action=OpenDetails(label="Open Record", href=href),
        links=[TaskLink(label="Open Record", href=href)],
        blockers=[f"Record could not be interpreted: {reason}."],
    )


# ----------------------------------------------------------------------
# Hiring pipeline
# ----------------------------------------------------------------------
def hiring_href(application_id: str) -> str:
    return f"/applications/{application_id}"


def build_hiring_interview_task(
    record: HiringApplicationRecord,
    *,
    audience: Audience,
    viewer_role: HiringViewerRole,
    now: dt.datetime,
) -> InterviewTask:
    """Classify one hiring application for an applicant or a reviewer."""

    _check_record(record)
    if record.status not in APPLICATION_STATUSES:
        raise UnmappableRecordError(record.id, f"unknown application status {record.status!r}")

    applicant = record.applicant_name or "Applicant"
    chapter = record.chapter_name or "Global"
    href = hiring_href(record.id)
    links = [TaskLink(label="Open Application", href=href)]
    posted = _first(record.slots, "POSTED")
    confirmed = _first(record.slots, "CONFIRMED")
    completed = _completed_slot(record.slots)
    has_recommendation = any(rec is not None for rec in record.recommendations)
    reviewer_title = f"{applicant} · {record.position_title}"

    def task(stage: Stage, title: str, subtitle: str, detail: str, action: PrimaryAction, **kwargs) -> InterviewTask:
        timestamps = kwargs.pop("timestamps", None) or TaskTimestamps(submitted_at=record.submitted_at)
        return _task(
            domain="HIRING",
            record_id=record.id,
            audience=audience,
            stage=stage,
            title=title,
            subtitle=f"{chapter} · {subtitle}",
            detail=detail,
            owner_name=applicant,
            href=href,
            action=action,
            links=links,
            timestamps=timestamps,
            **kwargs,
        )

    if record.decision_accepted is not None:
        return task(
            "COMPLETED",
            reviewer_title,
            "Decision posted",
            "Interview workflow is complete.",
            OpenDetails(label="Open Application", href=href),
            timestamps=TaskTimestamps(
                submitted_at=record.submitted_at,
                scheduled_at=_scheduled_at(confirmed, posted),
                completed_at=completed.completed_at if completed else None,
            ),
        )

    if viewer_role == "applicant":
        return _applicant_hiring_task(record, task, posted, confirmed, completed, href, now)

    if not record.interview_required:
        return task(
            "COMPLETED",
            reviewer_title,
            "Interview optional",
            "Interview is optional for this position.",
            OpenDetails(label="Open Application", href=href),
        )

    if confirmed is not None:
        scheduled = TaskTimestamps(submitted_at=record.submitted_at, scheduled_at=confirmed.scheduled_at)
        if is_overdue(confirmed, now):
            return task(
                "NEEDS_ACTION",
                reviewer_title,
                "Confirmed interview",
                "Finish interview and capture recommendation in one step.",
                CompleteHiringInterviewAndNote(
                    label="Complete + Save Recommendation",
                    application_id=record.id,
                    slot_id=confirmed.id,
                ),
                timestamps=scheduled,
            )
        return task(
            "SCHEDULED",
            reviewer_title,
            "Interview confirmed",
            f"Interview is scheduled for {format_datetime(confirmed.scheduled_at)}.",
            OpenDetails(label="View Interview Details", href=href),
            timestamps=scheduled,
        )

    if completed is not None:
        finished = TaskTimestamps(submitted_at=record.submitted_at, completed_at=_completed_at(completed))
        if not has_recommendation:
            return task(
                "NEEDS_ACTION",
                reviewer_title,
                "Recommendation missing",
                "Add recommendation note to unblock final decision.",
                AddHiringRecommendationNote(label="Add Recommendation Note", application_id=record.id),
                blockers=["A recommendation is required before decision."],
                timestamps=finished,
            )
        return task(
            "COMPLETED",
            reviewer_title,
            "Decision ready",
            "Interview and recommendation complete.",
            OpenDetails(label="Open Decision Workspace", href=href),
            timestamps=finished,
        )

    if posted is not None:
        return task(
            "BLOCKED",
            reviewer_title,
            "Waiting for applicant",
            f"Posted slot waiting confirmation ({format_datetime(posted.scheduled_at)}).",
            OpenDetails(label="Open Application", href=href),
            blockers=["Applicant confirmation pending."],
            timestamps=TaskTimestamps(submitted_at=record.submitted_at, scheduled_at=posted.scheduled_at),
        )

    suggestions = suggested_slot_times(now)
    return task(
        "NEEDS_ACTION",
        reviewer_title,
        "No interview slots",
        "Post up to three interview options in one step.",
        PostHiringSlotsBulk(
            label="Post Interview Slots",
            application_id=record.id,
            default_datetime_local=suggestions[0],
            suggested_slots_local=suggestions,
            default_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
        ),
    )


def _applicant_hiring_task(record, task, posted, confirmed, completed, href, now) -> InterviewTask:
    title = record.position_title

    if posted is not None:
        return task(
            "NEEDS_ACTION",
            title,
            "Confirm your interview",
            f"Interview slot posted for {format_datetime(posted.scheduled_at)}.",
            ConfirmHiringSlot(label="Confirm Interview Slot", slot_id=posted.id),
            timestamps=TaskTimestamps(submitted_at=record.submitted_at, scheduled_at=posted.scheduled_at),
        )

    if confirmed is not None:
        scheduled = TaskTimestamps(submitted_at=record.submitted_at, scheduled_at=confirmed.scheduled_at)
        if is_overdue(confirmed, now):
            return task(
                "BLOCKED",
                title,
                "Interview held",
                "Interview time has passed. Waiting for the interviewer to wrap up.",
                OpenDetails(label="View Application Status", href=href),
                blockers=["Waiting for the interviewer to complete the interview."],
                timestamps=scheduled,
            )
        return task(
            "SCHEDULED",
            title,
            "Interview confirmed",
            f"Interview is scheduled for {format_datetime(confirmed.scheduled_at)}.",
            OpenDetails(label="View Interview Details", href=href),
            timestamps=scheduled,
        )

    if completed is not None:
        return task(
            "COMPLETED",
            title,
            "Interview complete",
            "Interview completed. Waiting for final decision.",
            OpenDetails(label="View Application Status", href=href),
            timestamps=TaskTimestamps(submitted_at=record.submitted_at, completed_at=_completed_at(completed)),
        )

    return task(
        "BLOCKED",
        title,
        "Waiting for interviewer",
        "No interview slot posted yet.",
        OpenDetails(label="Open Application", href=href),
        blockers=["Waiting for reviewer to post interview slot."],
    )


# ----------------------------------------------------------------------
# Instructor readiness
# ----------------------------------------------------------------------
def readiness_href(viewer_role: ReadinessViewerRole) -> str:
    if viewer_role == "instructor":
        return TRAINING_HREF
    return f"{settings.HUB_PATH}?scope=readiness"


def build_readiness_interview_task(
    record: ReadinessGateRecord,
    *,
    audience: Audience,
    viewer_role: ReadinessViewerRole,
    now: dt.datetime,
    allow_waive: bool = False,
) -> InterviewTask:
    """Classify one readiness gate for its instructor or a reviewer."""

    _check_record(record)
    if record.status not in GATE_STATUSES:
        raise UnmappableRecordError(record.id, f"unknown gate status {record.status!r}")

    instructor = record.instructor_name or "Instructor"
    chapter = record.chapter_name or "No chapter"
    href = readiness_href(viewer_role)
    if viewer_role == "instructor":
        links = [TaskLink(label="Open Training Academy", href=href)]
    else:
        links = [TaskLink(label="Open Interview Hub", href=href)]
    posted = _first(record.slots, "POSTED")
    confirmed = _first(record.slots, "CONFIRMED")
    completed = _completed_slot(record.slots)
    pending = record.pending_requests[0] if record.pending_requests else None
    requested_at = pending.created_at if pending else None

    def task(stage: Stage, title: str, subtitle: str, detail: str, action: PrimaryAction, **kwargs) -> InterviewTask:
        timestamps = kwargs.pop("timestamps", None) or TaskTimestamps(submitted_at=requested_at)
        return _task(
            domain="READINESS",
            record_id=record.id,
            audience=audience,
            stage=stage,
            title=title,
            subtitle=f"{chapter} · {subtitle}",
            detail=detail,
            owner_name=instructor,
            href=href,
            action=action,
            links=links,
            timestamps=timestamps,
            **kwargs,
        )

    if record.status in FINAL_GATE_STATUSES:
        return task(
            "COMPLETED",
            f"{instructor} · Instructor Readiness",
            _state_label(record.status),
            "Interview gate finalized.",
            OpenDetails(label="View Readiness Details", href=href),
            timestamps=TaskTimestamps(
                scheduled_at=_scheduled_at(confirmed, posted),
                completed_at=completed.completed_at if completed else None,
            ),
        )

    if not record.instructor_id:
        return task(
            "BLOCKED",
            "Unassigned · Instructor Readiness",
            "No instructor assigned",
            "Assign an instructor before interviews can be scheduled.",
            OpenDetails(label="Open Readiness", href=href),
            blockers=["No instructor is assigned to this readiness gate."],
        )

    if viewer_role == "instructor":
        return _instructor_readiness_task(record, task, posted, confirmed, completed, pending, now)

    title = f"{instructor} · Interview Outcome"

    if pending is not None:
        suggestions = suggested_slot_times(now)
        return task(
            "NEEDS_ACTION",
            f"{instructor} · Interview Availability",
            "Request pending review",
            "Accept an availability request and lock the interview time.",
            AcceptReadinessRequest(
                label="Accept + Schedule",
                request_id=pending.id,
                default_datetime_local=suggestions[0],
                default_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
            ),
        )

    outcome_options: List[OutcomeOption] = ["PASS", "HOLD", "FAIL"]
    if allow_waive:
        outcome_options.append("WAIVE")

    if confirmed is not None:
        scheduled = TaskTimestamps(scheduled_at=confirmed.scheduled_at)
        if is_overdue(confirmed, now):
            return task(
                "NEEDS_ACTION",
                title,
                "Confirmed slot",
                "Complete interview and set outcome in one action.",
                CompleteReadinessInterviewAndOutcome(
                    label="Complete + Set Outcome",
                    gate_id=record.id,
                    slot_id=confirmed.id,
                    outcome_options=outcome_options,
                ),
                timestamps=scheduled,
            )
        return task(
            "SCHEDULED",
            f"{instructor} · Readiness Interview",
            "Interview confirmed",
            f"Interview scheduled for {format_datetime(confirmed.scheduled_at)}.",
            OpenDetails(label="View Interview Details", href=href),
            timestamps=scheduled,
        )

    if completed is not None and record.outcome is None:
        return task(
            "NEEDS_ACTION",
            title,
            "Completed interview",
            "Complete interview and set outcome in one action.",
            CompleteReadinessInterviewAndOutcome(
                label="Complete + Set Outcome",
                gate_id=record.id,
                slot_id=completed.id,
                outcome_options=outcome_options,
            ),
            timestamps=TaskTimestamps(scheduled_at=completed.scheduled_at, completed_at=completed.completed_at),
        )

    if posted is not None:
        return task(
            "BLOCKED",
            f"{instructor} · Interview Scheduling",
            "Waiting for instructor",
            f"Posted slot waiting confirmation ({format_datetime(posted.scheduled_at)}).",
            OpenDetails(label="Open Interview Hub", href=href),
            blockers=["Instructor confirmation pending."],
            timestamps=TaskTimestamps(scheduled_at=posted.scheduled_at),
        )

    suggestions = suggested_slot_times(now)
    follow_up = record.status in FOLLOW_UP_GATE_STATUSES
    return task(
        "NEEDS_ACTION",
        f"{instructor} · Interview Scheduling",
        _state_label(record.status),
        "Post multiple interview slot options in one step.",
        PostReadinessSlotsBulk(
            label="Post Interview Slots",
            gate_id=record.id,
            instructor_id=record.instructor_id,
            default_datetime_local=suggestions[0],
            suggested_slots_local=suggestions,
            default_duration_minutes=settings.DEFAULT_SLOT_DURATION_MINUTES,
        ),
        blockers=["Previous interview outcome requires follow-up scheduling."] if follow_up else [],
        timestamps=TaskTimestamps(submitted_at=record.updated_at),
    )


def _instructor_readiness_task(record, task, posted, confirmed, completed, pending, now) -> InterviewTask:
    title = "Instructor Interview Readiness"

    if posted is not None:
        return task(
            "NEEDS_ACTION",
            title,
            "Confirm posted interview slot",
            f"Slot posted for {format_datetime(posted.scheduled_at)}.",
            ConfirmReadinessSlot(label="Confirm Interview Slot", slot_id=posted.id),
            timestamps=TaskTimestamps(scheduled_at=posted.scheduled_at),
        )

    if confirmed is not None:
        scheduled = TaskTimestamps(scheduled_at=confirmed.scheduled_at)
        if is_overdue(confirmed, now):
            return task(
                "BLOCKED",
                title,
                "Interview held",
                "Interview time has passed. Your reviewer will record the outcome.",
                OpenDetails(label="View Training Details", href=TRAINING_HREF),
                blockers=["Waiting for reviewer to record the interview outcome."],
                timestamps=scheduled,
            )
        return task(
            "SCHEDULED",
            title,
            "Interview confirmed",
            f"Interview scheduled for {format_datetime(confirmed.scheduled_at)}.",
            OpenDetails(label="View Training Details", href=TRAINING_HREF),
            timestamps=scheduled,
        )

    if completed is not None and record.outcome is None:
        return task(
            "BLOCKED",
            title,
            "Interview complete",
            "Interview completed. Waiting for the outcome.",
            OpenDetails(label="View Training Details", href=TRAINING_HREF),
            blockers=["Waiting for reviewer to record the interview outcome."],
            timestamps=TaskTimestamps(scheduled_at=completed.scheduled_at, completed_at=completed.completed_at),
        )

    if pending is not None:
        return task(
            "BLOCKED",
            title,
            "Availability submitted",
            "Waiting for reviewer to accept one of your preferred times.",
            OpenDetails(label="View Request", href=TRAINING_HREF),
            blockers=["Reviewer scheduling action is pending."],
        )

    suggestions = suggested_slot_times(now)
    return task(
        "NEEDS_ACTION",
        title,
        "Submit preferred times",
        "Share your availability to get interview scheduled.",
        RequestReadinessAvailability(
            label="Submit Availability",
            instructor_id=record.instructor_id,
            default_datetime_local=suggestions[0],
            suggested_slots_local=suggestions,
        ),
        timestamps=TaskTimestamps(submitted_at=record.updated_at),
    )


def matches_interview_state(stage: Stage, state: str) -> bool:
    if state == "all":
        return True
    return stage.lower() == state


__all__ = [
    "APPLICATION_STATUSES",
    "FINAL_GATE_STATUSES",
    "FOLLOW_UP_GATE_STATUSES",
    "GATE_STATUSES",
    "SLOT_STATUSES",
    "build_hiring_interview_task",
    "build_readiness_interview_task",
    "build_unmappable_task",
    "format_datetime",
    "hiring_href",
    "is_overdue",
    "matches_interview_state",
    "readiness_href",
    "slot_end",
    "suggested_slot_times",
    "to_datetime_local",
]
