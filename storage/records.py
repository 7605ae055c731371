"""Insert helpers for portal records used by seeding and tests."""
from __future__ import annotations

import datetime as dt
from typing import Any, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from .sqlite import get_conn


def _new_id() -> str:
    return uuid4().hex


def _iso(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat()


class ChapterPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str


class UserPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: Optional[str] = None
    chapter_id: Optional[str] = None


class PositionPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    title: str
    chapter_id: Optional[str] = None
    interview_required: bool = True


class ApplicationPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    applicant_id: str
    position_id: str
    status: str = "SUBMITTED"
    submitted_at: dt.datetime


class ApplicationSlotPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    application_id: str
    status: str
    scheduled_at: dt.datetime
    duration_minutes: Optional[int] = None
    confirmed_at: Optional[dt.datetime] = None
    completed_at: Optional[dt.datetime] = None


class InterviewNotePayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    application_id: str
    recommendation: Optional[str] = None
    content: str = ""


class DecisionPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    application_id: str
    accepted: bool


class GatePayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    instructor_id: Optional[str] = None
    chapter_id: Optional[str] = None
    status: str = "REQUIRED"
    outcome: Optional[str] = None
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


class GateSlotPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    gate_id: str
    status: str
    scheduled_at: dt.datetime
    duration_minutes: Optional[int] = None
    completed_at: Optional[dt.datetime] = None


class AvailabilityRequestPayload(BaseModel):
    id: str = Field(default_factory=_new_id)
    gate_id: str
    status: str = "PENDING"
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc))


def insert_chapter(**data: Any) -> str:
    """Insert a chapter row and return its id."""

    payload = ChapterPayload(**data)
    with get_conn() as conn:
        conn.execute("INSERT INTO chapters (id, name) VALUES (?, ?)", (payload.id, payload.name))
    return payload.id


def insert_user(**data: Any) -> str:
    """Insert a user row and return its id."""

    payload = UserPayload(**data)
    with get_conn() as conn:
        conn.execute(
            "INSERT INTO users (id, name, chapter_id) VALUES (?, ?, ?)",
            (payload.id, payload.name, payload.chapter_id),
        )
    return payload.id


def insert_position(**data: Any) -> str:
    """Insert a hiring position row and return its id."""

    payload = PositionPayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO positions (id, title, chapter_id, interview_required)
               VALUES (?, ?, ?, ?)""",
            (payload.id, payload.title, payload.chapter_id, int(payload.interview_required)),
        )
    return payload.id


def insert_application(**data: Any) -> str:
    """Insert an application row and return its id."""

    payload = ApplicationPayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO applications (id, applicant_id, position_id, status, submitted_at)
               VALUES (?, ?, ?, ?, ?)""",
            (
                payload.id,
                payload.applicant_id,
                payload.position_id,
                payload.status,
                _iso(payload.submitted_at),
            ),
        )
    return payload.id


def insert_application_slot(**data: Any) -> str:
    """Insert a hiring interview slot and return its id."""

    payload = ApplicationSlotPayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO application_interview_slots
               (id, application_id, status, scheduled_at, duration_minutes, confirmed_at, completed_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                payload.id,
                payload.application_id,
                payload.status,
                _iso(payload.scheduled_at),
                payload.duration_minutes,
                _iso(payload.confirmed_at),
                _iso(payload.completed_at),
            ),
        )
    return payload.id


def insert_interview_note(**data: Any) -> str:
    """Insert a hiring interview note and return its id."""

    payload = InterviewNotePayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO application_interview_notes (id, application_id, recommendation, content)
               VALUES (?, ?, ?, ?)""",
            (payload.id, payload.application_id, payload.recommendation, payload.content),
        )
    return payload.id


def insert_decision(**data: Any) -> str:
    """Insert a final hiring decision and return its id."""

    payload = DecisionPayload(**data)
    with get_conn() as conn:
        conn.execute(
            "INSERT INTO application_decisions (id, application_id, accepted) VALUES (?, ?, ?)",
            (payload.id, payload.application_id, int(payload.accepted)),
        )
    return payload.id


def insert_gate(**data: Any) -> str:
    """Insert an instructor readiness gate and return its id."""

    payload = GatePayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO instructor_interview_gates
               (id, instructor_id, chapter_id, status, outcome, updated_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                payload.id,
                payload.instructor_id,
                payload.chapter_id,
                payload.status,
                payload.outcome,
                _iso(payload.updated_at),
            ),
        )
    return payload.id


def insert_gate_slot(**data: Any) -> str:
    """Insert a readiness interview slot and return its id."""

    payload = GateSlotPayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO instructor_interview_slots
               (id, gate_id, status, scheduled_at, duration_minutes, completed_at)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                payload.id,
                payload.gate_id,
                payload.status,
                _iso(payload.scheduled_at),
                payload.duration_minutes,
                _iso(payload.completed_at),
            ),
        )
    return payload.id


def insert_availability_request(**data: Any) -> str:
    """Insert an instructor availability request and return its id."""

    payload = AvailabilityRequestPayload(**data)
    with get_conn() as conn:
        conn.execute(
            """INSERT INTO interview_availability_requests (id, gate_id, status, created_at)
               VALUES (?, ?, ?, ?)""",
            (payload.id, payload.gate_id, payload.status, _iso(payload.created_at)),
        )
    return payload.id


__all__ = [
    "insert_application",
    "insert_application_slot",
    "insert_availability_request",
    "insert_chapter",
    "insert_decision",
    "insert_gate",
    "insert_gate_slot",
    "insert_interview_note",
    "insert_position",
    "insert_user",
]
