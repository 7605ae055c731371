"""Read-only queries for interview records across both pipelines.

Every function opens its own connection through :func:`storage.sqlite.get_conn`
so hiring and readiness loads can run on separate worker threads. Database
errors are not caught here; callers decide how a failed read is surfaced.
"""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, Field, ValidationError

from .sqlite import get_conn

FINAL_APPLICATION_STATUSES = ("ACCEPTED", "REJECTED", "WITHDRAWN")

_IN_CHUNK = 500

logger = logging.getLogger(__name__)

_Record = TypeVar("_Record", bound=BaseModel)


class UserRecord(BaseModel):
    id: str
    name: Optional[str] = None
    chapter_id: Optional[str] = None
    chapter_name: Optional[str] = None
    invalid_fields: List[str] = Field(default_factory=list)


class HiringSlotRecord(BaseModel):
    id: str
    status: str
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    invalid_fields: List[str] = Field(default_factory=list)


class HiringApplicationRecord(BaseModel):
    id: str
    applicant_id: str
    applicant_name: Optional[str] = None
    position_title: str
    chapter_name: Optional[str] = None
    interview_required: bool = True
    status: str
    submitted_at: Optional[datetime] = None
    slots: List[HiringSlotRecord] = Field(default_factory=list)
    recommendations: List[Optional[str]] = Field(default_factory=list)
    decision_accepted: Optional[bool] = None
    invalid_fields: List[str] = Field(default_factory=list)


class ReadinessSlotRecord(BaseModel):
    id: str
    status: str
    scheduled_at: Optional[datetime] = None
    duration_minutes: Optional[int] = None
    completed_at: Optional[datetime] = None
    invalid_fields: List[str] = Field(default_factory=list)


class AvailabilityRequestRecord(BaseModel):
    id: str
    status: str
    created_at: Optional[datetime] = None
    invalid_fields: List[str] = Field(default_factory=list)


class ReadinessGateRecord(BaseModel):
    id: str
    instructor_id: Optional[str] = None
    instructor_name: Optional[str] = None
    chapter_name: Optional[str] = None
    status: str
    outcome: Optional[str] = None
    updated_at: Optional[datetime] = None
    slots: List[ReadinessSlotRecord] = Field(default_factory=list)
    pending_requests: List[AvailabilityRequestRecord] = Field(default_factory=list)
    invalid_fields: List[str] = Field(default_factory=list)


def parse_timestamp(value: object) -> Optional[datetime]:
    """Parse a stored ISO timestamp as an aware UTC datetime.

    Unreadable values come back as ``None``; the translators report the gap
    instead of the whole load failing on one bad row.
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    try:
        return parsed.astimezone(timezone.utc)
    except OverflowError:
        return None


def _chunks(ids: Sequence[str]) -> Iterable[Sequence[str]]:
    for start in range(0, len(ids), _IN_CHUNK):
        yield ids[start : start + _IN_CHUNK]


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


def _text(value: object) -> str:
    return "" if value is None else str(value)


def _build(model: Type[_Record], fields: Mapping[str, Any], fallback: Mapping[str, Any]) -> _Record:
    """Validate one row; columns that fail validation are kept as ``invalid_fields``.

    SQLite does not enforce column types, so a single bad value must not
    abort the load for every other record.
    """

    try:
        return model(**fields)
    except ValidationError as exc:
        invalid = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        logger.warning("Invalid %s row %s: %s", model.__name__, fallback.get("id"), ", ".join(invalid))
        return model(**fallback, invalid_fields=invalid or ["row"])


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
def get_user(user_id: str) -> Optional[UserRecord]:
    """Return the user with chapter details, or ``None`` when unknown."""

    with get_conn() as conn:
        row = conn.execute(
            """
            SELECT u.id, u.name, u.chapter_id, c.name AS chapter_name
            FROM users u
            LEFT JOIN chapters c ON c.id = u.chapter_id
            WHERE u.id = ?
            """,
            (user_id,),
        ).fetchone()
    if row is None:
        return None
    return _build(
        UserRecord,
        dict(id=row["id"], name=row["name"], chapter_id=row["chapter_id"], chapter_name=row["chapter_name"]),
        dict(id=_text(row["id"])),
    )


# ----------------------------------------------------------------------
# Hiring pipeline
# ----------------------------------------------------------------------
_APPLICATION_SELECT = """
SELECT a.id, a.applicant_id, a.status, a.submitted_at,
       u.name AS applicant_name,
       p.title AS position_title,
       p.interview_required,
       c.name AS chapter_name,
       d.accepted AS decision_accepted
FROM applications a
JOIN users u ON u.id = a.applicant_id
JOIN positions p ON p.id = a.position_id
LEFT JOIN chapters c ON c.id = p.chapter_id
LEFT JOIN application_decisions d ON d.application_id = a.id
"""


def _hiring_slots(conn: sqlite3.Connection, ids: Sequence[str]) -> Dict[str, List[HiringSlotRecord]]:
    slots: Dict[str, List[HiringSlotRecord]] = {}
    for chunk in _chunks(ids):
        rows = conn.execute(
            f"""
            SELECT id, application_id, status, scheduled_at, duration_minutes, confirmed_at, completed_at
            FROM application_interview_slots
            WHERE application_id IN ({_placeholders(len(chunk))})
            ORDER BY scheduled_at ASC, id ASC
            """,
            tuple(chunk),
        ).fetchall()
        for row in rows:
            slots.setdefault(row["application_id"], []).append(
                _build(
                    HiringSlotRecord,
                    dict(
                        id=row["id"],
                        status=row["status"],
                        scheduled_at=parse_timestamp(row["scheduled_at"]),
                        duration_minutes=row["duration_minutes"],
                        confirmed_at=parse_timestamp(row["confirmed_at"]),
                        completed_at=parse_timestamp(row["completed_at"]),
                    ),
                    dict(id=_text(row["id"]), status=_text(row["status"])),
                )
            )
    return slots


def _recommendations(conn: sqlite3.Connection, ids: Sequence[str]) -> Dict[str, List[Optional[str]]]:
    notes: Dict[str, List[Optional[str]]] = {}
    for chunk in _chunks(ids):
        rows = conn.execute(
            f"""
            SELECT application_id, recommendation
            FROM application_interview_notes
            WHERE application_id IN ({_placeholders(len(chunk))})
            """,
            tuple(chunk),
        ).fetchall()
        for row in rows:
            notes.setdefault(row["application_id"], []).append(row["recommendation"])
    return notes


def _applications(conn: sqlite3.Connection, where: str, params: Sequence[object]) -> List[HiringApplicationRecord]:
    rows = conn.execute(
        f"{_APPLICATION_SELECT} WHERE {where} ORDER BY a.submitted_at DESC, a.id ASC",
        tuple(params),
    ).fetchall()
    ids = [row["id"] for row in rows]
    slots = _hiring_slots(conn, ids)
    notes = _recommendations(conn, ids)
    return [
        _build(
            HiringApplicationRecord,
            dict(
                id=row["id"],
                applicant_id=row["applicant_id"],
                applicant_name=row["applicant_name"],
                position_title=row["position_title"],
                chapter_name=row["chapter_name"],
                interview_required=bool(row["interview_required"]),
                status=row["status"],
                submitted_at=parse_timestamp(row["submitted_at"]),
                slots=slots.get(row["id"], []),
                recommendations=notes.get(row["id"], []),
                decision_accepted=None if row["decision_accepted"] is None else bool(row["decision_accepted"]),
            ),
            dict(
                id=_text(row["id"]),
                applicant_id=_text(row["applicant_id"]),
                position_title=_text(row["position_title"]),
                status=_text(row["status"]),
            ),
        )
        for row in rows
    ]


def list_applicant_applications(applicant_id: str) -> List[HiringApplicationRecord]:
    """Open applications submitted by ``applicant_id``."""

    where = f"a.applicant_id = ? AND a.status NOT IN ({_placeholders(len(FINAL_APPLICATION_STATUSES))})"
    with get_conn() as conn:
        return _applications(conn, where, (applicant_id, *FINAL_APPLICATION_STATUSES))


def list_reviewable_applications(
    chapter_id: Optional[str], *, all_chapters: bool = False
) -> List[HiringApplicationRecord]:
    """Undecided open applications a reviewer can act on.

    Admins pass ``all_chapters=True``; chapter leads only see positions in their
    own chapter, and a lead without a chapter sees nothing.
    """

    if not all_chapters and not chapter_id:
        return []
    where = (
        "d.id IS NULL AND a.status NOT IN "
        f"({_placeholders(len(FINAL_APPLICATION_STATUSES))})"
    )
    params: List[object] = list(FINAL_APPLICATION_STATUSES)
    if not all_chapters:
        where += " AND p.chapter_id = ?"
        params.append(chapter_id)
    with get_conn() as conn:
        return _applications(conn, where, params)


# ----------------------------------------------------------------------
# Instructor readiness
# ----------------------------------------------------------------------
_GATE_SELECT = """
SELECT g.id, g.instructor_id, g.status, g.outcome, g.updated_at,
       u.name AS instructor_name,
       COALESCE(uc.name, gc.name) AS chapter_name
FROM instructor_interview_gates g
LEFT JOIN users u ON u.id = g.instructor_id
LEFT JOIN chapters uc ON uc.id = u.chapter_id
LEFT JOIN chapters gc ON gc.id = g.chapter_id
"""


def _gate_slots(conn: sqlite3.Connection, ids: Sequence[str]) -> Dict[str, List[ReadinessSlotRecord]]:
    slots: Dict[str, List[ReadinessSlotRecord]] = {}
    for chunk in _chunks(ids):
        rows = conn.execute(
            f"""
            SELECT id, gate_id, status, scheduled_at, duration_minutes, completed_at
            FROM instructor_interview_slots
            WHERE gate_id IN ({_placeholders(len(chunk))})
            ORDER BY scheduled_at ASC, id ASC
            """,
            tuple(chunk),
        ).fetchall()
        for row in rows:
            slots.setdefault(row["gate_id"], []).append(
                _build(
                    ReadinessSlotRecord,
                    dict(
                        id=row["id"],
                        status=row["status"],
                        scheduled_at=parse_timestamp(row["scheduled_at"]),
                        duration_minutes=row["duration_minutes"],
                        completed_at=parse_timestamp(row["completed_at"]),
                    ),
                    dict(id=_text(row["id"]), status=_text(row["status"])),
                )
            )
    return slots


def _pending_requests(
    conn: sqlite3.Connection, ids: Sequence[str]
) -> Dict[str, List[AvailabilityRequestRecord]]:
    requests: Dict[str, List[AvailabilityRequestRecord]] = {}
    for chunk in _chunks(ids):
        rows = conn.execute(
            f"""
            SELECT id, gate_id, status, created_at
            FROM interview_availability_requests
            WHERE status = 'PENDING' AND gate_id IN ({_placeholders(len(chunk))})
            ORDER BY created_at DESC, id ASC
            """,
            tuple(chunk),
        ).fetchall()
        for row in rows:
            requests.setdefault(row["gate_id"], []).append(
                _build(
                    AvailabilityRequestRecord,
                    dict(
                        id=row["id"],
                        status=row["status"],
                        created_at=parse_timestamp(row["created_at"]),
                    ),
                    dict(id=_text(row["id"]), status=_text(row["status"])),
                )
            )
    return requests


def _gates(conn: sqlite3.Connection, where: str, params: Sequence[object]) -> List[ReadinessGateRecord]:
    sql = _GATE_SELECT
    if where:
        sql += f" WHERE {where}"
    sql += " ORDER BY g.updated_at DESC, g.id ASC"
    rows = conn.execute(sql, tuple(params)).fetchall()
    ids = [row["id"] for row in rows]
    slots = _gate_slots(conn, ids)
    requests = _pending_requests(conn, ids)
    return [
        _build(
            ReadinessGateRecord,
            dict(
                id=row["id"],
                instructor_id=row["instructor_id"],
                instructor_name=row["instructor_name"],
                chapter_name=row["chapter_name"],
                status=row["status"],
                outcome=row["outcome"],
                updated_at=parse_timestamp(row["updated_at"]),
                slots=slots.get(row["id"], []),
                pending_requests=requests.get(row["id"], []),
            ),
            dict(
                id=_text(row["id"]),
                instructor_id=None if row["instructor_id"] is None else _text(row["instructor_id"]),
                status=_text(row["status"]),
            ),
        )
        for row in rows
    ]


def get_instructor_gate(instructor_id: str) -> Optional[ReadinessGateRecord]:
    """Return the readiness gate owned by ``instructor_id`` if one exists."""

    with get_conn() as conn:
        gates = _gates(conn, "g.instructor_id = ?", (instructor_id,))
    return gates[0] if gates else None


def list_team_gates(chapter_id: Optional[str], *, all_chapters: bool = False) -> List[ReadinessGateRecord]:
    """Readiness gates visible to a reviewer.

    Unassigned gates are matched on their own chapter since there is no
    instructor chapter to follow.
    """

    if not all_chapters and not chapter_id:
        return []
    with get_conn() as conn:
        if all_chapters:
            return _gates(conn, "", ())
        return _gates(conn, "COALESCE(u.chapter_id, g.chapter_id) = ?", (chapter_id,))


__all__ = [
    "AvailabilityRequestRecord",
    "FINAL_APPLICATION_STATUSES",
    "HiringApplicationRecord",
    "HiringSlotRecord",
    "ReadinessGateRecord",
    "ReadinessSlotRecord",
    "UserRecord",
    "get_instructor_gate",
    "get_user",
    "list_applicant_applications",
    "list_reviewable_applications",
    "list_team_gates",
    "parse_timestamp",
]
