"""Aggregate hiring and readiness work into the interview command center view."""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar

from observability import log_event, span
from storage.interviews import (
    HiringApplicationRecord,
    ReadinessGateRecord,
    UserRecord,
    get_instructor_gate,
    get_user,
    list_applicant_applications,
    list_reviewable_applications,
    list_team_gates,
)

from .errors import InterviewDataUnavailableError, UnmappableRecordError, ViewerNotFoundError
from .filters import (
    apply_filters,
    build_filter_links,
    build_sections,
    flatten_sections,
    next_best_action,
    normalize_filters,
    parse_roles,
    resolve_viewer,
)
from .types import Audience, InterviewCommandCenterData, InterviewHubFilters, InterviewTask, Viewer
from .workflow import (
    build_hiring_interview_task,
    build_readiness_interview_task,
    build_unmappable_task,
    hiring_href,
    readiness_href,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _virtual_gate(user: UserRecord) -> ReadinessGateRecord:
    """Stand-in for an instructor who has not been assigned a gate yet."""

    return ReadinessGateRecord(
        id=f"virtual-{user.id}",
        instructor_id=user.id,
        instructor_name=user.name,
        chapter_name=user.chapter_name,
        status="REQUIRED",
    )


# ----------------------------------------------------------------------
# Loading
# ----------------------------------------------------------------------
def load_hiring_records(
    viewer: Viewer, filters: InterviewHubFilters
) -> List[Tuple[Audience, HiringApplicationRecord]]:
    if not viewer.can_hiring or filters.scope == "readiness":
        return []
    if filters.view == "team":
        records = list_reviewable_applications(viewer.chapter_id, all_chapters=viewer.is_admin)
        return [("team", record) for record in records]
    return [("mine", record) for record in list_applicant_applications(viewer.user_id)]


def load_readiness_records(
    viewer: Viewer, user: UserRecord, filters: InterviewHubFilters
) -> List[Tuple[Audience, ReadinessGateRecord]]:
    if not viewer.can_readiness or filters.scope == "hiring":
        return []
    if filters.view == "team":
        records = list_team_gates(viewer.chapter_id, all_chapters=viewer.is_admin)
        return [("team", record) for record in records]
    if "INSTRUCTOR" not in viewer.roles:
        return []
    gate = get_instructor_gate(viewer.user_id) or _virtual_gate(user)
    return [("mine", gate)]


async def _timed(events: List[Dict[str, Any]], name: str, fn: Callable[..., T], *args: Any) -> T:
    with span(events, name):
        return await asyncio.to_thread(fn, *args)


# ----------------------------------------------------------------------
# Translation
# ----------------------------------------------------------------------
def _translate(
    records: Iterable[Tuple[Audience, Any]],
    build: Callable[[Audience, Any], InterviewTask],
    recover: Callable[[Audience, Any, str], InterviewTask],
    *,
    user_id: str,
    domain: str,
) -> List[InterviewTask]:
    tasks: List[InterviewTask] = []
    for audience, record in records:
        try:
            tasks.append(build(audience, record))
        except UnmappableRecordError as exc:
            logger.warning("Unmappable %s record %s: %s", domain, exc.record_id, exc.reason)
            log_event(
                "unmappable_record",
                user_id,
                level=logging.WARNING,
                domain=domain,
                record_id=exc.record_id,
                reason=exc.reason,
            )
            tasks.append(recover(audience, record, exc.reason))
    return tasks


def translate_hiring(
    records: Sequence[Tuple[Audience, HiringApplicationRecord]], *, user_id: str, now: datetime
) -> List[InterviewTask]:
    def build(audience: Audience, record: HiringApplicationRecord) -> InterviewTask:
        return build_hiring_interview_task(
            record,
            audience=audience,
            viewer_role="applicant" if audience == "mine" else "reviewer",
            now=now,
        )

    def recover(audience: Audience, record: HiringApplicationRecord, reason: str) -> InterviewTask:
        return build_unmappable_task(
            domain="HIRING",
            record_id=record.id,
            audience=audience,
            owner_name=record.applicant_name or "Applicant",
            href=hiring_href(record.id),
            reason=reason,
        )

    return _translate(records, build, recover, user_id=user_id, domain="HIRING")


def translate_readiness(
    records: Sequence[Tuple[Audience, ReadinessGateRecord]],
    *,
    user_id: str,
    now: datetime,
    allow_waive: bool = False,
) -> List[InterviewTask]:
    def build(audience: Audience, record: ReadinessGateRecord) -> InterviewTask:
        return build_readiness_interview_task(
            record,
            audience=audience,
            viewer_role="instructor" if audience == "mine" else "reviewer",
            now=now,
            allow_waive=allow_waive,
        )

    def recover(audience: Audience, record: ReadinessGateRecord, reason: str) -> InterviewTask:
        return build_unmappable_task(
            domain="READINESS",
            record_id=record.id,
            audience=audience,
            owner_name=record.instructor_name or "Instructor",
            href=readiness_href("instructor" if audience == "mine" else "reviewer"),
            reason=reason,
        )

    return _translate(records, build, recover, user_id=user_id, domain="READINESS")


# ----------------------------------------------------------------------
# Entry points
# ----------------------------------------------------------------------
def select_next_action(tasks: Sequence[InterviewTask]) -> Optional[InterviewTask]:
    """Next best action for an arbitrary task list."""

    return next_best_action(build_sections(tasks))


def _load_viewer(user_id: str) -> UserRecord:
    try:
        user = get_user(user_id)
    except sqlite3.Error as exc:
        raise InterviewDataUnavailableError("Unable to load viewer") from exc
    if user is None:
        raise ViewerNotFoundError(f"Unknown user {user_id!r}")
    return user


async def get_interview_command_center_data(
    user_id: Optional[str],
    roles: Optional[Iterable[str]],
    scope: Optional[str] = None,
    view: Optional[str] = None,
    state: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> InterviewCommandCenterData:
    """Build the command center view model for one viewer.

    Raises :class:`ViewerNotFoundError` when ``user_id`` is empty or unknown and
    :class:`InterviewDataUnavailableError` when either domain cannot be read.
    Filter values are never rejected; unknown ones fall back to defaults.
    """

    if not user_id or not str(user_id).strip():
        raise ViewerNotFoundError("A viewer identity is required")
    user_id = str(user_id).strip()
    now = now or datetime.now(timezone.utc)

    user = await asyncio.to_thread(_load_viewer, user_id)
    viewer = resolve_viewer(user.id, user.chapter_id, parse_roles(roles))
    filters = normalize_filters(viewer, scope, view, state)

    events: List[Dict[str, Any]] = []
    try:
        hiring_records, readiness_records = await asyncio.gather(
            _timed(events, "load_hiring", load_hiring_records, viewer, filters),
            _timed(events, "load_readiness", load_readiness_records, viewer, user, filters),
        )
    except sqlite3.Error as exc:
        log_event("command_center", user_id, level=logging.ERROR, error=str(exc))
        raise InterviewDataUnavailableError("Interview records are unavailable") from exc

    tasks = [
        *translate_hiring(hiring_records, user_id=user_id, now=now),
        *translate_readiness(readiness_records, user_id=user_id, now=now, allow_waive=viewer.is_admin),
    ]
    sections = build_sections(apply_filters(tasks, filters))
    ordered = flatten_sections(sections)
    result = InterviewCommandCenterData(
        filters=filters,
        tasks=ordered,
        sections=sections,
        next_action=next_best_action(sections),
        viewer=viewer,
        filter_links=build_filter_links(filters, viewer.can_team_view),
        generated_at=now,
    )

    log_event(
        "command_center",
        user_id,
        scope=filters.scope,
        view=filters.view,
        state=filters.state,
        tasks=len(ordered),
        needs_action=len(sections.needs_action),
        blocked=len(sections.blocked),
        spans=events,
    )
    return result


def get_command_center_data_sync(
    user_id: Optional[str],
    roles: Optional[Iterable[str]],
    scope: Optional[str] = None,
    view: Optional[str] = None,
    state: Optional[str] = None,
    *,
    now: Optional[datetime] = None,
) -> InterviewCommandCenterData:
    return asyncio.run(get_interview_command_center_data(user_id, roles, scope, view, state, now=now))


__all__ = [
    "get_command_center_data_sync",
    "get_interview_command_center_data",
    "load_hiring_records",
    "load_readiness_records",
    "select_next_action",
    "translate_hiring",
    "translate_readiness",
]
