"""Viewer resolution, query-string normalization, filtering and sectioning."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
from urllib.parse import urlencode

from config.settings import settings

from .types import (
    ROLES,
    SCOPES,
    STATE_FILTERS,
    VIEWS,
    FilterOption,
    InterviewHubFilters,
    InterviewScope,
    InterviewSections,
    InterviewStateFilter,
    InterviewTask,
    InterviewView,
    Role,
    Stage,
    Viewer,
)
from .workflow import matches_interview_state

logger = logging.getLogger(__name__)

REVIEWER_ROLES = frozenset({"ADMIN", "CHAPTER_LEAD"})
HIRING_ROLES = frozenset({"STUDENT", "INSTRUCTOR", "STAFF", "ADMIN", "CHAPTER_LEAD"})

SCOPE_LABELS: Dict[InterviewScope, str] = {"all": "All", "hiring": "Hiring", "readiness": "Readiness"}
VIEW_LABELS: Dict[InterviewView, str] = {"mine": "Mine", "team": "Team"}
STATE_LABELS: Dict[InterviewStateFilter, str] = {
    "all": "All States",
    "needs_action": "Needs Action",
    "scheduled": "Scheduled",
    "completed": "Completed",
    "blocked": "Blocked",
}
STAGE_LABELS: Dict[Stage, str] = {
    "NEEDS_ACTION": "Needs Action",
    "SCHEDULED": "Scheduled",
    "COMPLETED": "Completed",
    "BLOCKED": "Blocked",
}

# Order the flat task list is presented in.
STAGE_ORDER: Tuple[Stage, ...] = ("NEEDS_ACTION", "BLOCKED", "SCHEDULED", "COMPLETED")


# ----------------------------------------------------------------------
# Viewer
# ----------------------------------------------------------------------
def parse_roles(raw: Optional[Iterable[str]]) -> List[Role]:
    """Validate role strings against the closed role set.

    Unknown values are dropped; duplicates collapse while keeping order.
    """

    roles: List[Role] = []
    for value in raw or []:
        candidate = str(value).strip().upper()
        if not candidate:
            continue
        if candidate not in ROLES:
            logger.warning("Ignoring unknown role %r", value)
            continue
        if candidate not in roles:
            roles.append(candidate)  # type: ignore[arg-type]
    return roles


def resolve_viewer(user_id: str, chapter_id: Optional[str], roles: Sequence[Role]) -> Viewer:
    role_set = set(roles)
    is_admin = "ADMIN" in role_set
    is_reviewer = bool(role_set & REVIEWER_ROLES)
    return Viewer(
        user_id=user_id,
        chapter_id=chapter_id,
        roles=list(roles),
        can_team_view=is_reviewer,
        can_hiring=bool(role_set & HIRING_ROLES),
        can_readiness="INSTRUCTOR" in role_set or is_reviewer,
        is_admin=is_admin,
    )


# ----------------------------------------------------------------------
# Filter normalization
# ----------------------------------------------------------------------
def _clean(raw: Optional[str]) -> str:
    return (raw or "").strip().lower()


def normalize_scope(raw: Optional[str], viewer: Viewer) -> InterviewScope:
    value = _clean(raw)
    selected: InterviewScope = value if value in SCOPES else "all"  # type: ignore[assignment]
    if not viewer.can_readiness:
        return "hiring"
    if not viewer.can_hiring:
        return "readiness"
    return selected


def normalize_view(raw: Optional[str], viewer: Viewer) -> InterviewView:
    if not viewer.can_team_view:
        return "mine"
    value = _clean(raw)
    return value if value in VIEWS else "team"  # type: ignore[return-value]


def normalize_state(raw: Optional[str]) -> InterviewStateFilter:
    value = _clean(raw)
    return value if value in STATE_FILTERS else "all"  # type: ignore[return-value]


def normalize_filters(
    viewer: Viewer,
    scope: Optional[str] = None,
    view: Optional[str] = None,
    state: Optional[str] = None,
) -> InterviewHubFilters:
    return InterviewHubFilters(
        scope=normalize_scope(scope, viewer),
        view=normalize_view(view, viewer),
        state=normalize_state(state),
    )


def filter_href(filters: InterviewHubFilters, **changes: str) -> str:
    merged = filters.model_copy(update=changes)
    query = urlencode({"scope": merged.scope, "view": merged.view, "state": merged.state})
    return f"{settings.HUB_PATH}?{query}"


def build_filter_links(filters: InterviewHubFilters, can_team_view: bool) -> Dict[str, List[FilterOption]]:
    """Option pills for each filter group; the view group only for team viewers."""

    groups: Dict[str, List[FilterOption]] = {
        "scope": [
            FilterOption(
                value=value,
                label=SCOPE_LABELS[value],
                href=filter_href(filters, scope=value),
                active=filters.scope == value,
            )
            for value in SCOPES
        ],
    }
    if can_team_view:
        groups["view"] = [
            FilterOption(
                value=value,
                label=VIEW_LABELS[value],
                href=filter_href(filters, view=value),
                active=filters.view == value,
            )
            for value in VIEWS
        ]
    groups["state"] = [
        FilterOption(
            value=value,
            label=STATE_LABELS[value],
            href=filter_href(filters, state=value),
            active=filters.state == value,
        )
        for value in STATE_FILTERS
    ]
    return groups


# ----------------------------------------------------------------------
# Filtering
# ----------------------------------------------------------------------
def matches_scope(task: InterviewTask, scope: str) -> bool:
    if scope == "all":
        return True
    return task.domain.lower() == scope


def apply_filters(tasks: Iterable[InterviewTask], filters: InterviewHubFilters) -> List[InterviewTask]:
    """Keep tasks matching scope, view and state; each check is independent."""

    return [
        task
        for task in tasks
        if matches_scope(task, filters.scope)
        and task.audience == filters.view
        and matches_interview_state(task.stage, filters.state)
    ]


# ----------------------------------------------------------------------
# Sorting and sectioning
# ----------------------------------------------------------------------
def _ascending(*values: Optional[datetime]) -> Tuple[int, float]:
    for value in values:
        if value is not None:
            return (0, value.timestamp())
    return (1, 0.0)


def _descending(*values: Optional[datetime]) -> Tuple[int, float]:
    missing, stamp = _ascending(*values)
    return (missing, -stamp)


_SORT_KEYS: Dict[Stage, Callable[[InterviewTask], Tuple[int, float]]] = {
    "NEEDS_ACTION": lambda t: _ascending(t.timestamps.submitted_at, t.timestamps.scheduled_at),
    "SCHEDULED": lambda t: _ascending(t.timestamps.scheduled_at),
    "COMPLETED": lambda t: _descending(t.timestamps.completed_at),
    "BLOCKED": lambda t: _ascending(t.timestamps.submitted_at, t.timestamps.scheduled_at),
}


def sort_stage(tasks: Iterable[InterviewTask], stage: Stage) -> List[InterviewTask]:
    key = _SORT_KEYS[stage]
    return sorted(tasks, key=lambda task: (key(task), task.id))


def build_sections(tasks: Sequence[InterviewTask]) -> InterviewSections:
    buckets: Dict[Stage, List[InterviewTask]] = {stage: [] for stage in STAGE_ORDER}
    for task in tasks:
        buckets[task.stage].append(task)
    return InterviewSections(
        needs_action=sort_stage(buckets["NEEDS_ACTION"], "NEEDS_ACTION"),
        scheduled=sort_stage(buckets["SCHEDULED"], "SCHEDULED"),
        completed=sort_stage(buckets["COMPLETED"], "COMPLETED"),
        blocked=sort_stage(buckets["BLOCKED"], "BLOCKED"),
    )


def flatten_sections(sections: InterviewSections) -> List[InterviewTask]:
    return [*sections.needs_action, *sections.blocked, *sections.scheduled, *sections.completed]


def next_best_action(sections: InterviewSections) -> Optional[InterviewTask]:
    if sections.needs_action:
        return sections.needs_action[0]
    if sections.blocked:
        return sections.blocked[0]
    return None


__all__ = [
    "STAGE_LABELS",
    "STAGE_ORDER",
    "apply_filters",
    "build_filter_links",
    "build_sections",
    "filter_href",
    "flatten_sections",
    "matches_scope",
    "next_best_action",
    "normalize_filters",
    "normalize_scope",
    "normalize_state",
    "normalize_view",
    "parse_roles",
    "resolve_viewer",
    "sort_stage",
]
