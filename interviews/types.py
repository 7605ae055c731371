"""Shared type definitions for the interview command center."""
from __future__ import annotations

from datetime import datetime
from typing import Annotated, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, Field

Domain = Literal["HIRING", "READINESS"]
Audience = Literal["mine", "team"]
Stage = Literal["NEEDS_ACTION", "SCHEDULED", "COMPLETED", "BLOCKED"]
Role = Literal["STUDENT", "INSTRUCTOR", "STAFF", "PARENT", "MENTOR", "CHAPTER_LEAD", "ADMIN"]

InterviewScope = Literal["all", "hiring", "readiness"]
InterviewView = Literal["mine", "team"]
InterviewStateFilter = Literal["all", "needs_action", "scheduled", "completed", "blocked"]

STAGES: tuple[Stage, ...] = get_args(Stage)
ROLES: tuple[Role, ...] = get_args(Role)
SCOPES: tuple[InterviewScope, ...] = get_args(InterviewScope)
VIEWS: tuple[InterviewView, ...] = get_args(InterviewView)
STATE_FILTERS: tuple[InterviewStateFilter, ...] = get_args(InterviewStateFilter)

RecommendationOption = Literal["STRONG_YES", "YES", "MAYBE", "NO"]
OutcomeOption = Literal["PASS", "HOLD", "FAIL", "WAIVE"]

RECOMMENDATION_OPTIONS: List[RecommendationOption] = ["STRONG_YES", "YES", "MAYBE", "NO"]


# ----------------------------------------------------------------------
# Primary actions
# ----------------------------------------------------------------------
class OpenDetails(BaseModel):
    kind: Literal["open_details"] = "open_details"
    label: str
    href: str


class ConfirmHiringSlot(BaseModel):
    kind: Literal["confirm_hiring_slot"] = "confirm_hiring_slot"
    label: str
    slot_id: str


class PostHiringSlotsBulk(BaseModel):
    kind: Literal["post_hiring_slots_bulk"] = "post_hiring_slots_bulk"
    label: str
    application_id: str
    default_datetime_local: str
    suggested_slots_local: List[str] = Field(default_factory=list)
    default_duration_minutes: int


class CompleteHiringInterviewAndNote(BaseModel):
    kind: Literal["complete_hiring_interview_and_note"] = "complete_hiring_interview_and_note"
    label: str
    application_id: str
    slot_id: str
    recommendation_options: List[RecommendationOption] = Field(
        default_factory=lambda: list(RECOMMENDATION_OPTIONS)
    )


class AddHiringRecommendationNote(BaseModel):
    kind: Literal["add_hiring_recommendation_note"] = "add_hiring_recommendation_note"
    label: str
    application_id: str
    recommendation_options: List[RecommendationOption] = Field(
        default_factory=lambda: list(RECOMMENDATION_OPTIONS)
    )


class ConfirmReadinessSlot(BaseModel):
    kind: Literal["confirm_readiness_slot"] = "confirm_readiness_slot"
    label: str
    slot_id: str


class RequestReadinessAvailability(BaseModel):
    kind: Literal["request_readiness_availability"] = "request_readiness_availability"
    label: str
    instructor_id: str
    default_datetime_local: str
    suggested_slots_local: List[str] = Field(default_factory=list)


class PostReadinessSlotsBulk(BaseModel):
    kind: Literal["post_readiness_slots_bulk"] = "post_readiness_slots_bulk"
    label: str
    gate_id: str
    instructor_id: str
    default_datetime_local: str
    suggested_slots_local: List[str] = Field(default_factory=list)
    default_duration_minutes: int


class AcceptReadinessRequest(BaseModel):
    kind: Literal["accept_readiness_request"] = "accept_readiness_request"
    label: str
    request_id: str
    default_datetime_local: str
    default_duration_minutes: int


class CompleteReadinessInterviewAndOutcome(BaseModel):
    kind: Literal["complete_readiness_interview_and_outcome"] = "complete_readiness_interview_and_outcome"
    label: str
    gate_id: str
    slot_id: Optional[str] = None
    outcome_options: List[OutcomeOption] = Field(default_factory=lambda: ["PASS", "HOLD", "FAIL"])


PrimaryAction = Annotated[
    Union[
        OpenDetails,
        ConfirmHiringSlot,
        PostHiringSlotsBulk,
        CompleteHiringInterviewAndNote,
        AddHiringRecommendationNote,
        ConfirmReadinessSlot,
        RequestReadinessAvailability,
        PostReadinessSlotsBulk,
        AcceptReadinessRequest,
        CompleteReadinessInterviewAndOutcome,
    ],
    Field(discriminator="kind"),
]


# ----------------------------------------------------------------------
# Tasks
# ----------------------------------------------------------------------
class TaskLink(BaseModel):
    label: str
    href: str


class TaskTimestamps(BaseModel):
    submitted_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class InterviewTask(BaseModel):
    """Normalized projection of one hiring application or readiness gate."""

    id: str
    domain: Domain
    audience: Audience
    stage: Stage
    title: str
    subtitle: str
    detail: str
    owner_name: str
    href: str
    primary_action: PrimaryAction
    secondary_links: List[TaskLink] = Field(default_factory=list)
    blockers: List[str] = Field(default_factory=list)
    timestamps: TaskTimestamps = Field(default_factory=TaskTimestamps)


# ----------------------------------------------------------------------
# Filters, viewer and view model
# ----------------------------------------------------------------------
class InterviewHubFilters(BaseModel):
    scope: InterviewScope = "all"
    view: InterviewView = "mine"
    state: InterviewStateFilter = "all"


class Viewer(BaseModel):
    user_id: str
    chapter_id: Optional[str] = None
    roles: List[Role] = Field(default_factory=list)
    can_team_view: bool = False
    can_hiring: bool = False
    can_readiness: bool = False
    is_admin: bool = False


class FilterOption(BaseModel):
    value: str
    label: str
    href: str
    active: bool


class InterviewSections(BaseModel):
    needs_action: List[InterviewTask] = Field(default_factory=list)
    scheduled: List[InterviewTask] = Field(default_factory=list)
    completed: List[InterviewTask] = Field(default_factory=list)
    blocked: List[InterviewTask] = Field(default_factory=list)


class InterviewCommandCenterData(BaseModel):
    filters: InterviewHubFilters
    tasks: List[InterviewTask] = Field(default_factory=list)
    sections: InterviewSections = Field(default_factory=InterviewSections)
    next_action: Optional[InterviewTask] = None
    viewer: Viewer
    filter_links: Dict[str, List[FilterOption]] = Field(default_factory=dict)
    generated_at: datetime


__all__ = [
    "AcceptReadinessRequest",
    "AddHiringRecommendationNote",
    "Audience",
    "CompleteHiringInterviewAndNote",
    "CompleteReadinessInterviewAndOutcome",
    "ConfirmHiringSlot",
    "ConfirmReadinessSlot",
    "Domain",
    "FilterOption",
    "InterviewCommandCenterData",
    "InterviewHubFilters",
    "InterviewScope",
    "InterviewSections",
    "InterviewStateFilter",
    "InterviewTask",
    "InterviewView",
    "OpenDetails",
    "OutcomeOption",
    "PostHiringSlotsBulk",
    "PostReadinessSlotsBulk",
    "PrimaryAction",
    "RECOMMENDATION_OPTIONS",
    "ROLES",
    "RequestReadinessAvailability",
    "Role",
    "SCOPES",
    "STAGES",
    "STATE_FILTERS",
    "Stage",
    "TaskLink",
    "TaskTimestamps",
    "VIEWS",
    "Viewer",
]
