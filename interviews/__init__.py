"""Interview command center: one task list across hiring and instructor readiness."""
from .command_center import (
    get_command_center_data_sync,
    get_interview_command_center_data,
    select_next_action,
)
from .errors import (
    InterviewDataUnavailableError,
    InterviewHubError,
    UnmappableRecordError,
    ViewerNotFoundError,
)
from .types import InterviewCommandCenterData, InterviewHubFilters, InterviewTask, Viewer
from .workflow import build_hiring_interview_task, build_readiness_interview_task

__all__ = [
    "InterviewCommandCenterData",
    "InterviewDataUnavailableError",
    "InterviewHubError",
    "InterviewHubFilters",
    "InterviewTask",
    "UnmappableRecordError",
    "Viewer",
    "ViewerNotFoundError",
    "build_hiring_interview_task",
    "build_readiness_interview_task",
    "get_command_center_data_sync",
    "get_interview_command_center_data",
    "select_next_action",
]
