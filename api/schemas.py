"""Pydantic schemas for the interview command center API."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from interviews.types import InterviewCommandCenterData


class CommandCenterResp(InterviewCommandCenterData):
    """Response body for ``GET /api/interviews/command-center``."""


class ErrorResp(BaseModel):
    detail: str


class HealthResp(BaseModel):
    status: Literal["ok"] = "ok"
