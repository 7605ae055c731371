"""FastAPI routes for the interview command center."""
from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Header, HTTPException, Query

from api.schemas import CommandCenterResp, ErrorResp
from interviews.command_center import get_interview_command_center_data
from interviews.errors import InterviewDataUnavailableError, ViewerNotFoundError


router = APIRouter(prefix="/api/interviews")


def _split_roles(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [part for part in (chunk.strip() for chunk in raw.split(",")) if part]


@router.get(
    "/command-center",
    response_model=CommandCenterResp,
    responses={401: {"model": ErrorResp}, 503: {"model": ErrorResp}},
)
async def command_center(
    scope: Optional[str] = Query(default=None),
    view: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    x_user_id: Optional[str] = Header(default=None),
    x_user_roles: Optional[str] = Header(default=None),
) -> CommandCenterResp:
    """Identity comes from the upstream auth layer via ``X-User-*`` headers."""

    try:
        data = await get_interview_command_center_data(
            x_user_id,
            _split_roles(x_user_roles),
            scope,
            view,
            state,
        )
    except ViewerNotFoundError as exc:
        raise HTTPException(status_code=401, detail="Unauthorized") from exc
    except InterviewDataUnavailableError as exc:
        raise HTTPException(status_code=503, detail="Interview data is temporarily unavailable") from exc
    return CommandCenterResp.model_validate(data.model_dump())
