"""Lightweight CLI for inspecting a viewer's interview command center."""
from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from config.settings import settings
from interviews.command_center import get_command_center_data_sync
from interviews.errors import InterviewHubError
from interviews.filters import STAGE_LABELS, STAGE_ORDER
from interviews.types import InterviewCommandCenterData, InterviewTask
from storage.migrate import migrate


def _describe(task: InterviewTask) -> str:
    line = f"  - [{task.domain}] {task.title} :: {task.primary_action.label} ({task.primary_action.kind})"
    if task.blockers:
        line += f" blockers={'; '.join(task.blockers)}"
    return line


def render(data: InterviewCommandCenterData) -> str:
    filters = data.filters
    lines: List[str] = [f"scope={filters.scope} view={filters.view} state={filters.state}"]
    for stage in STAGE_ORDER:
        tasks = getattr(data.sections, stage.lower())
        lines.append(f"{STAGE_LABELS[stage]} ({len(tasks)})")
        lines.extend(_describe(task) for task in tasks)
    if data.next_action is None:
        lines.append("next: nothing needs attention")
    else:
        lines.append(f"next: {data.next_action.title} -> {data.next_action.primary_action.label}")
    return "\n".join(lines)


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser()
    parser.add_argument("--migrate", action="store_true", help="Apply the schema to DB_PATH first")
    parser.add_argument("--user", help="Viewer user id")
    parser.add_argument("--roles", default="", help="Comma separated roles, e.g. ADMIN,INSTRUCTOR")
    parser.add_argument("--scope")
    parser.add_argument("--view")
    parser.add_argument("--state")
    args = parser.parse_args(argv)

    if args.migrate:
        migrate(settings.DB_PATH)
        print(f"migrated {settings.DB_PATH}")
    if not args.user:
        if args.migrate:
            return 0
        parser.error("--user is required")

    roles = [role for role in args.roles.split(",") if role.strip()]
    try:
        data = get_command_center_data_sync(args.user, roles, args.scope, args.view, args.state)
    except InterviewHubError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(render(data))
    return 0


if __name__ == "__main__":
    sys.exit(main())
