"""SQLite schema migrations."""
from __future__ import annotations

import os
import sqlite3
from typing import Iterable

SCHEMA: Iterable[str] = [
    """
CREATE TABLE IF NOT EXISTS chapters (
  id TEXT PRIMARY KEY,
  name TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS users (
  id TEXT PRIMARY KEY,
  name TEXT,
  chapter_id TEXT REFERENCES chapters(id)
);
""",
    """
CREATE TABLE IF NOT EXISTS positions (
  id TEXT PRIMARY KEY,
  title TEXT NOT NULL,
  chapter_id TEXT REFERENCES chapters(id),
  interview_required INTEGER NOT NULL DEFAULT 1
);
""",
    """
CREATE TABLE IF NOT EXISTS applications (
  id TEXT PRIMARY KEY,
  applicant_id TEXT NOT NULL REFERENCES users(id),
  position_id TEXT NOT NULL REFERENCES positions(id),
  status TEXT NOT NULL,
  submitted_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS application_interview_slots (
  id TEXT PRIMARY KEY,
  application_id TEXT NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
  status TEXT NOT NULL,
  scheduled_at TEXT NOT NULL,
  duration_minutes INTEGER,
  confirmed_at TEXT,
  completed_at TEXT
);
""",
    """
CREATE TABLE IF NOT EXISTS application_interview_notes (
  id TEXT PRIMARY KEY,
  application_id TEXT NOT NULL REFERENCES applications(id) ON DELETE CASCADE,
  recommendation TEXT,
  content TEXT NOT NULL DEFAULT ''
);
""",
    """
CREATE TABLE IF NOT EXISTS application_decisions (
  id TEXT PRIMARY KEY,
  application_id TEXT NOT NULL UNIQUE REFERENCES applications(id) ON DELETE CASCADE,
  accepted INTEGER NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS instructor_interview_gates (
  id TEXT PRIMARY KEY,
  instructor_id TEXT UNIQUE REFERENCES users(id),
  chapter_id TEXT REFERENCES chapters(id),
  status TEXT NOT NULL DEFAULT 'REQUIRED',
  outcome TEXT,
  updated_at TEXT NOT NULL
);
""",
    """
CREATE TABLE IF NOT EXISTS instructor_interview_slots (
  id TEXT PRIMARY KEY,
  gate_id TEXT NOT NULL REFERENCES instructor_interview_gates(id) ON DELETE CASCADE,
  status TEXT NOT NULL,
  scheduled_at TEXT NOT NULL,
  duration_minutes INTEGER,
  completed_at TEXT
);
""",
    """
CREATE TABLE IF NOT EXISTS interview_availability_requests (
  id TEXT PRIMARY KEY,
  gate_id TEXT NOT NULL REFERENCES instructor_interview_gates(id) ON DELETE CASCADE,
  status TEXT NOT NULL,
  created_at TEXT NOT NULL
);
""",
    "CREATE INDEX IF NOT EXISTS idx_applications_applicant ON applications(applicant_id);",
    "CREATE INDEX IF NOT EXISTS idx_app_slots_application ON application_interview_slots(application_id);",
    "CREATE INDEX IF NOT EXISTS idx_gate_slots_gate ON instructor_interview_slots(gate_id);",
    "CREATE INDEX IF NOT EXISTS idx_requests_gate ON interview_availability_requests(gate_id);",
]


def migrate(db_path: str = "data/portal.db") -> None:
    """Apply schema migrations to the SQLite database."""

    directory = os.path.dirname(db_path) or "."
    os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        for stmt in SCHEMA:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()


if __name__ == "__main__":
    from config.settings import settings

    migrate(settings.DB_PATH)
