import datetime as dt
import os
import sys
import tempfile
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from storage.migrate import migrate
from storage import records
from config.settings import settings


NOW = dt.datetime(2025, 3, 10, 15, 0, tzinfo=dt.timezone.utc)


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield
    finally:
        td.cleanup()


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def portal():
    """Two chapters with an admin, a lead per chapter, an applicant and an instructor."""

    north = records.insert_chapter(id="north", name="North")
    south = records.insert_chapter(id="south", name="South")
    users = {
        "admin": records.insert_user(id="admin", name="Ada Admin"),
        "lead_north": records.insert_user(id="lead_north", name="Lee North", chapter_id=north),
        "lead_south": records.insert_user(id="lead_south", name="Sam South", chapter_id=south),
        "lead_nowhere": records.insert_user(id="lead_nowhere", name="Nia Nowhere"),
        "applicant": records.insert_user(id="applicant", name="Alex Applicant", chapter_id=north),
        "instructor": records.insert_user(id="instructor", name="Ivy Instructor", chapter_id=north),
        "instructor_south": records.insert_user(id="instructor_south", name="Sol Instructor", chapter_id=south),
    }
    positions = {
        "north": records.insert_position(id="pos_north", title="Math Tutor", chapter_id=north),
        "south": records.insert_position(id="pos_south", title="Science Tutor", chapter_id=south),
        "optional": records.insert_position(
            id="pos_optional", title="Volunteer", chapter_id=north, interview_required=False
        ),
    }
    return {"chapters": {"north": north, "south": south}, "users": users, "positions": positions}
