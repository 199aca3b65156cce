"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime
from pathlib import Path

# Settings are read on first import of logbook; point them at a scratch area first.
_SCRATCH = Path(tempfile.mkdtemp(prefix="logbook-tests-"))
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_SCRATCH / 'logbook.db'}"
os.environ["ATTACHMENTS_DIR"] = str(_SCRATCH / "attachments")
os.environ["DEFAULT_PAGE_LIMIT"] = "100"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from logbook.core.config import settings  # noqa: E402
from logbook.db.models import Attachment, Base, Log, Tag  # noqa: E402
from logbook.db.session import SyncSessionLocal, sync_engine  # noqa: E402

TAGS = {1: "FOOD", 2: "RUN", 3: "MAINTENANCE", 4: "GLOBAL", 5: "TEST", 6: "OTHER"}

# id, title, origin, created_at, parent, root, tag ids
LOGS = [
    (1, "First entry", "human", datetime(2000, 1, 1), 1, 1, []),
    (2, "Run 42 started", "human", datetime(2019, 6, 1, 12, 0), 1, 1, [2, 5]),
    (3, "Cooling check", "human", datetime(2020, 3, 1, 8, 30), 2, 1, [1, 4, 6]),
    (4, "Magnet quench", "human", datetime(2020, 3, 2, 9, 15), 2, 1, [1]),
    (5, "Nightly backup", "process", datetime(2021, 5, 5, 3, 0), 5, 5, []),
]

# id, log id, original name, mime type
ATTACHMENTS = [
    (1, 1, "cern_logo.png", "image/png"),
    (2, 1, "beam_profile.png", "image/png"),
    (3, 1, "hadron_collider.jpg", "image/jpeg"),
    (4, 1, "shift_report.pdf", "application/pdf"),
    (5, 2, "run42.txt", "text/plain"),
]


def _seed(session) -> None:
    tags = {tag_id: Tag(id=tag_id, text=text) for tag_id, text in TAGS.items()}
    session.add_all(tags.values())

    for log_id, title, origin, created_at, parent, root, tag_ids in LOGS:
        session.add(
            Log(
                id=log_id,
                title=title,
                text=f"Text of {title.lower()}",
                origin=origin,
                created_at=created_at,
                parent_log_id=parent,
                root_log_id=root,
                tags=[tags[t] for t in tag_ids],
            )
        )
    session.flush()

    attachments_dir = Path(settings.ATTACHMENTS_DIR)
    attachments_dir.mkdir(parents=True, exist_ok=True)
    for attachment_id, log_id, name, mime_type in ATTACHMENTS:
        content = f"content of {name}".encode()
        file_name = f"seed-{attachment_id}{Path(name).suffix}"
        (attachments_dir / file_name).write_bytes(content)
        session.add(
            Attachment(
                id=attachment_id,
                log_id=log_id,
                original_name=name,
                file_name=file_name,
                mime_type=mime_type,
                size=len(content),
                created_at=datetime(2020, 1, 1),
            )
        )
    session.commit()


@pytest.fixture
def session():
    """A freshly seeded database; yields a sync session on it."""
    Base.metadata.drop_all(sync_engine)
    Base.metadata.create_all(sync_engine)

    db = SyncSessionLocal()
    try:
        _seed(db)
        yield db
    finally:
        db.close()


@pytest.fixture
def client(session):
    """API client over the seeded database."""
    from logbook.main import app

    with TestClient(app) as test_client:
        yield test_client
