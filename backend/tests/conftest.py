import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="tiktok_ingest_tests_")

# settings are read at import time by tiktok_ingest.main
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("API_KEY", "test-key")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP, 'app.db')}")
os.environ.setdefault("MEDIA_HOST_BACKEND", "local")
os.environ.setdefault("MEDIA_LOCAL_DIR", os.path.join(_TMP, "media"))

import pytest  # noqa: E402

from tiktok_ingest.database import Base, build_engine, build_session_factory  # noqa: E402
from tiktok_ingest.services import SqlStorage  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def storage(session_factory):
    return SqlStorage(session_factory)
