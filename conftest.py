"""
pytest configuration – point the service at a throwaway SQLite file,
initialise tables, and reset rate-limit state between tests so the
shared "unknown" client bucket never spills over from one test to the next.
"""
import os
import tempfile

_DB_DIR = tempfile.mkdtemp(prefix="edulink-tests-")
os.environ.setdefault("EDULINK_DATABASE_URL", f"sqlite:///{os.path.join(_DB_DIR, 'edulink.db')}")
os.environ.setdefault("EDULINK_LOG_FORMAT", "text")

import pytest  # noqa: E402

from edulink.database import Base, engine  # noqa: E402
from edulink import models  # noqa: E402,F401 – registers ORM mappings with Base.metadata
from edulink.main import app  # noqa: E402
from edulink.rate_limit import limiter  # noqa: E402


@pytest.fixture(autouse=True, scope="session")
def create_tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def reset_rate_limits():
    app.state.rate_limiter.reset()
    limiter.reset()
    yield


@pytest.fixture
def make_profile():
    """Factory for profiles; every row it creates is deleted after the test."""
    import uuid

    from edulink.auth.core import hash_password
    from edulink.database import db_session
    from edulink.models import Profile, Wallet

    created: list[str] = []

    def _make(role: str = "student", approval_status: str = "approved",
              password: str = "correct-horse") -> Profile:
        with db_session() as session:
            profile = Profile(
                email=f"{role}-{uuid.uuid4().hex[:10]}@example.com",
                display_name=f"Test {role.capitalize()}",
                password_hash=hash_password(password),
                role=role,
                approval_status=approval_status,
            )
            session.add(profile)
            session.flush()
        created.append(profile.id)
        return profile

    yield _make

    with db_session() as session:
        for profile_id in created:
            session.query(Wallet).filter(Wallet.user_id == profile_id).delete()
            session.query(Profile).filter(Profile.id == profile_id).delete()
