from __future__ import annotations

from typing import Optional

from fastapi.concurrency import run_in_threadpool

from ..database import db_session
from ..gate.session_gate import ProfileRecord
from ..models import Profile


def load_profile(user_id: str) -> Optional[ProfileRecord]:
    with db_session() as session:
        row = session.get(Profile, user_id)
        if row is None:
            return None
        return ProfileRecord(id=row.id, role=row.role, approval_status=row.approval_status)


class SqlProfileStore:
    """Profile lookups against the relational store, off the event loop."""

    async def fetch_profile(self, user_id: str) -> Optional[ProfileRecord]:
        return await run_in_threadpool(load_profile, user_id)
