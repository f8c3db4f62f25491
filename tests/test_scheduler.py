# =============================================================================
# tests/test_scheduler.py - Background Job Tests
# =============================================================================

from datetime import timedelta

from core import issue_link
from core.auth_links import utcnow
from database import AuthLinkPurpose, get_auth_link_by_token
from scheduler import purge_expired_links_job


class TestLinkCleanupJob:
    """Tests for the periodic auth link cleanup."""

    async def test_job_deletes_dead_links(self, db, user):
        dead = await issue_link(
            db, 42, AuthLinkPurpose.RATING_PAGE, ttl=timedelta(minutes=1), now=utcnow() - timedelta(days=3)
        )
        alive = await issue_link(db, 42, AuthLinkPurpose.RATING_PAGE)

        deleted = await purge_expired_links_job()

        assert deleted == 1
        assert await get_auth_link_by_token(db, dead.token) is None
        assert await get_auth_link_by_token(db, alive.token) is not None

