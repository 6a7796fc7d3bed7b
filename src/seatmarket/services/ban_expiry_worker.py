"""
Background worker that lifts account locks whose expiry has passed
"""
import asyncio
from datetime import datetime
from sqlalchemy import select

from seatmarket.core.config import settings
from seatmarket.core.database import AsyncSessionLocal
from seatmarket.core.metrics import bans_lifted_total
from seatmarket.models import User
import logging

logger = logging.getLogger(__name__)


async def lift_expired_bans(db) -> int:
    """Unlock every banned user whose ban_expires is in the past"""
    now = datetime.utcnow()
    query = select(User).where(
        User.banned == True,  # noqa: E712
        User.ban_expires.is_not(None),
        User.ban_expires < now,
    )
    users = (await db.execute(query)).scalars().all()

    for user in users:
        user.banned = False
        user.ban_reason = None
        user.ban_expires = None
        logger.info(f"  🔓 Lifted expired ban for user {user.id}", extra={'user_id': user.id})

    if users:
        await db.commit()
        bans_lifted_total.inc(len(users))
    return len(users)


class BanExpiryWorker:
    """Runs immediately at start, then every BAN_EXPIRY_CHECK_INTERVAL_SECONDS"""

    def __init__(self, session_factory=None, interval: int = None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.interval = interval or settings.BAN_EXPIRY_CHECK_INTERVAL_SECONDS
        self.running = False
        self.task = None

    async def start(self):
        if self.running:
            logger.warning("⚠️  Ban expiry worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"✅ Ban expiry worker started (interval: {self.interval}s)")

    async def stop(self):
        if not self.running:
            return

        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
        logger.info("🛑 Ban expiry worker stopped")

    async def run_once(self) -> int:
        async with self.session_factory() as db:
            try:
                count = await lift_expired_bans(db)
            except Exception:
                await db.rollback()
                raise
        if count:
            logger.info(f"⏰ Lifted {count} expired bans")
        return count

    async def _run(self):
        while self.running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"❌ Error lifting expired bans: {e}")
            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break


ban_expiry_worker = BanExpiryWorker()
