"""
Background worker that cancels pending orders whose seat hold has lapsed
"""
import asyncio
from datetime import datetime
from collections import defaultdict
from sqlalchemy import select, delete

from seatmarket.core.config import settings
from seatmarket.core.database import AsyncSessionLocal
from seatmarket.core.metrics import orders_cancelled_total
from seatmarket.models import Order, OrderStatus, SeatHold
from seatmarket.services.cache_service import CacheService
from seatmarket.services.checkout_service import CheckoutService
from seatmarket.services.websocket_manager import manager
import logging

logger = logging.getLogger(__name__)


async def release_expired_holds(db) -> int:
    """
    Cancel expired pending orders and delete their unconfirmed holds.

    Returns the number of orders cancelled.
    """
    now = datetime.utcnow()
    orders = (
        await db.execute(
            select(Order)
            .where(Order.status == OrderStatus.PENDING)
            .where(Order.expires_at.is_not(None))
            .where(Order.expires_at < now)
        )
    ).scalars().all()
    if not orders:
        return 0

    order_ids = [o.id for o in orders]
    released = defaultdict(list)
    holds = (
        await db.execute(
            select(SeatHold.event_id, SeatHold.seat_id, SeatHold.order_id)
            .where(SeatHold.order_id.in_(order_ids))
            .where(SeatHold.is_confirmed == False)  # noqa: E712
        )
    ).all()
    for event_id, seat_id, order_id in holds:
        released[(event_id, order_id)].append(seat_id)

    for order in orders:
        order.status = OrderStatus.CANCELLED
        order.expires_at = None
    await db.execute(
        delete(SeatHold)
        .where(SeatHold.order_id.in_(order_ids))
        .where(SeatHold.is_confirmed == False)  # noqa: E712
    )
    await db.commit()

    orders_cancelled_total.labels(source="expiry").inc(len(orders))
    for order in orders:
        logger.info(f"  ⌛ Order {order.id} expired, hold released", extra={'order_id': order.id})

    for event_id in {o.event_id for o in orders}:
        await CacheService.invalidate_event_seats(event_id)
    for (event_id, order_id), seat_ids in released.items():
        # another buyer may already hold or own a seat whose old hold lapsed
        taken = set(await CheckoutService.unavailable_seat_ids(db, event_id, seat_ids))
        free = sorted(set(seat_ids) - taken)
        if free:
            await manager.broadcast_seat_update(event_id, free, "released", order_id)

    return len(orders)


class HoldExpiryWorker:
    """Runs every HOLD_EXPIRY_CHECK_INTERVAL_SECONDS"""

    def __init__(self, session_factory=None, interval: int = None):
        self.session_factory = session_factory or AsyncSessionLocal
        self.interval = interval or settings.HOLD_EXPIRY_CHECK_INTERVAL_SECONDS
        self.running = False
        self.task = None

    async def start(self):
        if self.running:
            logger.warning("⚠️  Hold expiry worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run())
        logger.info(f"✅ Hold expiry worker started (interval: {self.interval}s)")

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
        logger.info("🛑 Hold expiry worker stopped")

    async def run_once(self) -> int:
        async with self.session_factory() as db:
            try:
                count = await release_expired_holds(db)
            except Exception:
                await db.rollback()
                raise
        if count:
            logger.info(f"⏰ Cancelled {count} expired orders")
        return count

    async def _run(self):
        while self.running:
            try:
                await self.run_once()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"❌ Error releasing expired holds: {e}")
            try:
                await asyncio.sleep(self.interval)
            except asyncio.CancelledError:
                break


hold_expiry_worker = HoldExpiryWorker()
