import logging
from typing import Optional, Protocol

from django.db import transaction
from django.db.models import F

from core.models import Notification
from trade.enums.event_types import TradeEventTypes
from trade.models import TradeEvent
from trade.services.clock import Clock, SystemClock

logger = logging.getLogger(__name__)

EVENT_TITLES = {
	TradeEventTypes.PROPOSED: "New Trade Proposal",
	TradeEventTypes.ACCEPTED: "Trade Accepted",
	TradeEventTypes.REVIEW_STARTED: "Trade Review Period",
	TradeEventTypes.REJECTED: "Trade Rejected",
	TradeEventTypes.COUNTERED: "Trade Counter-Offer",
	TradeEventTypes.CANCELLED: "Trade Cancelled",
	TradeEventTypes.EXPIRED: "Trade Expired",
	TradeEventTypes.EXPIRING_SOON: "Trade Expiring Soon",
	TradeEventTypes.VOTE_CAST: "Trade Vote",
	TradeEventTypes.VETOED: "Trade Vetoed",
	TradeEventTypes.EXECUTED: "Trade Executed",
	TradeEventTypes.EXECUTION_FAILED: "Trade Could Not Be Executed",
	TradeEventTypes.OVERRIDDEN: "Trade Decided by Commissioner",
}


class NotificationEmitter(Protocol):
	"""Delivers trade events to the users they concern. Must not raise for delivery problems it can absorb."""

	def emit(self, event: TradeEvent) -> None: ...


class DatabaseNotificationEmitter:
	"""Delivers trade events as in-app notifications."""

	@staticmethod
	def emit(event: TradeEvent) -> None:
		"""
		Create one notification per recipient of the event.

		Args:
			event (TradeEvent): The event to deliver.
		"""
		Notification.objects.bulk_create(
			[
				Notification(
					user_id=recipient,
					title=EVENT_TITLES.get(TradeEventTypes(event.event_type), "Trade Update"),
					message=event.message[:255],
					level=event.level,
					priority=10 if event.level != "info" else 5,
					redirect_to=f"/trades/{event.trade_id}/",
				)
				for recipient in event.recipients
			],
		)


class OutboxDispatcher:
	"""
	Hands recorded trade events to a notification emitter once their transaction committed.

	Each event is claimed with a conditional update before it is emitted, so concurrent
	dispatchers never deliver the same event twice. A failing emitter only gets the
	event released for a later attempt: trade state is never affected.
	"""

	def __init__(self, emitter: NotificationEmitter, clock: Optional[Clock] = None, max_attempts: int = 5) -> None:
		self.emitter = emitter
		self.clock = clock or SystemClock()
		self.max_attempts = max_attempts

	def schedule(self) -> None:
		"""Drain the outbox after the current transaction commits (immediately outside of one)."""
		transaction.on_commit(self.drain)

	def drain(self, limit: Optional[int] = None) -> int:
		"""
		Deliver pending events, oldest first.

		Args:
			limit (Optional[int]): Maximum number of events to deliver in this call.

		Returns:
			int: The number of events delivered.
		"""
		pending = TradeEvent.objects.pending().filter(attempts__lt=self.max_attempts).order_by("created_at", "pk")

		if limit is not None:
			pending = pending[:limit]

		delivered = 0

		for event_id in list(pending.values_list("pk", flat=True)):
			claimed = TradeEvent.objects.filter(pk=event_id, dispatched_at__isnull=True).update(
				dispatched_at=self.clock.now(),
				attempts=F("attempts") + 1,
			)

			if not claimed:
				continue

			event = TradeEvent.objects.get(pk=event_id)

			try:
				self.emitter.emit(event)

			except Exception:
				logger.exception(f"Failed to emit trade event {event_id} ({event.event_type}) for trade {event.trade_id}:")
				TradeEvent.objects.filter(pk=event_id).update(dispatched_at=None)
				continue

			delivered += 1

		if delivered:
			logger.debug(f"Delivered {delivered} trade events")

		return delivered
