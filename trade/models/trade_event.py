"""Trade event log, doubling as the notification outbox.

Events are written in the same transaction as the state change they describe, so the
log can never disagree with the trade. Delivery to users happens after commit through
``trade.services.outbox``; ``dispatched_at`` stays empty until an emitter took the event.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional

from django.db import models

from trade.enums.event_types import TradeEventTypes

if TYPE_CHECKING:
	from datetime import datetime

	from trade.models.trade import Trade


class TradeEventQuerySet(models.QuerySet):
	def pending(self) -> TradeEventQuerySet:
		"""Events that were never handed to an emitter."""  # noqa: DOC201
		return self.filter(dispatched_at__isnull=True)


class TradeEvent(models.Model):
	"""
	Immutable audit log entry for something that happened to a trade.

	Attributes:
		trade: The trade this event is about.
		event_type: What happened.
		actor: User who triggered the event (None for system events such as the sweeper).
		recipients: Ids of the users to notify.
		message: Human readable description, also used as notification text.
		payload: Extra structured data (assets, reasons, vote counts).
		created_at: When the event was recorded.
		dispatched_at: When the event was handed to the notification emitter.
		attempts: Number of delivery attempts so far.
	"""

	trade = models.ForeignKey("trade.Trade", on_delete=models.CASCADE, related_name="events")
	event_type = models.CharField(max_length=30, choices=TradeEventTypes.choices())
	actor = models.ForeignKey(
		"core.User",
		null=True,
		blank=True,
		on_delete=models.SET_NULL,
		related_name="trade_events",
	)
	recipients = models.JSONField(default=list, help_text="Ids of the users to notify")
	message = models.TextField(blank=True)
	payload = models.JSONField(default=dict, blank=True)

	created_at = models.DateTimeField()
	dispatched_at = models.DateTimeField(null=True, blank=True)
	attempts = models.PositiveIntegerField(default=0)

	objects = TradeEventQuerySet.as_manager()

	class Meta:  # noqa: D106
		ordering = ("created_at", "pk")
		indexes = [
			models.Index(fields=["trade", "created_at"], name="trade_event_trade_date_idx"),
			models.Index(fields=["dispatched_at"], name="trade_event_dispatch_idx"),
		]

	def __str__(self) -> str:
		return f"{self.get_event_type_display()} on trade {self.trade_id}"  # pyright: ignore[reportAttributeAccessIssue]

	@classmethod
	def record(  # noqa: PLR0913
		cls,
		trade: Trade,
		event_type: TradeEventTypes,
		*,
		at: datetime,
		recipients: Iterable[int] = (),
		message: str = "",
		actor_id: Optional[int] = None,
		payload: Optional[dict[str, Any]] = None,
	) -> TradeEvent:
		"""
		Append an event to the trade's log.

		Args:
			trade: The trade the event is about.
			event_type: What happened.
			at: When it happened, as seen by the engine clock.
			recipients: Users to notify. Duplicates and empty ids are dropped.
			message: Notification text.
			actor_id: User who triggered the event.
			payload: Extra structured data.

		Returns:
			The stored event.
		"""
		return cls.objects.create(
			trade=trade,
			event_type=event_type,
			actor_id=actor_id,
			recipients=sorted({recipient for recipient in recipients if recipient}),
			message=message,
			payload=payload or {},
			created_at=at,
		)

	@property
	def level(self) -> str:
		"""Notification level of this event."""
		return TradeEventTypes(self.event_type).level
