from dataclasses import dataclass, field
from datetime import datetime

from core.stores import (
	DjangoLeaguePolicyStore,
	DjangoMembershipStore,
	DjangoRosterStore,
	LeaguePolicyStore,
	MembershipStore,
	RosterStore,
)
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.exceptions import TradeNotFoundError
from trade.models import Trade, TradeEvent
from trade.services.clock import Clock, SystemClock
from trade.services.outbox import DatabaseNotificationEmitter, OutboxDispatcher
from trade.transitions import transition
from tradeflow.settings import TRADE_SETTINGS


@dataclass
class TradeContext:
	"""The collaborators every trade service works with."""

	rosters: RosterStore = field(default_factory=lambda: DjangoRosterStore(TRADE_SETTINGS.DEFAULT_ROSTER_SLOT))
	policies: LeaguePolicyStore = field(default_factory=DjangoLeaguePolicyStore)
	memberships: MembershipStore = field(default_factory=DjangoMembershipStore)
	clock: Clock = field(default_factory=SystemClock)
	outbox: OutboxDispatcher = None  # pyright: ignore[reportAssignmentType]

	def __post_init__(self) -> None:
		if self.outbox is None:
			self.outbox = OutboxDispatcher(
				DatabaseNotificationEmitter(),
				clock=self.clock,
				max_attempts=TRADE_SETTINGS.OUTBOX_MAX_ATTEMPTS,
			)

	def now(self) -> datetime:  # noqa: D102
		return self.clock.now()

	@staticmethod
	def lock_trade(trade_id: int) -> Trade:
		"""
		Re-read a trade and lock its row until the current transaction ends.

		SQLite has no row locks. There the immediate transaction already holds the database write
		lock, so the read sees the state the previous writer committed.

		Args:
			trade_id (int): The trade to lock.

		Raises:
			TradeNotFoundError: If the trade does not exist.

		Returns:
			Trade: The current state of the trade.
		"""
		try:
			return Trade.objects.select_for_update().get(pk=trade_id)

		except Trade.DoesNotExist:
			raise TradeNotFoundError(trade_id) from None

	def expire(self, trade: Trade) -> None:
		"""
		Move a locked proposal past its deadline to ``expired`` and tell both sides.

		Args:
			trade (Trade): The trade, locked by the current transaction.
		"""
		now = self.now()

		trade.status = transition(trade.status, TradeActions.EXPIRE)
		trade.responded_at = now
		trade.save(update_fields=["status", "responded_at", "updated_at"])

		TradeEvent.record(
			trade,
			TradeEventTypes.EXPIRED,
			at=now,
			recipients=trade.party_user_ids(),
			message=f"The trade proposal between {trade.initiator} and {trade.partner} has expired.",
		)
