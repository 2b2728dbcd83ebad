"""Periodic housekeeping of open trades.

The sweeper is the only place where time moves trades forward on its own: proposals
past their expiry are expired, accepted trades whose league review ended are executed
or vetoed, and partners are reminded once before a proposal runs out.

Every trade is handled in its own transaction after being re-read under lock, so a trade
acted upon by a user in the meantime is skipped and running the sweep twice is harmless.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, fields
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.db.models import QuerySet

from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import ExecutionIntegrityError
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from trade.services.executor import RosterExchangeExecutor
from trade.transitions import transition
from tradeflow.settings import TRADE_SETTINGS

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
	"""How many trades a sweep moved, per outcome."""

	expired: int = 0
	executed: int = 0
	vetoed: int = 0
	failed: int = 0
	reminded: int = 0
	skipped: int = 0

	@property
	def total(self) -> int:
		"""Number of trades the sweep changed."""
		return self.expired + self.executed + self.vetoed + self.reminded

	def as_dict(self) -> dict[str, int]:  # noqa: D102
		return {item.name: getattr(self, item.name) for item in fields(self)}

	def __str__(self) -> str:
		return ", ".join(f"{count} {name}" for name, count in self.as_dict().items())


class ExpirationSweeper:
	"""Expires stale proposals, settles trades whose review ended and reminds partners of deadlines."""

	def __init__(
		self,
		context: TradeContext,
		executor: RosterExchangeExecutor,
		batch_size: Optional[int] = None,
	) -> None:
		self.context = context
		self.executor = executor
		self.batch_size = batch_size or TRADE_SETTINGS.SWEEP_BATCH_SIZE

	@staticmethod
	def _batches(
		queryset: QuerySet[Trade],
		batch_size: int,
		should_continue: Callable[[], bool],
	) -> Iterator[list[int]]:
		"""
		Yield ids of the trades matching ``queryset``, a batch at a time.

		The queryset is re-evaluated for every batch: trades handled by a previous batch
		drop out of it, and the ones left untouched are excluded explicitly.
		"""  # noqa: DOC402
		seen: set[int] = set()

		while should_continue():
			batch = list(queryset.exclude(pk__in=seen).order_by("pk").values_list("pk", flat=True)[:batch_size])

			if not batch:
				return

			seen.update(batch)
			yield batch

	def _expire(self, trade_id: int, report: SweepReport) -> None:
		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			if trade.status != TradeStatuses.PROPOSED or self.context.now() <= trade.expires_at:
				report.skipped += 1
				return

			self.context.expire(trade)

		report.expired += 1
		logger.info(f"Trade {trade_id} expired")

	def _close_review(self, trade_id: int, report: SweepReport) -> None:
		"""Settle an accepted trade whose review window is over."""
		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			if (
				trade.status != TradeStatuses.ACCEPTED
				or trade.review_ends_at is None
				or trade.execution_failed_at is not None
				or self.context.now() <= trade.review_ends_at
			):
				report.skipped += 1
				return

			policy = self.context.policies.get_policy(trade.league_id)

			if policy.voting_enabled and trade.veto_votes >= policy.trade_votes_needed:
				now = self.context.now()

				trade.status = transition(trade.status, TradeActions.VETO)
				trade.responded_at = now
				trade.save(update_fields=["status", "responded_at", "updated_at"])

				TradeEvent.record(
					trade,
					TradeEventTypes.VETOED,
					at=now,
					recipients=trade.party_user_ids(),
					message=(
						f"The trade between {trade.initiator} and {trade.partner} has been vetoed by the league "
						f"({trade.veto_votes} votes)."
					),
					payload={"veto_votes": trade.veto_votes, "votes_needed": policy.trade_votes_needed},
				)

				report.vetoed += 1
				logger.info(f"Trade {trade_id} vetoed at the end of its review")
				return

			try:
				self.executor.apply(trade, TradeActions.EXECUTE, policy=policy)

			except ExecutionIntegrityError:
				report.failed += 1
				return

		report.executed += 1

	def _remind(self, trade_id: int, report: SweepReport) -> None:
		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)
			now = self.context.now()

			if trade.status != TradeStatuses.PROPOSED or trade.reminded_at is not None or now > trade.expires_at:
				report.skipped += 1
				return

			trade.reminded_at = now
			trade.save(update_fields=["reminded_at", "updated_at"])

			hours_left = max(1, int((trade.expires_at - now).total_seconds() // 3600))

			TradeEvent.record(
				trade,
				TradeEventTypes.EXPIRING_SOON,
				at=now,
				recipients=[self.context.memberships.team_owner(trade.partner_id)],
				message=f"The trade proposal from {trade.initiator} expires in {hours_left} hours.",
				payload={"expires_at": trade.expires_at.isoformat()},
			)

		report.reminded += 1

	def sweep(
		self,
		batch_size: Optional[int] = None,
		should_continue: Optional[Callable[[], bool]] = None,
	) -> SweepReport:
		"""
		Run one pass over every open trade that is due.

		Args:
			batch_size (Optional[int]): Number of trades fetched at once, defaults to the configured size.
			should_continue (Optional[Callable[[], bool]]): Consulted before each batch, the sweep stops early
				when it returns False.

		Returns:
			SweepReport: The number of trades moved, per outcome.
		"""
		batch_size = batch_size or self.batch_size
		should_continue = should_continue or (lambda: True)
		report = SweepReport()
		now = self.context.now()

		due = (
			(
				Trade.objects.filter(status=TradeStatuses.PROPOSED, expires_at__lt=now),
				self._expire,
			),
			(
				Trade.objects.filter(
					status=TradeStatuses.ACCEPTED,
					review_ends_at__lt=now,
					execution_failed_at__isnull=True,
				),
				self._close_review,
			),
			(
				Trade.objects.filter(
					status=TradeStatuses.PROPOSED,
					reminded_at__isnull=True,
					expires_at__gte=now,
					expires_at__lte=now + timedelta(hours=TRADE_SETTINGS.REMINDER_WINDOW_HOURS),
				),
				self._remind,
			),
		)

		for queryset, handle in due:
			for batch in self._batches(queryset, batch_size, should_continue):
				for trade_id in batch:
					handle(trade_id, report)

		self.context.outbox.schedule()

		if report.failed:
			logger.warning(f"Trade sweep finished with {report.failed} failed executions: {report}")

		elif report.total:
			logger.info(f"Trade sweep finished: {report}")

		return report
