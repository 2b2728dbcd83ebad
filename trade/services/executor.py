import logging
from typing import Optional

from django.db import transaction

from core.stores import LeaguePolicy
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.exceptions import ErrorCode, ExecutionIntegrityError
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from trade.transitions import transition

logger = logging.getLogger(__name__)


class RosterExchangeExecutor:
	"""
	Swaps the assets of a trade between the two rosters.

	The two removals, the two additions and the status flip are applied in a single
	savepoint: either all of them are committed with the caller's transaction or none of
	them is.
	"""

	def __init__(self, context: TradeContext) -> None:
		self.context = context

	def _exchange(self, trade: Trade, policy: LeaguePolicy) -> None:
		"""
		Re-validate ownership and move the assets.

		Raises:
			ExecutionIntegrityError: If an asset left its team since the trade was proposed.
		"""
		rosters = self.context.rosters
		gives, receives = trade.gives, trade.receives

		rosters.lock([trade.initiator_id, trade.partner_id], policy.season)

		missing_gives = gives - rosters.list_assets(trade.initiator_id, policy.season)
		missing_receives = receives - rosters.list_assets(trade.partner_id, policy.season)

		if missing_gives or missing_receives:
			raise ExecutionIntegrityError(
				ErrorCode.ASSET_NO_LONGER_OWNED,
				"Some assets are no longer owned by the teams trading them.",
				{
					"initiator_missing": missing_gives.describe(),
					"partner_missing": missing_receives.describe(),
				},
			)

		moved = rosters.transfer_assets(
			trade.initiator_id,
			trade.partner_id,
			gives,
			policy.season,
			policy.current_week,
		) and rosters.transfer_assets(
			trade.partner_id,
			trade.initiator_id,
			receives,
			policy.season,
			policy.current_week,
		)

		if not moved:
			raise ExecutionIntegrityError(
				ErrorCode.ASSET_NO_LONGER_OWNED,
				"Assets changed hands while the trade was being executed.",
			)

	def apply(
		self,
		trade: Trade,
		action: TradeActions = TradeActions.EXECUTE,
		*,
		actor_id: Optional[int] = None,
		policy: Optional[LeaguePolicy] = None,
	) -> Trade:
		"""
		Execute a trade locked by the caller's transaction.

		On failure the roster changes are rolled back, the trade keeps its status,
		``execution_failed_at`` is stamped and both parties are told.

		Args:
			trade (Trade): The trade, locked with ``select_for_update``.
			action (TradeActions): ``execute`` or ``force_execute``.
			actor_id (Optional[int]): User responsible for the execution, if any.
			policy (Optional[LeaguePolicy]): The league policy, read from the store when omitted.

		Raises:
			ExecutionIntegrityError: If the assets are no longer owned by the teams trading them.

		Returns:
			Trade: The executed trade.
		"""
		next_status = transition(trade.status, action)
		policy = policy or self.context.policies.get_policy(trade.league_id)
		now = self.context.now()

		try:
			with transaction.atomic():
				self._exchange(trade, policy)

				trade.status = next_status
				trade.executed_at = now
				trade.save(update_fields=["status", "executed_at", "updated_at"])

				TradeEvent.record(
					trade,
					TradeEventTypes.EXECUTED,
					at=now,
					actor_id=actor_id,
					recipients=trade.party_user_ids(),
					message=f"The trade between {trade.initiator} and {trade.partner} has been executed.",
					payload={"gives": trade.initiator_gives, "receives": trade.initiator_receives},
				)

		except ExecutionIntegrityError as e:
			trade.refresh_from_db(fields=["status", "executed_at"])
			trade.execution_failed_at = now
			trade.save(update_fields=["execution_failed_at", "updated_at"])

			TradeEvent.record(
				trade,
				TradeEventTypes.EXECUTION_FAILED,
				at=now,
				actor_id=actor_id,
				recipients=trade.party_user_ids(),
				message=(
					f"The trade between {trade.initiator} and {trade.partner} could not be executed: "
					f"{e.message} Cancel it or ask the commissioner to retry."
				),
				payload={"code": e.code.value, **e.details},
			)

			logger.warning(f"Execution of trade {trade.pk} aborted: {e}")
			raise

		logger.info(f"Trade {trade.pk} executed ({action})")
		return trade

	def execute(self, trade_id: int, action: TradeActions = TradeActions.EXECUTE, actor_id: Optional[int] = None) -> Trade:
		"""
		Execute a trade in its own transaction.

		Args:
			trade_id (int): The trade to execute.
			action (TradeActions): ``execute`` or ``force_execute``.
			actor_id (Optional[int]): User responsible for the execution, if any.

		Raises:
			ExecutionIntegrityError: After the failure has been recorded and committed.

		Returns:
			Trade: The executed trade.
		"""
		error: Optional[ExecutionIntegrityError] = None

		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			try:
				self.apply(trade, action, actor_id=actor_id)

			except ExecutionIntegrityError as e:
				error = e

		self.context.outbox.schedule()

		if error is not None:
			raise error

		return trade
