import logging
from typing import Optional

from django.db import transaction

from core.models import LeagueMember
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import OverrideActions
from trade.exceptions import AuthorizationError, ErrorCode, ExecutionIntegrityError, ValidationError
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from trade.services.executor import RosterExchangeExecutor
from trade.transitions import transition

logger = logging.getLogger(__name__)


class CommissionerOverride:
	"""Lets a league commissioner settle any open trade, bypassing the partner and the league vote."""

	def __init__(self, context: TradeContext, executor: RosterExchangeExecutor) -> None:
		self.context = context
		self.executor = executor

	def override(self, trade_id: int, user_id: int, action: OverrideActions, reason: str) -> Trade:
		"""
		Force a trade through or veto it.

		Args:
			trade_id (int): The trade to settle, proposed or accepted.
			user_id (int): The acting user, must be a commissioner of the trade's league.
			action (OverrideActions): ``approve`` executes the trade, ``veto`` vetoes it.
			reason (str): Why the commissioner stepped in. Shown to both parties.

		Raises:
			ValidationError: If no reason is given.
			AuthorizationError: If the user is not a commissioner of the league.
			StateConflictError: If the trade is already settled.
			ExecutionIntegrityError: If an approved trade could not be executed. The trade keeps its status.

		Returns:
			Trade: The executed or vetoed trade.
		"""
		action = OverrideActions(action)
		reason = (reason or "").strip()

		if not reason:
			raise ValidationError(ErrorCode.MISSING_REASON, "A reason is required to override a trade.")

		error: Optional[ExecutionIntegrityError] = None

		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			if self.context.memberships.role(user_id, trade.league_id) != LeagueMember.Roles.COMMISSIONER:
				raise AuthorizationError(ErrorCode.NOT_COMMISSIONER, "Only a commissioner can override trades.")

			previous_status = trade.status

			try:
				if action is OverrideActions.APPROVE:
					self.executor.apply(trade, action.trade_action, actor_id=user_id)

				else:
					trade.status = transition(trade.status, action.trade_action)

			except ExecutionIntegrityError as e:
				error = e

			else:
				now = self.context.now()

				trade.commissioner_override = True
				trade.override_reason = reason
				trade.responded_at = now
				trade.save(
					update_fields=["status", "commissioner_override", "override_reason", "responded_at", "updated_at"],
				)

				TradeEvent.record(
					trade,
					TradeEventTypes.OVERRIDDEN,
					at=now,
					actor_id=user_id,
					recipients=trade.party_user_ids(),
					message=f"The commissioner has {'approved' if action is OverrideActions.APPROVE else 'vetoed'} "
					f"the trade between {trade.initiator} and {trade.partner}: {reason}",
					payload={"action": action.value, "reason": reason, "previous_status": previous_status},
				)

		self.context.outbox.schedule()

		if error is not None:
			raise error

		logger.info(f"Trade {trade_id} overridden by commissioner {user_id}: {action} ({previous_status} -> {trade.status})")
		return trade
