import logging
from datetime import timedelta
from typing import Optional

from django.db import transaction

from core.models import LeagueMember
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import AuthorizationError, ErrorCode, ExecutionIntegrityError, StateConflictError
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from trade.services.executor import RosterExchangeExecutor
from trade.transitions import transition

logger = logging.getLogger(__name__)


class TradeStateMachine:
	"""
	Guarded responses of the two parties to a trade.

	Every operation locks the trade, checks who is acting, asks ``transition`` for the
	next status and writes it, all in one transaction. Notifications are only delivered
	once that transaction committed.
	"""

	def __init__(self, context: TradeContext, executor: RosterExchangeExecutor) -> None:
		self.context = context
		self.executor = executor

	def _require_partner(self, trade: Trade, user_id: int, action: TradeActions) -> None:
		if self.context.memberships.team_owner(trade.partner_id) != user_id:
			raise AuthorizationError(ErrorCode.NOT_PARTNER, f"Only the trade partner can {action} this trade.")

	@staticmethod
	def _require_initiator(trade: Trade, user_id: int, action: TradeActions) -> None:
		if trade.initiator_user_id != user_id:
			raise AuthorizationError(ErrorCode.NOT_INITIATOR, f"Only the trade initiator can {action} this trade.")

	@staticmethod
	def expired_error(trade: Trade) -> StateConflictError:
		"""The error returned when someone answers a proposal past its expiry."""  # noqa: DOC201
		return StateConflictError(
			ErrorCode.EXPIRED,
			"This trade has expired.",
			{"trade_id": trade.pk, "expires_at": trade.expires_at.isoformat()},
		)

	def accept(self, trade_id: int, user_id: int, note: str = "") -> Trade:
		"""
		Accept a proposal on behalf of the partner team.

		Without league voting the trade is executed right away. With voting it is held
		for the review window and the rest of the league is invited to vote.

		Args:
			trade_id (int): The trade to accept.
			user_id (int): The acting user, must own the partner team.
			note (str): Optional message to the initiator.

		Raises:
			StateConflictError: If the trade is not proposed anymore, or has expired (it is then marked expired).
			ExecutionIntegrityError: If immediate execution failed. The trade stays accepted.

		Returns:
			Trade: The accepted (or executed) trade.
		"""
		expired = False
		error: Optional[ExecutionIntegrityError] = None

		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			self._require_partner(trade, user_id, TradeActions.ACCEPT)
			next_status = transition(trade.status, TradeActions.ACCEPT)
			now = self.context.now()

			if now > trade.expires_at:
				self.context.expire(trade)
				expired = True

			else:
				policy = self.context.policies.get_policy(trade.league_id)

				trade.status = next_status
				trade.responded_at = now
				trade.review_ends_at = (
					now + timedelta(days=policy.trade_review_days) if policy.voting_enabled else None
				)
				trade.save(update_fields=["status", "responded_at", "review_ends_at", "updated_at"])

				TradeEvent.record(
					trade,
					TradeEventTypes.ACCEPTED,
					at=now,
					actor_id=user_id,
					recipients=[trade.initiator_user_id],
					message=f"Your trade with {trade.partner} has been accepted!",
					payload={"note": note} if note else {},
				)

				if policy.voting_enabled:
					parties = trade.party_user_ids()

					TradeEvent.record(
						trade,
						TradeEventTypes.REVIEW_STARTED,
						at=now,
						recipients=[
							member for member in self.context.memberships.members(trade.league_id) if member not in parties
						],
						message=f"A trade between {trade.initiator} and {trade.partner} is under review.",
						payload={
							"review_ends_at": trade.review_ends_at.isoformat(),
							"votes_needed": policy.trade_votes_needed,
						},
					)

				else:
					try:
						self.executor.apply(trade, TradeActions.EXECUTE, actor_id=user_id, policy=policy)

					except ExecutionIntegrityError as e:
						error = e

		self.context.outbox.schedule()

		if expired:
			logger.info(f"Trade {trade_id} expired when accepted")
			raise self.expired_error(trade)

		if error is not None:
			raise error

		logger.info(f"Trade {trade_id} accepted ({trade.status})")
		return trade

	def reject(self, trade_id: int, user_id: int, reason: str = "") -> Trade:
		"""
		Reject a proposal on behalf of the partner team.

		Args:
			trade_id (int): The trade to reject.
			user_id (int): The acting user, must own the partner team.
			reason (str): Optional explanation for the initiator.

		Returns:
			Trade: The rejected trade.
		"""
		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			self._require_partner(trade, user_id, TradeActions.REJECT)
			trade.status = transition(trade.status, TradeActions.REJECT)
			trade.reject_reason = reason
			trade.responded_at = self.context.now()
			trade.save(update_fields=["status", "reject_reason", "responded_at", "updated_at"])

			TradeEvent.record(
				trade,
				TradeEventTypes.REJECTED,
				at=trade.responded_at,
				actor_id=user_id,
				recipients=[trade.initiator_user_id],
				message=f"Your trade with {trade.partner} has been rejected{': ' + reason if reason else ''}",
				payload={"reason": reason} if reason else {},
			)

		self.context.outbox.schedule()
		logger.info(f"Trade {trade_id} rejected")

		return trade

	def cancel(self, trade_id: int, user_id: int) -> Trade:
		"""
		Withdraw a proposed or accepted trade on behalf of its initiator.

		Args:
			trade_id (int): The trade to cancel.
			user_id (int): The acting user, must be the one who proposed the trade.

		Returns:
			Trade: The cancelled trade.
		"""
		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			self._require_initiator(trade, user_id, TradeActions.CANCEL)
			trade.status = transition(trade.status, TradeActions.CANCEL)
			trade.responded_at = self.context.now()
			trade.save(update_fields=["status", "responded_at", "updated_at"])

			TradeEvent.record(
				trade,
				TradeEventTypes.CANCELLED,
				at=trade.responded_at,
				actor_id=user_id,
				recipients=[self.context.memberships.team_owner(trade.partner_id)],
				message=f"{trade.initiator} has cancelled their trade proposal.",
			)

		self.context.outbox.schedule()
		logger.info(f"Trade {trade_id} cancelled")

		return trade

	def execute(self, trade_id: int, user_id: int) -> Trade:
		"""
		Retry the execution of an accepted trade, typically after assets were moved back.

		Args:
			trade_id (int): The trade to execute.
			user_id (int): The acting user, a party to the trade or a commissioner.

		Raises:
			AuthorizationError: If the user is neither a party nor a commissioner.
			StateConflictError: If the league review window is still open.
			ExecutionIntegrityError: If the assets are still not where the trade expects them.

		Returns:
			Trade: The executed trade.
		"""
		error: Optional[ExecutionIntegrityError] = None

		with transaction.atomic():
			trade = self.context.lock_trade(trade_id)

			is_commissioner = (
				self.context.memberships.role(user_id, trade.league_id) == LeagueMember.Roles.COMMISSIONER
			)

			if user_id not in trade.party_user_ids() and not is_commissioner:
				raise AuthorizationError(
					ErrorCode.NOT_PARTY,
					"Only the trade parties or a commissioner can execute this trade.",
				)

			if (
				trade.status == TradeStatuses.ACCEPTED
				and trade.review_ends_at is not None
				and self.context.now() <= trade.review_ends_at
			):
				raise StateConflictError(
					ErrorCode.REVIEW_PENDING,
					"The league review period for this trade has not ended yet.",
					{"review_ends_at": trade.review_ends_at.isoformat()},
				)

			try:
				self.executor.apply(trade, TradeActions.EXECUTE, actor_id=user_id)

			except ExecutionIntegrityError as e:
				error = e

		self.context.outbox.schedule()

		if error is not None:
			raise error

		return trade
