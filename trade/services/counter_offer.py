import logging
from typing import Optional

from django.db import transaction

from core.types.assets import AssetBundle
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.exceptions import AuthorizationError, ErrorCode
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from trade.services.proposal_validator import TradeProposalValidator
from trade.services.state_machine import TradeStateMachine
from trade.transitions import transition

logger = logging.getLogger(__name__)


class CounterOfferLinker:
	"""Answers a proposal with a new one going the other way, linked to the original."""

	def __init__(self, context: TradeContext, validator: TradeProposalValidator) -> None:
		self.context = context
		self.validator = validator

	def counter(  # noqa: PLR0913
		self,
		trade_id: int,
		user_id: int,
		gives: AssetBundle,
		receives: AssetBundle,
		note: str = "",
		expiration_days: Optional[int] = None,
	) -> Trade:
		"""
		Counter a proposal.

		The partner of the original trade becomes the initiator of the counteroffer.
		``gives`` and ``receives`` are seen from that new initiator. The counteroffer goes
		through every proposal check, and the original is only marked ``countered`` if the
		counteroffer could be created.

		Args:
			trade_id (int): The proposal being answered.
			user_id (int): The acting user, must own the partner team of the original.
			gives (AssetBundle): Assets the countering team offers.
			receives (AssetBundle): Assets the countering team asks for.
			note (str): Free text shown to the original initiator.
			expiration_days (Optional[int]): Days the original initiator has to respond.

		Raises:
			StateConflictError: If the original is not proposed anymore, or has expired.

		Returns:
			Trade: The counteroffer.
		"""
		expired = False

		with transaction.atomic():
			original = self.context.lock_trade(trade_id)

			if self.context.memberships.team_owner(original.partner_id) != user_id:
				raise AuthorizationError(ErrorCode.NOT_PARTNER, "Only the trade partner can counter this trade.")

			next_status = transition(original.status, TradeActions.COUNTER)

			if self.context.now() > original.expires_at:
				self.context.expire(original)
				expired = True

			else:
				counter_trade = self.validator.propose(
					initiator_team_id=original.partner_id,
					initiator_user_id=user_id,
					partner_team_id=original.initiator_id,
					gives=gives,
					receives=receives,
					expiration_days=expiration_days,
					note=note,
					parent=original,
				)

				original.status = next_status
				original.responded_at = self.context.now()
				original.save(update_fields=["status", "responded_at", "updated_at"])

				TradeEvent.record(
					original,
					TradeEventTypes.COUNTERED,
					at=original.responded_at,
					actor_id=user_id,
					recipients=[original.initiator_user_id],
					message=f"{original.partner} has countered your trade proposal.",
					payload={"counter_trade_id": counter_trade.pk},
				)

		self.context.outbox.schedule()

		if expired:
			logger.info(f"Trade {trade_id} expired when countered")
			raise TradeStateMachine.expired_error(original)

		logger.info(f"Trade {trade_id} countered by trade {counter_trade.pk}")
		return counter_trade
