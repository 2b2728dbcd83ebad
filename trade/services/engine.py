"""Single entry point to the trade engine.

``TradeEngine`` wires the trade services around one shared ``TradeContext`` and exposes
every operation the request layer, the management commands and the tests need.
"""

from typing import Callable, Optional

from core.types.assets import AssetBundle
from trade.enums.trade_actions import OverrideActions
from trade.enums.vote_types import VoteTypes
from trade.models import Trade
from trade.services.commissioner_override import CommissionerOverride
from trade.services.context import TradeContext
from trade.services.counter_offer import CounterOfferLinker
from trade.services.executor import RosterExchangeExecutor
from trade.services.expiration_sweeper import ExpirationSweeper, SweepReport
from trade.services.proposal_validator import TradeProposalValidator
from trade.services.state_machine import TradeStateMachine
from trade.services.vote_tally import VoteResult, VoteTally


class TradeEngine:
	"""Entry point of the trade workflow, wiring every service to one shared context."""

	def __init__(self, context: Optional[TradeContext] = None) -> None:
		self.context = context or TradeContext()

		self.validator = TradeProposalValidator(self.context)
		self.executor = RosterExchangeExecutor(self.context)
		self.state_machine = TradeStateMachine(self.context, self.executor)
		self.votes = VoteTally(self.context)
		self.counter_offers = CounterOfferLinker(self.context, self.validator)
		self.overrides = CommissionerOverride(self.context, self.executor)
		self.sweeper = ExpirationSweeper(self.context, self.executor)

	def propose(  # noqa: PLR0913, D102
		self,
		initiator_team_id: int,
		initiator_user_id: int,
		partner_team_id: int,
		gives: AssetBundle,
		receives: AssetBundle,
		expiration_days: Optional[int] = None,
		note: str = "",
	) -> Trade:
		return self.validator.propose(
			initiator_team_id,
			initiator_user_id,
			partner_team_id,
			gives,
			receives,
			expiration_days=expiration_days,
			note=note,
		)

	def accept(self, trade_id: int, user_id: int, note: str = "") -> Trade:  # noqa: D102
		return self.state_machine.accept(trade_id, user_id, note=note)

	def reject(self, trade_id: int, user_id: int, reason: str = "") -> Trade:  # noqa: D102
		return self.state_machine.reject(trade_id, user_id, reason=reason)

	def counter(  # noqa: PLR0913, D102
		self,
		trade_id: int,
		user_id: int,
		gives: AssetBundle,
		receives: AssetBundle,
		note: str = "",
		expiration_days: Optional[int] = None,
	) -> Trade:
		return self.counter_offers.counter(
			trade_id,
			user_id,
			gives,
			receives,
			note=note,
			expiration_days=expiration_days,
		)

	def cancel(self, trade_id: int, user_id: int) -> Trade:  # noqa: D102
		return self.state_machine.cancel(trade_id, user_id)

	def vote(self, trade_id: int, user_id: int, vote_type: VoteTypes, reason: str = "") -> VoteResult:  # noqa: D102
		return self.votes.cast(trade_id, user_id, vote_type, reason=reason)

	def override(self, trade_id: int, user_id: int, action: OverrideActions, reason: str) -> Trade:  # noqa: D102
		return self.overrides.override(trade_id, user_id, action, reason)

	def execute(self, trade_id: int, user_id: int) -> Trade:  # noqa: D102
		return self.state_machine.execute(trade_id, user_id)

	def sweep(  # noqa: D102
		self,
		batch_size: Optional[int] = None,
		should_continue: Optional[Callable[[], bool]] = None,
	) -> SweepReport:
		return self.sweeper.sweep(batch_size=batch_size, should_continue=should_continue)
