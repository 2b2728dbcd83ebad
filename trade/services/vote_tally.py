import logging
from dataclasses import dataclass

from django.db import IntegrityError, transaction
from django.db.models import F

from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import TradeActions
from trade.enums.trade_statuses import TradeStatuses
from trade.enums.vote_types import VoteTypes
from trade.exceptions import AuthorizationError, ErrorCode, StateConflictError, TradeNotFoundError
from trade.models import Trade, TradeEvent, TradeVote
from trade.services.context import TradeContext
from trade.transitions import transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteResult:
	"""Outcome of a single vote."""

	vote: TradeVote
	veto_votes: int
	votes_needed: int
	vetoed: bool


class VoteTally:
	"""
	Collects league votes on accepted trades and vetoes them once enough members object.

	The veto counter is only ever changed with conditional updates filtered on the
	``accepted`` status, so two members vetoing at the same time both get counted and
	exactly one of them flips the trade to ``vetoed``.
	"""

	def __init__(self, context: TradeContext) -> None:
		self.context = context

	def _check_voter(self, trade: Trade, user_id: int) -> None:
		if not self.context.memberships.is_member(user_id, trade.league_id):
			raise AuthorizationError(ErrorCode.NOT_MEMBER, "Only league members can vote on trades.")

		if user_id in trade.party_user_ids():
			raise AuthorizationError(ErrorCode.SELF_VOTE, "You cannot vote on your own trade.")

		if TradeVote.objects.filter(trade=trade, user_id=user_id).exists():
			raise AuthorizationError(ErrorCode.ALREADY_VOTED, "You have already voted on this trade.")

	def cast(self, trade_id: int, user_id: int, vote_type: VoteTypes, reason: str = "") -> VoteResult:
		"""
		Record a league member's vote on an accepted trade.

		Args:
			trade_id (int): The trade being reviewed.
			user_id (int): The voter.
			vote_type (VoteTypes): ``approve`` or ``veto``.
			reason (str): Optional explanation shown in the trade log.

		Raises:
			AuthorizationError: If the user is not an uninvolved member, or already voted.
			StateConflictError: If the trade is not under review or the league does not vote on trades.
			TradeNotFoundError: If the trade does not exist.

		Returns:
			VoteResult: The stored vote and the veto count it left the trade with.
		"""
		vote_type = VoteTypes(vote_type)

		with transaction.atomic():
			trade = Trade.objects.filter(pk=trade_id).first()

			if trade is None:
				raise TradeNotFoundError(trade_id)

			self._check_voter(trade, user_id)

			if trade.status != TradeStatuses.ACCEPTED:  # raises the matching conflict
				transition(trade.status, TradeActions.VETO)

			policy = self.context.policies.get_policy(trade.league_id)

			if not policy.voting_enabled:
				raise StateConflictError(ErrorCode.VOTING_DISABLED, "This league does not vote on trades.")

			now = self.context.now()

			try:
				with transaction.atomic():
					vote = TradeVote.objects.create(
						trade=trade,
						user_id=user_id,
						team_id=self.context.memberships.team_of(user_id, trade.league_id),
						vote_type=vote_type,
						reason=reason,
						cast_at=now,
					)

			except IntegrityError:
				raise AuthorizationError(ErrorCode.ALREADY_VOTED, "You have already voted on this trade.") from None

			vetoed = False

			if vote_type is VoteTypes.VETO:
				counted = Trade.objects.filter(pk=trade_id, status=TradeStatuses.ACCEPTED).update(
					veto_votes=F("veto_votes") + 1,
				)

				if not counted:  # decided meanwhile, the vote is rolled back
					trade.refresh_from_db(fields=["status"])
					transition(trade.status, TradeActions.VETO)

				vetoed = bool(
					Trade.objects.filter(
						pk=trade_id,
						status=TradeStatuses.ACCEPTED,
						veto_votes__gte=policy.trade_votes_needed,
					).update(
						status=transition(TradeStatuses.ACCEPTED, TradeActions.VETO),
						responded_at=now,
					),
				)

			trade.refresh_from_db(fields=["status", "veto_votes", "responded_at"])

			TradeEvent.record(
				trade,
				TradeEventTypes.VOTE_CAST,
				at=now,
				actor_id=user_id,
				message=f"A league member voted to {vote_type} the trade.",
				payload={
					"vote_type": vote_type.value,
					"veto_votes": trade.veto_votes,
					"votes_needed": policy.trade_votes_needed,
				},
			)

			if vetoed:
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

		self.context.outbox.schedule()

		if vetoed:
			logger.info(f"Trade {trade_id} vetoed by the league with {trade.veto_votes} votes")

		else:
			logger.info(f"Vote {vote_type} cast on trade {trade_id} by user {user_id}")

		return VoteResult(
			vote=vote,
			veto_votes=trade.veto_votes,
			votes_needed=policy.trade_votes_needed,
			vetoed=vetoed,
		)
