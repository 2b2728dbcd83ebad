import logging
from datetime import timedelta
from typing import Optional

from django.db import transaction
from django.utils import timezone

from core.stores import LeaguePolicy
from core.types.assets import AssetBundle
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import AuthorizationError, ErrorCode, ValidationError
from trade.models import Trade, TradeEvent
from trade.services.context import TradeContext
from tradeflow.settings import TRADE_SETTINGS

logger = logging.getLogger(__name__)


class TradeProposalValidator:
	"""Checks a proposal against rosters and league policy and creates the trade."""

	def __init__(self, context: TradeContext) -> None:
		self.context = context

	def validate(  # noqa: PLR0913
		self,
		initiator_team_id: int,
		initiator_user_id: int,
		partner_team_id: int,
		gives: AssetBundle,
		receives: AssetBundle,
		expiration_days: int,
	) -> tuple[int, LeaguePolicy]:
		"""
		Run every proposal check, in order, without writing anything.

		Args:
			initiator_team_id (int): Team making the offer.
			initiator_user_id (int): User making the offer on behalf of the team.
			partner_team_id (int): Team receiving the offer.
			gives (AssetBundle): Assets the initiator sends.
			receives (AssetBundle): Assets the initiator asks for.
			expiration_days (int): Days the partner has to respond.

		Raises:
			ValidationError: If the proposal breaks a league or roster rule.
			AuthorizationError: If the user does not own the initiating team.

		Returns:
			tuple[int, LeaguePolicy]: The league id and the policy the proposal was checked against.
		"""
		memberships = self.context.memberships

		if not TRADE_SETTINGS.MIN_EXPIRATION_DAYS <= expiration_days <= TRADE_SETTINGS.MAX_EXPIRATION_DAYS:
			raise ValidationError(
				ErrorCode.INVALID_EXPIRATION,
				f"Trades must expire within {TRADE_SETTINGS.MIN_EXPIRATION_DAYS} to "
				f"{TRADE_SETTINGS.MAX_EXPIRATION_DAYS} days.",
				{"expiration_days": expiration_days},
			)

		if memberships.team_owner(initiator_team_id) != initiator_user_id:
			raise AuthorizationError(ErrorCode.NOT_TEAM_OWNER, "You can only propose trades for your own team.")

		league_id = memberships.team_league(initiator_team_id)

		if partner_team_id == initiator_team_id or memberships.team_league(partner_team_id) != league_id:
			raise ValidationError(ErrorCode.PARTNER_NOT_FOUND, "Partner team not found in this league.")

		policy = self.context.policies.get_policy(league_id)

		if policy.trade_deadline and timezone.localdate(self.context.now()) > policy.trade_deadline:
			raise ValidationError(
				ErrorCode.DEADLINE_PASSED,
				"Trade deadline has passed.",
				{"trade_deadline": policy.trade_deadline.isoformat()},
			)

		if not gives and not receives:
			raise ValidationError(ErrorCode.EMPTY_TRADE, "A trade must move at least one asset.")

		initiator_assets = self.context.rosters.list_assets(initiator_team_id, policy.season)

		if missing := gives - initiator_assets:
			raise ValidationError(
				ErrorCode.INVALID_ASSET,
				"You cannot trade assets that are not on your roster.",
				{"assets": missing.describe()},
			)

		partner_assets = self.context.rosters.list_assets(partner_team_id, policy.season)

		if missing := receives - partner_assets:
			raise ValidationError(
				ErrorCode.INVALID_ASSET,
				"Partner does not own some of the assets you want to receive.",
				{"assets": missing.describe()},
			)

		if duplicates := (receives & initiator_assets) - gives:
			raise ValidationError(
				ErrorCode.DUPLICATE_ACQUISITION,
				"You already have some of the assets you are trying to acquire.",
				{"assets": duplicates.describe()},
			)

		return league_id, policy

	def propose(  # noqa: PLR0913
		self,
		initiator_team_id: int,
		initiator_user_id: int,
		partner_team_id: int,
		gives: AssetBundle,
		receives: AssetBundle,
		expiration_days: Optional[int] = None,
		note: str = "",
		parent: Optional[Trade] = None,
	) -> Trade:
		"""
		Validate a proposal and persist it as a ``proposed`` trade.

		Args:
			initiator_team_id (int): Team making the offer.
			initiator_user_id (int): User making the offer on behalf of the team.
			partner_team_id (int): Team receiving the offer.
			gives (AssetBundle): Assets the initiator sends.
			receives (AssetBundle): Assets the initiator asks for.
			expiration_days (Optional[int]): Days the partner has to respond, defaults to the league setting.
			note (str): Free text shown to the partner.
			parent (Optional[Trade]): The trade this proposal counters.

		Returns:
			Trade: The new trade. Nothing is stored if a check fails.
		"""
		if expiration_days is None:
			expiration_days = TRADE_SETTINGS.DEFAULT_EXPIRATION_DAYS

		with transaction.atomic():
			league_id, policy = self.validate(
				initiator_team_id,
				initiator_user_id,
				partner_team_id,
				gives,
				receives,
				expiration_days,
			)

			now = self.context.now()

			trade = Trade.objects.create(
				league_id=league_id,
				initiator_id=initiator_team_id,
				partner_id=partner_team_id,
				initiator_user_id=initiator_user_id,
				parent=parent,
				initiator_gives=gives.to_payload(),
				initiator_receives=receives.to_payload(),
				note=note,
				status=TradeStatuses.PROPOSED,
				proposed_at=now,
				expires_at=now + timedelta(days=expiration_days),
				review_ends_at=now + timedelta(days=policy.trade_review_days) if policy.voting_enabled else None,
			)

			kind = "counteroffer" if parent is not None else "trade"

			TradeEvent.record(
				trade,
				TradeEventTypes.PROPOSED,
				at=now,
				actor_id=initiator_user_id,
				recipients=[self.context.memberships.team_owner(partner_team_id)],
				message=f"{trade.initiator} has proposed a {kind} to your team {trade.partner}.",
				payload={"gives": trade.initiator_gives, "receives": trade.initiator_receives, "note": note},
			)

		logger.info(f"Trade {trade.pk} proposed by team {initiator_team_id} to team {partner_team_id}")
		self.context.outbox.schedule()

		return trade
