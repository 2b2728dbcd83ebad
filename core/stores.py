"""Read/write adapters over the league data the trade engine depends on.

The trade engine only talks to rosters, league policy and memberships through
the protocols below. The ``Django*`` classes are the ORM-backed implementations
used by the application; tests and other hosts can swap in their own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from functools import reduce
from operator import or_
from typing import Optional, Protocol

from django.db.models import Q

from core.models import League, LeagueMember, Pick, RosterAssignment, Team
from core.types.assets import AssetBundle, PickDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LeaguePolicy:
	"""Trade rules of a league."""

	trade_deadline: Optional[date]
	trade_votes_needed: int
	trade_review_days: int
	season: int
	current_week: int = 1

	@property
	def voting_enabled(self) -> bool:
		"""Whether accepted trades are held for a league review."""
		return self.trade_votes_needed > 0


class RosterStore(Protocol):
	"""Source of truth for the assets each team holds."""

	def list_assets(self, team_id: int, season: int) -> AssetBundle: ...

	def transfer_assets(
		self,
		from_team_id: int,
		to_team_id: int,
		assets: AssetBundle,
		season: int,
		week: int = 1,
	) -> bool: ...

	def lock(self, team_ids: Iterable[int], season: int) -> None: ...


class LeaguePolicyStore(Protocol):
	"""Per-league trade policy."""

	def get_policy(self, league_id: int) -> LeaguePolicy: ...


class MembershipStore(Protocol):
	"""League members, their roles and the teams they own."""

	def is_member(self, user_id: int, league_id: int) -> bool: ...

	def role(self, user_id: int, league_id: int) -> Optional[str]: ...

	def team_owner(self, team_id: int) -> Optional[int]: ...

	def team_league(self, team_id: int) -> Optional[int]: ...

	def team_of(self, user_id: int, league_id: int) -> Optional[int]: ...

	def members(self, league_id: int) -> list[int]: ...


class DjangoRosterStore:
	"""Roster store backed by ``RosterAssignment`` and ``Pick`` rows."""

	def __init__(self, default_slot: str = "BENCH") -> None:
		self.default_slot = default_slot

	@staticmethod
	def _picks_filter(picks: Iterable[PickDescriptor]) -> Q:
		return reduce(
			or_,
			(
				Q(original_team_id=pick.original_owner, draft_year=pick.year, round_number=pick.round)
				for pick in picks
			),
			Q(pk__in=[]),
		)

	def list_assets(self, team_id: int, season: int) -> AssetBundle:
		"""
		List every asset a team currently holds.

		Args:
			team_id (int): The team to inspect.
			season (int): The season rosters are tracked for.

		Returns:
			AssetBundle: The players on the team's roster and the picks it currently owns.
		"""
		players = RosterAssignment.objects.filter(team_id=team_id, season=season).values_list("player_id", flat=True)
		picks = Pick.objects.filter(current_team_id=team_id).values_list(
			"round_number",
			"draft_year",
			"original_team_id",
		)

		return AssetBundle(
			players=frozenset(players),
			picks=frozenset(PickDescriptor(*pick) for pick in picks),
		)

	def lock(self, team_ids: Iterable[int], season: int) -> None:
		"""
		Lock the roster rows of several teams for the rest of the transaction.

		Teams are locked in id order so two exchanges between the same teams cannot deadlock.

		Args:
			team_ids (Iterable[int]): Teams whose rosters will be mutated.
			season (int): The season rosters are tracked for.
		"""
		for team_id in sorted(set(team_ids)):
			list(Team.objects.select_for_update().filter(pk=team_id).values_list("pk", flat=True))
			list(
				RosterAssignment.objects.select_for_update()
				.filter(team_id=team_id, season=season)
				.values_list("pk", flat=True),
			)
			list(Pick.objects.select_for_update().filter(current_team_id=team_id).values_list("pk", flat=True))

	def transfer_assets(
		self,
		from_team_id: int,
		to_team_id: int,
		assets: AssetBundle,
		season: int,
		week: int = 1,
	) -> bool:
		"""
		Move assets from one team to another.

		Must run inside a transaction: the method stops at the first asset that is no longer
		held by ``from_team_id`` and the caller is expected to roll back what was already moved.

		Args:
			from_team_id (int): The team giving the assets away.
			to_team_id (int): The team receiving the assets.
			assets (AssetBundle): The assets to move.
			season (int): The season rosters are tracked for.
			week (int): The week the receiving team gets the players for.

		Returns:
			bool: True if every asset was moved, False otherwise.
		"""
		if assets.players:
			moved = RosterAssignment.objects.filter(
				team_id=from_team_id,
				season=season,
				player_id__in=assets.players,
			).update(team_id=to_team_id, week=week, slot=self.default_slot, is_starter=False)

			if moved != len(assets.players):
				logger.warning(
					f"Expected to move {len(assets.players)} players from team {from_team_id}, moved {moved}",
				)
				return False

		if assets.picks:
			moved = (
				Pick.objects.filter(current_team_id=from_team_id)
				.filter(self._picks_filter(assets.picks))
				.update(current_team_id=to_team_id)
			)

			if moved != len(assets.picks):
				logger.warning(f"Expected to move {len(assets.picks)} picks from team {from_team_id}, moved {moved}")
				return False

		return True


class DjangoLeaguePolicyStore:
	"""Policy store reading trade settings from ``League`` rows."""

	@staticmethod
	def get_policy(league_id: int) -> LeaguePolicy:  # noqa: D102
		league = League.objects.get(pk=league_id)

		return LeaguePolicy(
			trade_deadline=league.trade_deadline,
			trade_votes_needed=league.trade_votes_needed,
			trade_review_days=league.trade_review_days,
			season=league.season,
			current_week=league.current_week,
		)


class DjangoMembershipStore:
	"""Membership store backed by ``LeagueMember`` and ``Team`` rows."""

	@staticmethod
	def is_member(user_id: int, league_id: int) -> bool:  # noqa: D102
		return LeagueMember.objects.filter(user_id=user_id, league_id=league_id).exists()

	@staticmethod
	def role(user_id: int, league_id: int) -> Optional[str]:  # noqa: D102
		return LeagueMember.objects.filter(user_id=user_id, league_id=league_id).values_list("role", flat=True).first()

	@staticmethod
	def team_owner(team_id: int) -> Optional[int]:  # noqa: D102
		return Team.objects.filter(pk=team_id).values_list("owner_id", flat=True).first()

	@staticmethod
	def team_league(team_id: int) -> Optional[int]:  # noqa: D102
		return Team.objects.filter(pk=team_id).values_list("league_id", flat=True).first()

	@staticmethod
	def team_of(user_id: int, league_id: int) -> Optional[int]:  # noqa: D102
		return Team.objects.filter(owner_id=user_id, league_id=league_id).values_list("pk", flat=True).first()

	@staticmethod
	def members(league_id: int) -> list[int]:  # noqa: D102
		return list(LeagueMember.objects.filter(league_id=league_id).values_list("user_id", flat=True))
