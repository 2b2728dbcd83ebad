"""
Shared fixtures for the trade engine tests.

The league used throughout has three teams:

- ``t1`` owned by ``alice`` with players P1, P2 and its own 2026 first round pick
- ``t2`` owned by ``bob`` with players P3, P4
- ``t3`` owned by ``carol`` with player P5

``dave`` is a member without a team and ``commish`` the league commissioner. Every
engine built by these fixtures runs on a ``FixedClock`` and hands events to a
``RecordingEmitter``.
"""

from datetime import UTC, datetime

import pytest

from core.models import League, LeagueMember, Pick, Player, RosterAssignment, Team, User
from core.types.assets import AssetBundle, PickDescriptor
from trade.models import TradeEvent
from trade.services.clock import FixedClock
from trade.services.context import TradeContext
from trade.services.engine import TradeEngine
from trade.services.outbox import OutboxDispatcher

SEASON = 2025
START = datetime(2025, 10, 1, 12, 0, tzinfo=UTC)


class RecordingEmitter:
	"""Keeps every emitted event instead of delivering it."""

	def __init__(self) -> None:
		self.events: list[TradeEvent] = []

	def emit(self, event: TradeEvent) -> None:
		self.events.append(event)

	def types(self) -> list[str]:
		return [event.event_type for event in self.events]

	def for_user(self, user: User) -> list[str]:
		return [event.event_type for event in self.events if user.pk in event.recipients]


class FailingEmitter:
	"""Emitter whose delivery always breaks."""

	def __init__(self) -> None:
		self.calls = 0

	def emit(self, event: TradeEvent) -> None:
		self.calls += 1
		raise ConnectionError("notification backend unavailable")


def bundle(*players: Player, picks: tuple[PickDescriptor, ...] = ()) -> AssetBundle:
	"""Build an asset bundle from player rows and pick descriptors."""
	return AssetBundle(players=frozenset(player.pk for player in players), picks=frozenset(picks))


def roster_of(team: Team) -> set[int]:
	"""Ids of the players a team holds this season."""
	return set(RosterAssignment.objects.filter(team=team, season=SEASON).values_list("player_id", flat=True))


@pytest.fixture
def clock() -> FixedClock:
	return FixedClock(START)


@pytest.fixture
def emitter() -> RecordingEmitter:
	return RecordingEmitter()


@pytest.fixture
def context(clock, emitter) -> TradeContext:
	return TradeContext(clock=clock, outbox=OutboxDispatcher(emitter, clock=clock))


@pytest.fixture
def engine(context) -> TradeEngine:
	return TradeEngine(context)


@pytest.fixture
def league(db) -> League:
	return League.objects.create(name="Dynasty", season=SEASON, trade_votes_needed=0, trade_review_days=2)


@pytest.fixture
def voting_league(league) -> League:
	league.trade_votes_needed = 2
	league.save()
	return league


@pytest.fixture
def make_member(league):
	def _make_member(username: str, role: str = LeagueMember.Roles.MEMBER) -> User:
		user = User.objects.create_user(username=username, password="not-a-real-password")
		LeagueMember.objects.create(user=user, league=league, role=role)
		return user

	return _make_member


@pytest.fixture
def alice(make_member) -> User:
	return make_member("alice")


@pytest.fixture
def bob(make_member) -> User:
	return make_member("bob")


@pytest.fixture
def carol(make_member) -> User:
	return make_member("carol")


@pytest.fixture
def dave(make_member) -> User:
	return make_member("dave")


@pytest.fixture
def commish(make_member) -> User:
	return make_member("commish", LeagueMember.Roles.COMMISSIONER)


@pytest.fixture
def make_player():
	def _make_player(team: Team, name: str) -> Player:
		player = Player.objects.create(first_name=name, last_name="Tester", position="F")
		RosterAssignment.objects.create(team=team, player=player, season=SEASON, slot="F", is_starter=True)
		return player

	return _make_player


@pytest.fixture
def t1(league, alice) -> Team:
	return Team.objects.create(name="Team One", league=league, owner=alice)


@pytest.fixture
def t2(league, bob) -> Team:
	return Team.objects.create(name="Team Two", league=league, owner=bob)


@pytest.fixture
def t3(league, carol) -> Team:
	return Team.objects.create(name="Team Three", league=league, owner=carol)


@pytest.fixture
def players(t1, t2, t3, make_player) -> dict[str, Player]:
	return {
		"P1": make_player(t1, "P1"),
		"P2": make_player(t1, "P2"),
		"P3": make_player(t2, "P3"),
		"P4": make_player(t2, "P4"),
		"P5": make_player(t3, "P5"),
	}


@pytest.fixture
def t1_pick(t1) -> PickDescriptor:
	Pick.objects.create(original_team=t1, current_team=t1, draft_year=2026, round_number=1)
	return PickDescriptor(round=1, year=2026, original_owner=t1.pk)


@pytest.fixture
def propose(engine, alice, t1, t2, players):
	"""Propose P1 for P3 from t1 to t2, overridable per test."""

	def _propose(gives=None, receives=None, **kwargs):
		return engine.propose(
			initiator_team_id=kwargs.pop("initiator_team_id", t1.pk),
			initiator_user_id=kwargs.pop("initiator_user_id", alice.pk),
			partner_team_id=kwargs.pop("partner_team_id", t2.pk),
			gives=gives if gives is not None else bundle(players["P1"]),
			receives=receives if receives is not None else bundle(players["P3"]),
			**kwargs,
		)

	return _propose
