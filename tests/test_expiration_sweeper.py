"""
tests/test_expiration_sweeper.py - Periodic expiry, review settlement and reminders.
"""

from datetime import timedelta

import pytest

from core.models import RosterAssignment, Team
from tests.conftest import bundle, roster_of
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import ExecutionIntegrityError
from trade.models import Trade
from trade.services.expiration_sweeper import SweepReport


@pytest.mark.django_db
class TestExpiry:
	def test_expires_stale_proposals(self, engine, propose, alice, bob, clock):
		trade = propose(expiration_days=1)
		clock.advance(days=1, minutes=1)

		report = engine.sweep()

		assert report.expired == 1
		trade.refresh_from_db()
		assert trade.status == TradeStatuses.EXPIRED

		expired = trade.events.get(event_type=TradeEventTypes.EXPIRED)
		assert sorted(expired.recipients) == sorted([alice.pk, bob.pk])

	def test_second_sweep_is_a_noop(self, engine, propose, clock):
		propose(expiration_days=1)
		clock.advance(days=2)

		assert engine.sweep().expired == 1
		assert engine.sweep() == SweepReport()

	def test_fresh_proposals_are_left_alone(self, engine, propose, clock):
		trade = propose(expiration_days=3)
		clock.advance(days=1)

		assert engine.sweep().expired == 0
		trade.refresh_from_db()
		assert trade.status == TradeStatuses.PROPOSED

	def test_batches_cover_every_trade(self, engine, league, make_member, make_player, clock):
		for index in range(5):
			owner = make_member(f"owner{index}")
			partner = make_member(f"partner{index}")
			owner_team = Team.objects.create(name=f"Owner {index}", league=league, owner=owner)
			partner_team = Team.objects.create(name=f"Partner {index}", league=league, owner=partner)
			engine.propose(
				owner_team.pk,
				owner.pk,
				partner_team.pk,
				bundle(make_player(owner_team, f"O{index}")),
				bundle(make_player(partner_team, f"P{index}")),
				expiration_days=1,
			)

		clock.advance(days=2)

		assert engine.sweep(batch_size=2).expired == 5
		assert set(Trade.objects.values_list("status", flat=True)) == {TradeStatuses.EXPIRED}

	def test_should_continue_stops_before_next_batch(self, engine, propose, players, clock):
		propose(expiration_days=1)
		clock.advance(days=2)

		report = engine.sweep(should_continue=lambda: False)

		assert report == SweepReport()
		assert Trade.objects.get().status == TradeStatuses.PROPOSED


@pytest.mark.django_db
class TestReviewSettlement:
	@pytest.fixture
	def accepted_trade(self, engine, voting_league, propose, bob):
		trade = propose()
		return engine.accept(trade.pk, bob.pk)

	def test_executes_after_review(self, engine, accepted_trade, voting_league, t1, players, clock):
		clock.advance(days=voting_league.trade_review_days, seconds=1)

		report = engine.sweep()

		assert report.executed == 1
		assert Trade.objects.get(pk=accepted_trade.pk).status == TradeStatuses.EXECUTED
		assert roster_of(t1) == {players["P2"].pk, players["P3"].pk}
		assert engine.sweep().executed == 0

	def test_waits_for_review_to_end(self, engine, accepted_trade, voting_league, clock):
		clock.advance(days=voting_league.trade_review_days)

		assert engine.sweep().executed == 0
		assert Trade.objects.get(pk=accepted_trade.pk).status == TradeStatuses.ACCEPTED

	def test_vetoes_when_threshold_was_lowered(self, engine, accepted_trade, voting_league, carol, clock):
		engine.vote(accepted_trade.pk, carol.pk, "veto")
		voting_league.trade_votes_needed = 1
		voting_league.save()
		clock.advance(days=voting_league.trade_review_days, seconds=1)

		report = engine.sweep()

		assert report.vetoed == 1
		trade = Trade.objects.get(pk=accepted_trade.pk)
		assert trade.status == TradeStatuses.VETOED
		assert trade.events.filter(event_type=TradeEventTypes.VETOED).count() == 1

	def test_execution_failure_is_counted_not_raised(self, engine, accepted_trade, voting_league, t3, players, clock):
		RosterAssignment.objects.filter(player=players["P1"]).update(team=t3)
		clock.advance(days=voting_league.trade_review_days, seconds=1)

		report = engine.sweep()

		assert report.failed == 1
		assert report.executed == 0

		trade = Trade.objects.get(pk=accepted_trade.pk)
		assert trade.status == TradeStatuses.ACCEPTED
		assert trade.execution_failed_at is not None

		# Failed executions wait for a manual retry.
		clock.advance(hours=1)
		assert engine.sweep().failed == 0

	def test_failure_does_not_abort_other_trades(self, engine, voting_league, propose, bob, t3, players, clock):
		failing = engine.accept(propose().pk, bob.pk)
		healthy = engine.accept(propose(gives=bundle(players["P2"]), receives=bundle(players["P4"])).pk, bob.pk)
		RosterAssignment.objects.filter(player=players["P1"]).update(team=t3)
		clock.advance(days=voting_league.trade_review_days, seconds=1)

		report = engine.sweep()

		assert (report.failed, report.executed) == (1, 1)
		assert Trade.objects.get(pk=failing.pk).status == TradeStatuses.ACCEPTED
		assert Trade.objects.get(pk=healthy.pk).status == TradeStatuses.EXECUTED

	def test_manual_retry_after_failure(self, engine, accepted_trade, voting_league, alice, t1, t3, players, clock):
		assignment = RosterAssignment.objects.get(player=players["P1"])
		assignment.team = t3
		assignment.save()
		clock.advance(days=voting_league.trade_review_days, seconds=1)
		engine.sweep()

		with pytest.raises(ExecutionIntegrityError):
			engine.execute(accepted_trade.pk, alice.pk)

		assignment.team = t1
		assignment.save()

		assert engine.execute(accepted_trade.pk, alice.pk).status == TradeStatuses.EXECUTED


@pytest.mark.django_db
class TestReminders:
	def test_partner_reminded_once(self, engine, propose, bob, clock):
		trade = propose(expiration_days=2)
		clock.advance(days=1, hours=1)

		assert engine.sweep().reminded == 1

		trade.refresh_from_db()
		assert trade.reminded_at == clock.now()

		reminder = trade.events.get(event_type=TradeEventTypes.EXPIRING_SOON)
		assert reminder.recipients == [bob.pk]
		assert "23 hours" in reminder.message

		clock.advance(hours=1)
		assert engine.sweep().reminded == 0

	def test_not_reminded_early(self, engine, propose, clock):
		propose(expiration_days=3)
		clock.advance(days=1)

		assert engine.sweep().reminded == 0

	def test_expired_trades_are_not_reminded(self, engine, propose, clock):
		propose(expiration_days=1)
		clock.advance(days=1, hours=1)

		report = engine.sweep()

		assert (report.expired, report.reminded) == (1, 0)

	def test_one_day_proposal_is_reminded_right_away(self, engine, propose, clock):
		trade = propose(expiration_days=1)

		report = engine.sweep()

		assert report.reminded == 1
		assert trade.expires_at - clock.now() == timedelta(days=1)
