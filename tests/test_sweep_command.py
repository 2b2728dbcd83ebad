"""
tests/test_sweep_command.py - The sweep_trades command and its background scheduler.
"""

from io import StringIO

import pytest
from django.core.management import call_command

from core.models import RosterAssignment
from trade.enums.trade_statuses import TradeStatuses
from trade.models import Trade
from trade.services.engine import TradeEngine
from trade.services.expiration_sweeper import ExpirationSweeper
from trade.services.sweep_scheduler import TradeSweepScheduler


@pytest.fixture
def use_test_engine(engine, monkeypatch):
	monkeypatch.setattr("trade.management.commands.sweep_trades.get_trade_engine", lambda: engine)


@pytest.mark.django_db
@pytest.mark.usefixtures("use_test_engine")
class TestSweepCommand:
	def test_reports_swept_trades(self, propose, clock):
		trade = propose(expiration_days=1)
		clock.advance(days=2)
		out = StringIO()

		call_command("sweep_trades", stdout=out)

		assert "Swept 1 trades" in out.getvalue()
		assert Trade.objects.get(pk=trade.pk).status == TradeStatuses.EXPIRED

	def test_quiet_when_nothing_is_due(self, propose):
		propose(expiration_days=5)
		out = StringIO()

		call_command("sweep_trades", stdout=out)

		assert out.getvalue() == ""

	def test_verbose(self, propose, clock):
		propose(expiration_days=1)
		clock.advance(days=2)
		out = StringIO()

		call_command("sweep_trades", "--verbose", "--batch-size", "1", stdout=out)

		output = out.getvalue()
		assert "Starting trade sweep" in output
		assert "1 expired" in output

	def test_warns_about_failures(self, engine, voting_league, propose, bob, t3, players, clock):
		engine.accept(propose().pk, bob.pk)
		RosterAssignment.objects.filter(player=players["P1"]).update(team=t3)
		clock.advance(days=voting_league.trade_review_days, seconds=1)
		out = StringIO()

		call_command("sweep_trades", stdout=out)

		assert "completed with failures" in out.getvalue()

	def test_should_continue_is_forwarded(self, propose, clock):
		propose(expiration_days=1)
		clock.advance(days=2)

		call_command("sweep_trades", should_continue=lambda: False, stdout=StringIO())

		assert Trade.objects.get().status == TradeStatuses.PROPOSED


class TestSweepScheduler:
	@pytest.fixture
	def scheduler(self, monkeypatch):
		scheduler = TradeSweepScheduler(interval=300)
		scheduler.delays = []
		scheduler.commands = []

		monkeypatch.setattr(scheduler, "_schedule", scheduler.delays.append)
		monkeypatch.setattr(
			"trade.services.sweep_scheduler.call_command",
			lambda name, **kwargs: scheduler.commands.append((name, kwargs["should_continue"]())),
		)
		return scheduler

	def test_start_schedules_first_run(self, scheduler):
		scheduler.start()
		scheduler.start()

		assert scheduler.running
		assert scheduler.delays == [1.0]

	def test_runs_command_and_reschedules(self, scheduler):
		scheduler.start()

		scheduler._sweep_and_schedule()

		assert scheduler.commands == [("sweep_trades", True)]
		assert scheduler.delays == [1.0, 300]

	def test_retries_sooner_after_error(self, scheduler, monkeypatch):
		def broken(*args, **kwargs):
			raise RuntimeError("database unavailable")

		monkeypatch.setattr("trade.services.sweep_scheduler.call_command", broken)
		scheduler.start()

		scheduler._sweep_and_schedule()

		assert scheduler.delays == [1.0, 60]

	def test_stopped_scheduler_does_nothing(self, scheduler):
		scheduler.start()
		scheduler.stop()

		scheduler._sweep_and_schedule()

		assert not scheduler.running
		assert scheduler.commands == []
		assert scheduler.delays == [1.0]


@pytest.mark.parametrize("service", [ExpirationSweeper, TradeEngine, TradeSweepScheduler])
def test_services_are_documented(service):
	assert service.__doc__
