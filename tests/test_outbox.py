"""
tests/test_outbox.py - Delivery of trade events after commit.
"""

import logging

import pytest

from core.models import Notification
from tests.conftest import FailingEmitter, bundle
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import AuthorizationError
from trade.models import TradeEvent
from trade.services.context import TradeContext
from trade.services.engine import TradeEngine
from trade.services.outbox import DatabaseNotificationEmitter, OutboxDispatcher


@pytest.mark.django_db
class TestDispatch:
	def test_delivered_after_commit(self, engine, propose, emitter, bob, django_capture_on_commit_callbacks):
		with django_capture_on_commit_callbacks(execute=True):
			trade = propose()

		assert emitter.types() == [TradeEventTypes.PROPOSED]
		assert emitter.for_user(bob) == [TradeEventTypes.PROPOSED]
		assert TradeEvent.objects.get(trade=trade).dispatched_at is not None

	def test_nothing_delivered_before_commit(self, propose, emitter, django_capture_on_commit_callbacks):
		with django_capture_on_commit_callbacks() as callbacks:
			propose()

		assert callbacks
		assert emitter.events == []
		assert TradeEvent.objects.pending().count() == 1

	def test_failed_operation_emits_nothing(self, engine, propose, emitter, alice, django_capture_on_commit_callbacks):
		trade = propose()
		emitter.events.clear()

		with django_capture_on_commit_callbacks(execute=True), pytest.raises(AuthorizationError):
			engine.accept(trade.pk, alice.pk)

		assert emitter.events == []

	def test_events_are_delivered_once(self, engine, propose, emitter):
		propose()

		assert engine.context.outbox.drain() == 1
		assert engine.context.outbox.drain() == 0
		assert len(emitter.events) == 1

	def test_limit(self, engine, propose):
		for _ in range(3):
			propose()

		assert engine.context.outbox.drain(limit=2) == 2
		assert engine.context.outbox.drain() == 1


@pytest.mark.django_db
class TestEmitterFailure:
	@pytest.fixture
	def failing(self):
		return FailingEmitter()

	@pytest.fixture
	def failing_engine(self, clock, failing):
		return TradeEngine(TradeContext(clock=clock, outbox=OutboxDispatcher(failing, clock=clock, max_attempts=2)))

	def test_failure_is_logged_and_released(self, failing_engine, failing, alice, bob, t1, t2, players, caplog):
		trade = failing_engine.propose(t1.pk, alice.pk, t2.pk, bundle(players["P1"]), bundle(players["P3"]))

		with caplog.at_level(logging.ERROR, logger="trade.services.outbox"):
			assert failing_engine.context.outbox.drain() == 0

		assert failing.calls == 1
		assert "Failed to emit trade event" in caplog.text

		event = TradeEvent.objects.get(trade=trade)
		assert event.dispatched_at is None
		assert event.attempts == 1

		trade.refresh_from_db()
		assert trade.status == TradeStatuses.PROPOSED

	def test_gives_up_after_max_attempts(self, failing_engine, failing, alice, t1, t2, players):
		failing_engine.propose(t1.pk, alice.pk, t2.pk, bundle(players["P1"]), bundle(players["P3"]))

		for _ in range(4):
			failing_engine.context.outbox.drain()

		assert failing.calls == 2

	def test_transitions_survive_emitter_failure(self, failing_engine, alice, bob, t1, t2, players):
		trade = failing_engine.propose(t1.pk, alice.pk, t2.pk, bundle(players["P1"]), bundle(players["P3"]))
		failing_engine.context.outbox.drain()

		assert failing_engine.accept(trade.pk, bob.pk).status == TradeStatuses.EXECUTED


@pytest.mark.django_db
class TestDatabaseNotificationEmitter:
	def test_creates_notification_per_recipient(self, clock, propose, alice, bob, engine):
		trade = propose()
		event = TradeEvent.record(
			trade,
			TradeEventTypes.EXECUTION_FAILED,
			at=clock.now(),
			recipients=[alice.pk, bob.pk, alice.pk, None],
			message="Could not execute",
		)

		DatabaseNotificationEmitter().emit(event)

		notifications = Notification.objects.filter(redirect_to=f"/trades/{trade.pk}/")
		assert sorted(notifications.values_list("user_id", flat=True)) == sorted([alice.pk, bob.pk])
		assert set(notifications.values_list("level", flat=True)) == {"error"}
		assert set(notifications.values_list("title", flat=True)) == {"Trade Could Not Be Executed"}

	def test_default_context_delivers_notifications(self, clock, alice, bob, t1, t2, players):
		engine = TradeEngine(TradeContext(clock=clock))
		engine.propose(t1.pk, alice.pk, t2.pk, bundle(players["P1"]), bundle(players["P3"]))

		assert engine.context.outbox.drain() == 1
		assert Notification.objects.get(user=bob).title == "New Trade Proposal"
