"""
tests/test_counter_offer.py - Counteroffers and their link to the original proposal.
"""

from datetime import timedelta

import pytest

from core.models import RosterAssignment
from tests.conftest import START, bundle
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import AuthorizationError, ErrorCode, StateConflictError, ValidationError
from trade.models import Trade


@pytest.mark.django_db
class TestCounter:
	def test_links_child_to_original(self, engine, propose, alice, bob, t1, t2, players):
		original = propose()

		counter = engine.counter(
			original.pk,
			bob.pk,
			gives=bundle(players["P3"], players["P4"]),
			receives=bundle(players["P1"]),
			note="Both for P1",
		)

		original.refresh_from_db()
		assert original.status == TradeStatuses.COUNTERED
		assert original.counter_trade_id == counter.pk
		assert original.counter_trade == counter
		assert original.responded_at == START

		assert counter.parent_id == original.pk
		assert counter.is_counteroffer
		assert counter.status == TradeStatuses.PROPOSED
		assert counter.initiator == t2
		assert counter.partner == t1
		assert counter.initiator_user == bob
		assert counter.expires_at == START + timedelta(days=3)

		countered = original.events.get(event_type=TradeEventTypes.COUNTERED)
		assert countered.recipients == [alice.pk]
		assert countered.payload == {"counter_trade_id": counter.pk}
		assert counter.events.get(event_type=TradeEventTypes.PROPOSED).recipients == [alice.pk]

	def test_counteroffer_is_validated(self, engine, propose, bob, t3, players):
		original = propose()
		RosterAssignment.objects.filter(player=players["P4"]).update(team=t3)

		with pytest.raises(ValidationError) as exc_info:
			engine.counter(original.pk, bob.pk, bundle(players["P3"], players["P4"]), bundle(players["P1"]))

		assert exc_info.value.code == ErrorCode.INVALID_ASSET

		original.refresh_from_db()
		assert original.status == TradeStatuses.PROPOSED
		assert original.counter_trade_id is None
		assert Trade.objects.count() == 1

	def test_counteroffer_respects_deadline(self, engine, propose, bob, league, players, clock):
		original = propose()
		league.trade_deadline = START.date()
		league.save()
		clock.advance(days=1)

		with pytest.raises(ValidationError) as exc_info:
			engine.counter(original.pk, bob.pk, bundle(players["P3"]), bundle(players["P1"]))

		assert exc_info.value.code == ErrorCode.DEADLINE_PASSED

	def test_only_partner(self, engine, propose, alice, carol, players):
		original = propose()

		for user in (alice, carol):
			with pytest.raises(AuthorizationError) as exc_info:
				engine.counter(original.pk, user.pk, bundle(players["P3"]), bundle(players["P1"]))

			assert exc_info.value.code == ErrorCode.NOT_PARTNER

	def test_expired_original(self, engine, propose, bob, players, clock):
		original = propose(expiration_days=1)
		clock.advance(days=2)

		with pytest.raises(StateConflictError) as exc_info:
			engine.counter(original.pk, bob.pk, bundle(players["P3"]), bundle(players["P1"]))

		assert exc_info.value.code == ErrorCode.EXPIRED

		original.refresh_from_db()
		assert original.status == TradeStatuses.EXPIRED
		assert Trade.objects.count() == 1

	def test_counter_chain(self, engine, propose, alice, bob, players):
		first = propose()
		second = engine.counter(first.pk, bob.pk, bundle(players["P3"], players["P4"]), bundle(players["P1"]))
		third = engine.counter(second.pk, alice.pk, bundle(players["P1"], players["P2"]), bundle(players["P3"]))

		assert third.parent == second
		assert second.parent == first
		assert Trade.objects.get(pk=second.pk).status == TradeStatuses.COUNTERED

	def test_cannot_counter_twice(self, engine, propose, bob, players):
		original = propose()
		engine.counter(original.pk, bob.pk, bundle(players["P3"]), bundle(players["P1"]))

		with pytest.raises(StateConflictError) as exc_info:
			engine.counter(original.pk, bob.pk, bundle(players["P4"]), bundle(players["P1"]))

		assert exc_info.value.code == ErrorCode.ALREADY_TERMINAL
