"""
tests/test_commissioner_override.py - Commissioner approvals and vetoes.
"""

import pytest

from core.models import RosterAssignment
from tests.conftest import START, roster_of
from trade.enums.event_types import TradeEventTypes
from trade.enums.trade_actions import OverrideActions
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import AuthorizationError, ErrorCode, ExecutionIntegrityError, StateConflictError, ValidationError


@pytest.mark.django_db
class TestOverride:
	def test_approve_proposed_trade(self, engine, propose, alice, bob, commish, t1, players):
		trade = propose()

		trade = engine.override(trade.pk, commish.pk, OverrideActions.APPROVE, "Both owners agreed offline")

		assert trade.status == TradeStatuses.EXECUTED
		assert trade.commissioner_override
		assert trade.override_reason == "Both owners agreed offline"
		assert trade.responded_at == START
		assert roster_of(t1) == {players["P2"].pk, players["P3"].pk}

		overridden = trade.events.get(event_type=TradeEventTypes.OVERRIDDEN)
		assert sorted(overridden.recipients) == sorted([alice.pk, bob.pk])
		assert overridden.payload["reason"] == "Both owners agreed offline"
		assert overridden.payload["previous_status"] == TradeStatuses.PROPOSED

	def test_approve_skips_league_vote(self, engine, voting_league, propose, bob, carol, commish):
		trade = propose()
		engine.accept(trade.pk, bob.pk)
		engine.vote(trade.pk, carol.pk, "veto")

		assert engine.override(trade.pk, commish.pk, OverrideActions.APPROVE, "Fair").status == TradeStatuses.EXECUTED

	def test_veto_accepted_trade(self, engine, voting_league, propose, bob, commish, t1, players):
		trade = propose()
		engine.accept(trade.pk, bob.pk)

		trade = engine.override(trade.pk, commish.pk, OverrideActions.VETO, "Collusion")

		assert trade.status == TradeStatuses.VETOED
		assert trade.commissioner_override
		assert roster_of(t1) == {players["P1"].pk, players["P2"].pk}

	@pytest.mark.parametrize("reason", ["", "   ", None])
	def test_reason_is_mandatory(self, engine, propose, commish, reason):
		trade = propose()

		with pytest.raises(ValidationError) as exc_info:
			engine.override(trade.pk, commish.pk, OverrideActions.VETO, reason)

		assert exc_info.value.code == ErrorCode.MISSING_REASON

	@pytest.mark.parametrize("member", ["alice", "bob", "carol"])
	def test_only_commissioners(self, engine, propose, member, request):
		trade = propose()
		user = request.getfixturevalue(member)

		with pytest.raises(AuthorizationError) as exc_info:
			engine.override(trade.pk, user.pk, OverrideActions.VETO, "Because")

		assert exc_info.value.code == ErrorCode.NOT_COMMISSIONER
		trade.refresh_from_db()
		assert trade.status == TradeStatuses.PROPOSED

	def test_settled_trade_cannot_be_overridden(self, engine, propose, alice, commish):
		trade = propose()
		engine.cancel(trade.pk, alice.pk)

		with pytest.raises(StateConflictError) as exc_info:
			engine.override(trade.pk, commish.pk, OverrideActions.APPROVE, "Too late")

		assert exc_info.value.code == ErrorCode.ALREADY_TERMINAL

	def test_failed_approval_leaves_trade_open(self, engine, propose, commish, t3, players):
		trade = propose()
		RosterAssignment.objects.filter(player=players["P1"]).update(team=t3)

		with pytest.raises(ExecutionIntegrityError):
			engine.override(trade.pk, commish.pk, OverrideActions.APPROVE, "Push it through")

		trade.refresh_from_db()
		assert trade.status == TradeStatuses.PROPOSED
		assert not trade.commissioner_override
		assert trade.events.filter(event_type=TradeEventTypes.EXECUTION_FAILED).exists()
		assert not trade.events.filter(event_type=TradeEventTypes.OVERRIDDEN).exists()
