from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from django.db import models
from django.db.models import Q

from core.types.assets import AssetBundle
from trade.enums.trade_statuses import TradeStatuses
from trade.transitions import allowed_actions

if TYPE_CHECKING:
	from core.models import User
	from trade.models.trade_event import TradeEvent


class TradeQuerySet(models.QuerySet):
	"""Lookups used by the request layer and the sweeper."""

	def for_user(self, user: User) -> TradeQuerySet:
		"""Trades the user initiated or was offered."""  # noqa: DOC201
		return self.filter(Q(initiator_user=user) | Q(partner__owner=user) | Q(initiator__owner=user)).distinct()

	def for_league(self, league_id: int, *, include_history: bool = False) -> TradeQuerySet:
		"""Trades of a league, only the open ones unless ``include_history`` is set."""  # noqa: DOC201
		queryset = self.filter(league_id=league_id)

		if not include_history:
			queryset = queryset.open()

		return queryset

	def open(self) -> TradeQuerySet:
		"""Trades that can still change status."""  # noqa: DOC201
		return self.filter(status__in=TradeStatuses.open_statuses())


class Trade(models.Model):
	"""
	An exchange of assets between two teams of a league.

	The initiator team gives ``initiator_gives`` to the partner team and receives
	``initiator_receives`` from it. A trade is only ever mutated through the services in
	``trade.services`` and is never deleted: terminal trades are kept for audit.

	A counteroffer points at the trade it answers through ``parent``. The answered trade
	finds its counteroffer through the ``counter_trade`` lookup.
	"""

	league = models.ForeignKey("core.League", on_delete=models.CASCADE, related_name="trades")
	initiator = models.ForeignKey("core.Team", on_delete=models.CASCADE, related_name="initiated_trades")
	partner = models.ForeignKey("core.Team", on_delete=models.CASCADE, related_name="offered_trades")
	initiator_user = models.ForeignKey("core.User", on_delete=models.CASCADE, related_name="initiated_trades")
	parent = models.ForeignKey(
		"self",
		null=True,
		blank=True,
		on_delete=models.PROTECT,
		related_name="counter_offers",
		help_text="The trade this one counters",
	)

	initiator_gives = models.JSONField(default=dict, help_text="Assets moving from the initiator to the partner")
	initiator_receives = models.JSONField(default=dict, help_text="Assets moving from the partner to the initiator")

	status = models.CharField(max_length=20, choices=TradeStatuses.choices(), default=TradeStatuses.PROPOSED)
	veto_votes = models.PositiveIntegerField(default=0)
	commissioner_override = models.BooleanField(default=False)
	override_reason = models.TextField(blank=True)
	note = models.TextField(blank=True)
	reject_reason = models.TextField(blank=True)

	proposed_at = models.DateTimeField()
	expires_at = models.DateTimeField()
	review_ends_at = models.DateTimeField(null=True, blank=True)
	responded_at = models.DateTimeField(null=True, blank=True)
	executed_at = models.DateTimeField(null=True, blank=True)
	reminded_at = models.DateTimeField(null=True, blank=True)
	execution_failed_at = models.DateTimeField(
		null=True,
		blank=True,
		help_text="Last time execution was aborted because assets were no longer owned",
	)

	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	objects = TradeQuerySet.as_manager()

	class Meta:  # noqa: D106
		ordering = ("-proposed_at",)
		indexes = [
			models.Index(fields=["status", "expires_at"], name="trade_status_expiry_idx"),
			models.Index(fields=["status", "review_ends_at"], name="trade_status_review_idx"),
			models.Index(fields=["league", "status"], name="trade_league_status_idx"),
		]

	def __str__(self) -> str:
		return f"Trade #{self.pk} {self.initiator} -> {self.partner} ({self.status})"

	@property
	def gives(self) -> AssetBundle:
		"""Assets the initiator sends."""
		return AssetBundle.from_payload(self.initiator_gives)

	@property
	def receives(self) -> AssetBundle:
		"""Assets the initiator gets back."""
		return AssetBundle.from_payload(self.initiator_receives)

	@property
	def is_terminal(self) -> bool:
		"""Whether the trade can no longer change status."""
		return TradeStatuses(self.status).is_terminal

	@property
	def is_counteroffer(self) -> bool:
		"""Check if the trade is a counteroffer (has a parent trade)."""
		return self.parent_id is not None

	@property
	def counter_trade(self) -> Optional[Trade]:
		"""The counteroffer made to this trade, if any."""
		return self.counter_offers.order_by("pk").first()

	@property
	def counter_trade_id(self) -> Optional[int]:
		"""Id of the counteroffer made to this trade, if any."""
		return self.counter_offers.order_by("pk").values_list("pk", flat=True).first()

	@property
	def is_under_review(self) -> bool:
		"""Whether the trade is accepted and waiting for its league review window to end."""
		return self.status == TradeStatuses.ACCEPTED and self.review_ends_at is not None

	@property
	def veto_progress(self) -> float:
		"""Percentage of the league veto threshold reached so far."""
		votes_needed = self.league.trade_votes_needed

		if not votes_needed:
			return 0.0

		return min(100.0, self.veto_votes / votes_needed * 100)

	@property
	def allowed_actions(self) -> list[str]:
		"""Actions the lifecycle allows from the current status."""
		return [action.value for action in allowed_actions(self.status)]

	@property
	def timeline(self) -> models.QuerySet[TradeEvent]:
		"""The trade's audit log, oldest first."""
		return self.events.order_by("created_at", "pk")

	def party_user_ids(self) -> set[int]:
		"""
		Get the users acting for either side of the trade.

		Returns:
			set[int]: The initiating user and the owners of both teams.
		"""
		return {self.initiator_user_id, self.initiator.owner_id, self.partner.owner_id}

	def is_party(self, user: User) -> bool:
		"""Check if the user acts for one of the two teams of the trade."""  # noqa: DOC201
		return user.pk in self.party_user_ids()

	def can_vote(self, user: User) -> bool:
		"""
		Check if a user could still cast a vote on this trade.

		Args:
			user (User): The prospective voter.

		Returns:
			bool: True if voting is open and the user is an uninvolved league member who has not voted.
		"""
		return (
			self.status == TradeStatuses.ACCEPTED
			and self.league.has_trade_voting
			and not self.is_party(user)
			and self.league.members.filter(user=user).exists()
			and not self.votes.filter(user=user).exists()
		)
