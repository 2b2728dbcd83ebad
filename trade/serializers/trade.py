from typing import Optional

from rest_framework import serializers

from core.serializers import SimpleTeamSerializer
from core.types.assets import AssetBundle
from trade.enums.trade_actions import OverrideActions
from trade.enums.vote_types import VoteTypes
from trade.models import Trade, TradeEvent, TradeVote


class PickDescriptorSerializer(serializers.Serializer):
	round = serializers.IntegerField(min_value=1)
	year = serializers.IntegerField()
	original_owner = serializers.IntegerField(help_text="Id of the team the pick originally belonged to")


class AssetBundleSerializer(serializers.Serializer):
	"""Players and draft picks moving in one direction of a trade."""

	players = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
	picks = PickDescriptorSerializer(many=True, required=False, default=list)

	def to_internal_value(self, data) -> AssetBundle:  # noqa: ANN001
		return AssetBundle.from_payload(super().to_internal_value(data))


class TradeEventSerializer(serializers.ModelSerializer):
	actor_username = serializers.CharField(source="actor.username", read_only=True, default=None)

	class Meta:  # noqa: D106
		model = TradeEvent
		fields = ("id", "event_type", "actor", "actor_username", "message", "payload", "created_at")
		read_only_fields = fields


class TradeSerializer(serializers.ModelSerializer):
	initiator = SimpleTeamSerializer(read_only=True)
	partner = SimpleTeamSerializer(read_only=True)
	gives = serializers.JSONField(source="initiator_gives", read_only=True)
	receives = serializers.JSONField(source="initiator_receives", read_only=True)
	counter_trade_id = serializers.IntegerField(read_only=True)
	veto_progress = serializers.FloatField(read_only=True)
	allowed_actions = serializers.ListField(child=serializers.CharField(), read_only=True)
	is_counteroffer = serializers.BooleanField(read_only=True)
	can_vote = serializers.SerializerMethodField()
	timeline = TradeEventSerializer(many=True, read_only=True)

	class Meta:  # noqa: D106
		model = Trade
		fields = (
			"id",
			"league",
			"initiator",
			"partner",
			"initiator_user",
			"parent",
			"counter_trade_id",
			"is_counteroffer",
			"gives",
			"receives",
			"status",
			"allowed_actions",
			"veto_votes",
			"veto_progress",
			"can_vote",
			"commissioner_override",
			"override_reason",
			"note",
			"reject_reason",
			"proposed_at",
			"expires_at",
			"review_ends_at",
			"responded_at",
			"executed_at",
			"execution_failed_at",
			"timeline",
		)
		read_only_fields = fields

	def get_can_vote(self, obj: Trade) -> Optional[bool]:
		"""
		Check if the requesting user could vote on the trade.

		Args:
			obj (Trade): The trade instance.

		Returns:
			Optional[bool]: None when the serializer is used outside of a request.
		"""
		request = self.context.get("request")

		if request is None or not request.user.is_authenticated:
			return None

		return obj.can_vote(request.user)


class TradeVoteSerializer(serializers.ModelSerializer):
	class Meta:  # noqa: D106
		model = TradeVote
		fields = ("id", "trade", "user", "team", "vote_type", "reason", "cast_at")
		read_only_fields = fields


class TradeProposalSerializer(serializers.Serializer):
	"""Payload of a new trade proposal. ``gives`` and ``receives`` are seen from the initiating team."""

	initiator_team = serializers.IntegerField()
	partner_team = serializers.IntegerField()
	gives = AssetBundleSerializer(required=False, default=AssetBundle)
	receives = AssetBundleSerializer(required=False, default=AssetBundle)
	expiration_days = serializers.IntegerField(required=False, allow_null=True, default=None)
	note = serializers.CharField(required=False, allow_blank=True, default="")


class CounterOfferSerializer(serializers.Serializer):
	"""Payload of a counteroffer. ``gives`` and ``receives`` are seen from the countering team."""

	gives = AssetBundleSerializer(required=False, default=AssetBundle)
	receives = AssetBundleSerializer(required=False, default=AssetBundle)
	expiration_days = serializers.IntegerField(required=False, allow_null=True, default=None)
	note = serializers.CharField(required=False, allow_blank=True, default="")


class TradeResponseSerializer(serializers.Serializer):
	"""Optional free text attached to an accept (note) or a reject (reason)."""

	note = serializers.CharField(required=False, allow_blank=True, default="")
	reason = serializers.CharField(required=False, allow_blank=True, default="")


class VoteSerializer(serializers.Serializer):
	vote_type = serializers.ChoiceField(choices=[vote.value for vote in VoteTypes])
	reason = serializers.CharField(required=False, allow_blank=True, default="")


class OverrideSerializer(serializers.Serializer):
	action = serializers.ChoiceField(choices=[action.value for action in OverrideActions])
	reason = serializers.CharField(required=False, allow_blank=True, default="")
