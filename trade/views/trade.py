from rest_framework import exceptions, mixins, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.viewsets import GenericViewSet

from core.models import LeagueMember
from trade.models import Trade
from trade.serializers.trade import TradeProposalSerializer, TradeSerializer
from tradeflow.common.singletons.trade_engine import get_trade_engine


class TradeViewSet(
	mixins.RetrieveModelMixin,
	mixins.ListModelMixin,
	GenericViewSet,
):
	"""
	Trades visible to the authenticated user.

	Without parameters the list holds the trades the user is a party to. With
	``?league=<id>`` it holds the open trades of a league the user belongs to, and
	``&history=true`` adds the settled ones.
	"""

	serializer_class = TradeSerializer
	permission_classes = (IsAuthenticated,)

	def get_queryset(self):
		"""Restrict trades to those the authenticated user is involved in or can review."""
		user = self.request.user
		queryset = Trade.objects.select_related("league", "initiator__owner", "partner__owner")

		if self.action == "list":
			league_id = self.request.query_params.get("league")

			if league_id is None:
				return queryset.for_user(user)

			try:
				league_id = int(league_id)

			except ValueError:
				raise exceptions.ValidationError({"league": "A valid league id is required."}) from None

			if not user.is_staff and not LeagueMember.objects.filter(user=user, league_id=league_id).exists():
				return queryset.none()

			return queryset.for_league(
				league_id,
				include_history=self.request.query_params.get("history", "").lower() == "true",
			)

		if user.is_staff or user.is_superuser:
			return queryset

		return queryset.filter(league__members__user=user).distinct()

	def create(self, request: Request, *args, **kwargs) -> Response:
		"""Propose a trade on behalf of one of the user's teams."""
		serializer = TradeProposalSerializer(data=request.data)
		serializer.is_valid(raise_exception=True)
		data = serializer.validated_data

		trade = get_trade_engine().propose(
			initiator_team_id=data["initiator_team"],
			initiator_user_id=request.user.pk,
			partner_team_id=data["partner_team"],
			gives=data["gives"],
			receives=data["receives"],
			expiration_days=data["expiration_days"],
			note=data["note"],
		)

		return Response(
			TradeSerializer(trade, context=self.get_serializer_context()).data,
			status=status.HTTP_201_CREATED,
		)
