from rest_framework import exceptions, status
from rest_framework.permissions import IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from trade.serializers.trade import (
	CounterOfferSerializer,
	OverrideSerializer,
	TradeResponseSerializer,
	TradeSerializer,
	TradeVoteSerializer,
	VoteSerializer,
)
from tradeflow.common.singletons.trade_engine import get_trade_engine


class TradeActionView(APIView):
	"""View to handle trade actions like accept, reject, counter, vote and override."""

	permission_classes = (IsAuthenticated,)

	actions = ("accept", "reject", "counter", "cancel", "vote", "override", "execute")

	def post(self, request: Request, pk: int, action: str, *args, **kwargs) -> Response:
		if action not in self.actions:
			raise exceptions.NotFound(f"Unknown trade action: {action}.")

		engine = get_trade_engine()
		user_id = request.user.pk
		response_status = status.HTTP_200_OK

		if action == "accept":
			trade = engine.accept(pk, user_id, note=self._validated(TradeResponseSerializer, request)["note"])

		elif action == "reject":
			trade = engine.reject(pk, user_id, reason=self._validated(TradeResponseSerializer, request)["reason"])

		elif action == "counter":
			data = self._validated(CounterOfferSerializer, request)
			trade = engine.counter(pk, user_id, data["gives"], data["receives"], data["note"], data["expiration_days"])
			response_status = status.HTTP_201_CREATED

		elif action == "cancel":
			trade = engine.cancel(pk, user_id)

		elif action == "vote":
			data = self._validated(VoteSerializer, request)
			result = engine.vote(pk, user_id, data["vote_type"], reason=data["reason"])

			return Response(
				{
					"vote": TradeVoteSerializer(result.vote).data,
					"veto_votes": result.veto_votes,
					"votes_needed": result.votes_needed,
					"vetoed": result.vetoed,
				},
				status=status.HTTP_201_CREATED,
			)

		elif action == "override":
			data = self._validated(OverrideSerializer, request)
			trade = engine.override(pk, user_id, data["action"], data["reason"])

		else:
			trade = engine.execute(pk, user_id)

		return Response(TradeSerializer(trade, context={"request": request}).data, status=response_status)

	@staticmethod
	def _validated(serializer_class: type, request: Request) -> dict:
		serializer = serializer_class(data=request.data)
		serializer.is_valid(raise_exception=True)
		return serializer.validated_data
