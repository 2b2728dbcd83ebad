from collections.abc import Sequence
from typing import Any

from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from trade.models import Trade, TradeEvent


class HealthCheckViewSet(ViewSet):
	"""Liveness endpoint that also reports the trade engine backlog."""

	permission_classes = (AllowAny,)

	@staticmethod
	def list(*_: Sequence[Any], **__: dict[str, Any]) -> Response:
		"""
		Health check endpoint for the API.

		Returns:
			Response: Server status, the number of open trades and of undelivered trade events.
		"""
		return Response(
			data={
				"status": "up",
				"open_trades": Trade.objects.open().count(),
				"pending_events": TradeEvent.objects.pending().count(),
			},
			status=status.HTTP_200_OK,
		)
