import logging
from typing import Any, Optional

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from trade.exceptions import (
	AuthorizationError,
	ExecutionIntegrityError,
	StateConflictError,
	TradeError,
	TradeNotFoundError,
	ValidationError,
)

logger = logging.getLogger(__name__)

TRADE_ERROR_STATUSES: dict[type[TradeError], int] = {
	ValidationError: status.HTTP_400_BAD_REQUEST,
	AuthorizationError: status.HTTP_403_FORBIDDEN,
	TradeNotFoundError: status.HTTP_404_NOT_FOUND,
	StateConflictError: status.HTTP_409_CONFLICT,
	ExecutionIntegrityError: status.HTTP_409_CONFLICT,
}


def trade_exception_handler(exc: Exception, context: dict[str, Any]) -> Optional[Response]:
	"""
	Render trade engine failures as JSON responses, falling back to the DRF handler for anything else.

	Args:
		exc (Exception): The exception raised by the view.
		context (dict[str, Any]): The DRF handler context.

	Returns:
		Optional[Response]: The error response, or None to let Django handle the exception.
	"""
	if isinstance(exc, TradeError):
		response_status = next(
			(code for error_class, code in TRADE_ERROR_STATUSES.items() if isinstance(exc, error_class)),
			status.HTTP_400_BAD_REQUEST,
		)

		logger.info(f"{context['view'].__class__.__name__} refused the request: {exc}")
		return Response(exc.to_dict(), status=response_status)

	return exception_handler(exc, context)
