"""Typed failures raised by the trade engine.

Every failure carries an ``ErrorCode`` so callers (and the REST layer) can react to
the specific guard that tripped without parsing messages.
"""

from enum import StrEnum
from typing import Any, Optional


class ErrorCode(StrEnum):
	"""Machine readable reason of a trade failure."""

	# Proposal validation
	INVALID_ASSET = "invalid_asset"
	DUPLICATE_ACQUISITION = "duplicate_acquisition"
	DEADLINE_PASSED = "deadline_passed"
	PARTNER_NOT_FOUND = "partner_not_found"
	INVALID_EXPIRATION = "invalid_expiration"
	EMPTY_TRADE = "empty_trade"
	MISSING_REASON = "missing_reason"

	# Authorization
	NOT_PARTNER = "not_partner"
	NOT_INITIATOR = "not_initiator"
	NOT_COMMISSIONER = "not_commissioner"
	NOT_MEMBER = "not_member"
	NOT_TEAM_OWNER = "not_team_owner"
	NOT_PARTY = "not_party"
	ALREADY_VOTED = "already_voted"
	SELF_VOTE = "self_vote"

	# State conflicts
	WRONG_STATUS = "wrong_status"
	ALREADY_TERMINAL = "already_terminal"
	EXPIRED = "expired"
	VOTING_DISABLED = "voting_disabled"
	REVIEW_PENDING = "review_pending"

	# Execution
	ASSET_NO_LONGER_OWNED = "asset_no_longer_owned"

	TRADE_NOT_FOUND = "trade_not_found"


class TradeError(Exception):
	"""Base class of every trade engine failure."""

	def __init__(self, code: ErrorCode, message: str, details: Optional[dict[str, Any]] = None) -> None:
		super().__init__(message)
		self.code = code
		self.message = message
		self.details = details or {}

	def __str__(self) -> str:
		return f"[{self.code}] {self.message}"

	def to_dict(self) -> dict[str, Any]:
		"""Serializable representation used by the REST layer."""  # noqa: DOC201
		return {"code": self.code.value, "detail": self.message, **({"details": self.details} if self.details else {})}


class ValidationError(TradeError):
	"""A proposal is invalid. No trade is created."""


class AuthorizationError(TradeError):
	"""The acting user may not perform the operation. Raised before any mutation."""


class StateConflictError(TradeError):
	"""The trade is not in a status that allows the operation. Re-fetch and retry."""


class ExecutionIntegrityError(TradeError):
	"""Assets moved since the trade was proposed. Rosters and trade status are left untouched."""


class TradeNotFoundError(TradeError):
	"""No trade with the requested id exists."""

	def __init__(self, trade_id: int) -> None:
		super().__init__(ErrorCode.TRADE_NOT_FOUND, f"Trade {trade_id} not found.", {"trade_id": trade_id})
