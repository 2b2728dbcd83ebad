from enum import StrEnum


class TradeEventTypes(StrEnum):
	"""Kinds of entries in a trade's audit log and notification outbox."""

	PROPOSED = "proposed"
	ACCEPTED = "accepted"
	REVIEW_STARTED = "review_started"
	REJECTED = "rejected"
	COUNTERED = "countered"
	CANCELLED = "cancelled"
	EXPIRED = "expired"
	EXPIRING_SOON = "expiring_soon"
	VOTE_CAST = "vote_cast"
	VETOED = "vetoed"
	EXECUTED = "executed"
	EXECUTION_FAILED = "execution_failed"
	OVERRIDDEN = "overridden"

	@classmethod
	def choices(cls) -> list[tuple[str, str]]:
		"""Choices for the ``event_type`` model field."""  # noqa: DOC201
		return [(event.value, event.name.replace("_", " ").title()) for event in cls]

	@property
	def level(self) -> str:
		"""Notification level used when this event reaches a user."""
		if self in {TradeEventTypes.VETOED, TradeEventTypes.EXPIRED, TradeEventTypes.EXPIRING_SOON}:
			return "warning"

		if self is TradeEventTypes.EXECUTION_FAILED:
			return "error"

		return "info"
