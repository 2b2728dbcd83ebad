from enum import StrEnum


class TradeStatuses(StrEnum):
	"""The status of a trade."""

	PROPOSED = "proposed"
	ACCEPTED = "accepted"
	REJECTED = "rejected"
	COUNTERED = "countered"
	CANCELLED = "cancelled"
	EXPIRED = "expired"
	VETOED = "vetoed"
	EXECUTED = "executed"

	@classmethod
	def choices(cls) -> list[tuple[str, str]]:
		"""Choices for the ``status`` model field."""  # noqa: DOC201
		return [(status.value, status.name.title()) for status in cls]

	@classmethod
	def open_statuses(cls) -> list["TradeStatuses"]:
		"""
		Get the statuses a trade can still leave.

		Returns:
			list[TradeStatuses]: The non-terminal statuses.
		"""
		return [cls.PROPOSED, cls.ACCEPTED]

	@classmethod
	def terminal_statuses(cls) -> list["TradeStatuses"]:
		"""
		Get the statuses no transition can leave.

		Returns:
			list[TradeStatuses]: The terminal statuses.
		"""
		return [status for status in cls if status not in cls.open_statuses()]

	@property
	def is_terminal(self) -> bool:
		"""Whether no transition is legal out of this status."""
		return self not in self.open_statuses()
