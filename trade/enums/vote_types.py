from enum import StrEnum


class VoteTypes(StrEnum):
	"""A league member's opinion on an accepted trade."""

	APPROVE = "approve"
	VETO = "veto"
