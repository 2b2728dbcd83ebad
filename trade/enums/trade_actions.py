from enum import StrEnum


class TradeActions(StrEnum):
	"""Events that move a trade from one status to another."""

	ACCEPT = "accept"
	REJECT = "reject"
	COUNTER = "counter"
	CANCEL = "cancel"
	EXPIRE = "expire"
	EXECUTE = "execute"
	VETO = "veto"
	FORCE_EXECUTE = "force_execute"
	FORCE_VETO = "force_veto"


class OverrideActions(StrEnum):
	"""Decisions a commissioner can force on a trade."""

	APPROVE = "approve"
	VETO = "veto"

	@property
	def trade_action(self) -> TradeActions:
		"""The transition this override drives."""
		return TradeActions.FORCE_EXECUTE if self is OverrideActions.APPROVE else TradeActions.FORCE_VETO
