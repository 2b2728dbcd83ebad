"""The trade lifecycle as a transition table.

``transition`` is total over ``(TradeStatuses, TradeActions)``: it either returns the
next status or raises ``StateConflictError``. Nothing else in the code base decides
which status follows which.
"""

from types import MappingProxyType

from trade.enums.trade_actions import TradeActions
from trade.enums.trade_statuses import TradeStatuses
from trade.exceptions import ErrorCode, StateConflictError

TRANSITIONS: MappingProxyType[tuple[TradeStatuses, TradeActions], TradeStatuses] = MappingProxyType(
	{
		(TradeStatuses.PROPOSED, TradeActions.ACCEPT): TradeStatuses.ACCEPTED,
		(TradeStatuses.PROPOSED, TradeActions.REJECT): TradeStatuses.REJECTED,
		(TradeStatuses.PROPOSED, TradeActions.COUNTER): TradeStatuses.COUNTERED,
		(TradeStatuses.PROPOSED, TradeActions.CANCEL): TradeStatuses.CANCELLED,
		(TradeStatuses.PROPOSED, TradeActions.EXPIRE): TradeStatuses.EXPIRED,
		(TradeStatuses.PROPOSED, TradeActions.FORCE_EXECUTE): TradeStatuses.EXECUTED,
		(TradeStatuses.PROPOSED, TradeActions.FORCE_VETO): TradeStatuses.VETOED,
		(TradeStatuses.ACCEPTED, TradeActions.CANCEL): TradeStatuses.CANCELLED,
		(TradeStatuses.ACCEPTED, TradeActions.EXECUTE): TradeStatuses.EXECUTED,
		(TradeStatuses.ACCEPTED, TradeActions.VETO): TradeStatuses.VETOED,
		(TradeStatuses.ACCEPTED, TradeActions.FORCE_EXECUTE): TradeStatuses.EXECUTED,
		(TradeStatuses.ACCEPTED, TradeActions.FORCE_VETO): TradeStatuses.VETOED,
	},
)


def transition(status: str, action: TradeActions) -> TradeStatuses:
	"""
	Compute the status a trade moves to.

	Args:
		status (str): The current status of the trade.
		action (TradeActions): The event applied to the trade.

	Raises:
		StateConflictError: If the status is terminal or the action is not legal from it.

	Returns:
		TradeStatuses: The next status.
	"""
	current = TradeStatuses(status)

	if current.is_terminal:
		raise StateConflictError(
			ErrorCode.ALREADY_TERMINAL,
			f"Trade is already {current} and cannot {action}.",
			{"status": current.value, "action": action.value},
		)

	try:
		return TRANSITIONS[(current, action)]

	except KeyError:
		raise StateConflictError(
			ErrorCode.WRONG_STATUS,
			f"Cannot {action} a trade with status {current}.",
			{"status": current.value, "action": action.value},
		) from None


def allowed_actions(status: str) -> list[TradeActions]:
	"""
	List the actions legal from a status.

	Args:
		status (str): The current status of a trade.

	Returns:
		list[TradeActions]: The actions ``transition`` accepts for this status.
	"""
	current = TradeStatuses(status)
	return [action for (source, action) in TRANSITIONS if source == current]
