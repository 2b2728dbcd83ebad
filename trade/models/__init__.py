from .trade import Trade
from .trade_event import TradeEvent
from .trade_vote import TradeVote

__all__ = [
	"Trade",
	"TradeEvent",
	"TradeVote",
]
