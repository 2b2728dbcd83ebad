from functools import lru_cache

from trade.services.engine import TradeEngine


@lru_cache(maxsize=1)
def get_trade_engine() -> TradeEngine:
	"""Get a singleton instance of the TradeEngine."""  # noqa: DOC201
	return TradeEngine()
