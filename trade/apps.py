import sys

from django.apps import AppConfig


class TradeConfig(AppConfig):
	default_auto_field = "django.db.models.BigAutoField"
	name = "trade"

	def ready(self) -> None:
		"""Start the trade sweeper when serving requests."""
		from tradeflow.settings import ENV  # noqa: PLC0415

		if ENV.RUN_TRADE_SWEEPER and ("runserver" in sys.argv or "gunicorn" in sys.argv[0]):
			from trade.services.sweep_scheduler import start_trade_sweep_scheduler  # noqa: PLC0415

			start_trade_sweep_scheduler()
