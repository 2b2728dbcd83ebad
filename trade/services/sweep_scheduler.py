import logging
import threading

from django.core.management import call_command

from tradeflow.settings import TRADE_SETTINGS

logger = logging.getLogger(__name__)


class TradeSweepScheduler:
	"""Runs the sweep_trades command on a background timer while the web server is up."""

	def __init__(self, interval: float = TRADE_SETTINGS.SWEEP_INTERVAL_SECONDS) -> None:
		"""Initialize the trade sweep scheduler."""
		self.interval = interval
		self.running = False
		self.timer = None
		self.lock = threading.Lock()

	def _schedule(self, delay: float) -> None:
		self.timer = threading.Timer(delay, self._sweep_and_schedule)
		self.timer.daemon = True
		self.timer.start()

	def start(self) -> None:
		"""Start the trade sweep scheduler."""
		with self.lock:
			if self.running:
				return

			self.running = True
			logger.debug("Trade sweep scheduler started")

			# Delay initial database access to avoid AppConfig.ready() warning
			self._schedule(1.0)

	def stop(self) -> None:
		"""Stop the trade sweep scheduler."""
		with self.lock:
			self.running = False

			if self.timer:
				self.timer.cancel()
				self.timer = None

			logger.debug("Trade sweep scheduler stopped")

	def _sweep_and_schedule(self) -> None:
		"""Sweep due trades and schedule the next run."""
		if not self.running:
			return

		try:
			call_command("sweep_trades", should_continue=lambda: self.running)

		except Exception:
			logger.exception("Error in trade sweep scheduler:")

			# On error, retry in 1 minute
			delay = min(60, self.interval)

		else:
			delay = self.interval

		with self.lock:
			if self.running:
				logger.debug(f"Scheduling next trade sweep in {delay:.0f} seconds")
				self._schedule(delay)


# Global scheduler instance
scheduler = TradeSweepScheduler()


def start_trade_sweep_scheduler() -> None:
	"""Start the global scheduler."""
	scheduler.start()


def stop_trade_sweep_scheduler() -> None:
	"""Stop the global scheduler."""
	scheduler.stop()
