from collections.abc import Sequence
from typing import Any

from django.core.management.base import BaseCommand
from django.utils import timezone

from tradeflow.common.singletons.trade_engine import get_trade_engine


class Command(BaseCommand):
	"""Expire, execute, veto and remind trades whose deadlines have passed."""

	help = "Expire stale trade proposals, settle trades whose league review ended and remind partners"

	stealth_options = ("should_continue",)

	def add_arguments(self, parser) -> None:  # noqa: ANN001, D102, PLR6301
		parser.add_argument(
			"--batch-size",
			type=int,
			default=None,
			help="Number of trades fetched at once",
		)
		parser.add_argument(
			"--verbose",
			action="store_true",
			help="Enable verbose logging",
			default=False,
		)

	def handle(self, *_: Sequence[Any], **options: dict[str, Any]) -> None:  # noqa: D102
		verbose: bool = options["verbose"] or False  # pyright: ignore[reportAssignmentType]

		if verbose:
			self.stdout.write(f"Starting trade sweep at {timezone.now()}")

		report = get_trade_engine().sweep(
			batch_size=options["batch_size"],  # pyright: ignore[reportArgumentType]
			should_continue=options.get("should_continue"),  # pyright: ignore[reportArgumentType]
		)

		if report.failed:
			self.stdout.write(self.style.WARNING(f"Trade sweep completed with failures: {report}"))

		elif verbose:
			self.stdout.write(self.style.SUCCESS(f"Trade sweep completed at {timezone.now()}: {report}"))

		elif report.total > 0:
			self.stdout.write(self.style.SUCCESS(f"Swept {report.total} trades"))
