import logging
import sys


def setup_logging(level_name: str = "INFO") -> None:
	"""Configure root logger for the application."""
	level = getattr(logging, str(level_name).upper(), logging.INFO)

	# Basic configuration for root logger
	logging.basicConfig(
		level=level,
		format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
		stream=sys.stdout,
	)

	# Requests are logged by the app's after_request hook
	logging.getLogger("werkzeug").setLevel(logging.WARNING)
