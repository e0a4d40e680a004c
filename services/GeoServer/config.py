# config.py

import argparse
import os
from dataclasses import dataclass
from pathlib import Path


__version__ = "0.3.0"


def _env_bool(name: str, default: bool = False) -> bool:
	"""Read a boolean value from environment variables."""
	raw = os.getenv(name)
	if raw is None:
		return default
	return raw.strip().lower() in ("1", "true", "yes", "on")


def _port(value: str) -> int:
	try:
		port = int(value)
	except ValueError:
		raise argparse.ArgumentTypeError(f"invalid port: {value!r}")
	if not 0 <= port <= 65535:
		raise argparse.ArgumentTypeError(f"port out of range: {port}")
	return port


@dataclass(frozen=True)
class Settings:
	"""Resolved server settings."""

	database: Path
	bind: str = "0.0.0.0"
	port: int = 3000
	log_level: str = "INFO"
	reject_reserved: bool = False


def build_parser() -> argparse.ArgumentParser:
	"""Command-line flags; every flag falls back to its environment variable."""
	db_env = os.getenv("DB")

	parser = argparse.ArgumentParser(
		prog="geoip2-server",
		description="Serve GeoIP2 city and country lookups from a MaxMind DB file.",
	)
	parser.add_argument(
		"-V", "--version",
		action="version",
		version=f"%(prog)s {__version__}",
	)
	parser.add_argument(
		"-b", "--bind",
		metavar="BIND",
		default=os.getenv("BIND", "0.0.0.0"),
		help="address to listen on (env: BIND, default: 0.0.0.0)",
	)
	parser.add_argument(
		"-p", "--port",
		metavar="PORT",
		type=_port,
		default=os.getenv("PORT", "3000"),
		help="port to listen on (env: PORT, default: 3000)",
	)
	parser.add_argument(
		"-d", "--database",
		metavar="DB",
		type=Path,
		default=Path(db_env) if db_env else None,
		required=not db_env,
		help="path to the .mmdb database (env: DB)",
	)
	parser.add_argument(
		"--log-level",
		default=os.getenv("LOG_LEVEL", "INFO"),
		help="root log level (env: LOG_LEVEL, default: INFO)",
	)
	parser.add_argument(
		"--reject-reserved",
		action="store_true",
		default=_env_bool("REJECT_RESERVED", False),
		help="answer IP_ADDRESS_RESERVED for private and reserved ranges (env: REJECT_RESERVED)",
	)
	return parser


def load_settings(argv=None) -> Settings:
	"""Parse flags and environment into a Settings instance."""
	args = build_parser().parse_args(argv)
	return Settings(
		database=args.database,
		bind=args.bind,
		port=args.port,
		log_level=args.log_level,
		reject_reserved=args.reject_reserved,
	)
