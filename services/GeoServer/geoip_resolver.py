import ipaddress
from datetime import datetime, timezone
from pathlib import Path

import maxminddb

from errors import ErrorKind, GeoLookupError


# Top-level fields of the GeoIP2 City and Country models
CITY_FIELDS = (
	"city",
	"continent",
	"country",
	"location",
	"postal",
	"registered_country",
	"represented_country",
	"subdivisions",
	"traits",
)
COUNTRY_FIELDS = (
	"continent",
	"country",
	"registered_country",
	"represented_country",
	"traits",
)

class DatabaseOpenError(Exception):
	"""The database file is missing, unreadable or not a MaxMind DB."""


class GeoDatabase:
	"""Read-only, memory-mapped MaxMind DB shared by every request."""

	def __init__(self, reader, path=None) -> None:
		self._reader = reader
		self.path = path

	@classmethod
	def open(cls, path) -> "GeoDatabase":
		"""Map the database at ``path`` or raise DatabaseOpenError."""
		path = Path(path)
		try:
			# MODE_AUTO picks the C extension's mmap reader, else the pure Python one
			reader = maxminddb.open_database(str(path), maxminddb.MODE_AUTO)
		except (OSError, ValueError, maxminddb.InvalidDatabaseError) as e:
			raise DatabaseOpenError(f"{path}: {e}") from e
		return cls(reader, path)

	def _lookup(self, ip, fields: tuple) -> dict | None:
		try:
			record = self._reader.get(ip)
		except (ValueError, maxminddb.InvalidDatabaseError):
			# IPv6 address in an IPv4-only database, or an undecodable record
			return None
		if not isinstance(record, dict):
			return None
		return {key: record[key] for key in fields if key in record}

	def lookup_city(self, ip) -> dict | None:
		"""City-level record for ``ip`` or None."""
		return self._lookup(ip, CITY_FIELDS)

	def lookup_country(self, ip) -> dict | None:
		"""Country-level record for ``ip`` or None."""
		return self._lookup(ip, COUNTRY_FIELDS)

	@property
	def database_type(self) -> str:
		return self._reader.metadata().database_type

	@property
	def ip_version(self) -> int:
		return self._reader.metadata().ip_version

	@property
	def build_epoch(self) -> datetime:
		return datetime.fromtimestamp(self._reader.metadata().build_epoch, timezone.utc)

	def close(self) -> None:
		self._reader.close()

	def __enter__(self):
		return self

	def __exit__(self, *exc_info):
		self.close()


def _is_reserved(ip_obj) -> bool:
	return (
		ip_obj.is_private
		or ip_obj.is_loopback
		or ip_obj.is_link_local
		or ip_obj.is_multicast
		or ip_obj.is_reserved
		or ip_obj.is_unspecified
	)


def parse_ip(raw: str | None):
	"""Validate a path segment as an IPv4 or IPv6 address."""
	if raw is None:
		raise GeoLookupError(ErrorKind.IP_ADDRESS_REQUIRED)

	try:
		ip_obj = ipaddress.ip_address(raw)
	except ValueError:
		raise GeoLookupError(ErrorKind.IP_ADDRESS_INVALID) from None

	# Zone ids (fe80::1%eth0) only mean something on the local host
	if getattr(ip_obj, "scope_id", None):
		raise GeoLookupError(ErrorKind.IP_ADDRESS_INVALID)

	return ip_obj


def _lookup_for(database: GeoDatabase, record_type: str):
	lookups = {
		"city": database.lookup_city,
		"country": database.lookup_country,
	}
	try:
		return lookups[record_type]
	except KeyError:
		raise ValueError(f"unknown record type: {record_type!r}") from None


def _resolve(lookup, raw: str | None, reject_reserved: bool) -> dict:
	ip_obj = parse_ip(raw)

	if reject_reserved and _is_reserved(ip_obj):
		raise GeoLookupError(ErrorKind.IP_ADDRESS_RESERVED)

	record = lookup(ip_obj)
	if record is None:
		raise GeoLookupError(ErrorKind.IP_ADDRESS_NOT_FOUND)

	return record


def resolve(database: GeoDatabase, raw: str | None, record_type: str, reject_reserved: bool = False) -> dict:
	"""Resolve ``raw`` to a city or country record, or raise GeoLookupError."""
	return _resolve(_lookup_for(database, record_type), raw, reject_reserved)


class LookupHandler:
	"""One lookup endpoint bound to its database method."""

	def __init__(self, database: GeoDatabase, record_type: str, reject_reserved: bool = False) -> None:
		self.lookup = _lookup_for(database, record_type)
		self.database = database
		self.record_type = record_type
		self.reject_reserved = reject_reserved

	def __call__(self, raw: str | None) -> dict:
		return _resolve(self.lookup, raw, self.reject_reserved)
