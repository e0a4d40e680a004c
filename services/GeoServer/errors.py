"""Error vocabulary shared with GeoIP2 web service clients.

Every failure a lookup route can report is one of the ``ErrorKind`` members.
The member name is the machine-readable ``code`` sent on the wire.
"""

from enum import Enum


class ErrorKind(Enum):
	"""Classified failures as (HTTP status, human message)."""

	IP_ADDRESS_INVALID = (
		400,
		"You have not supplied a valid IPv4 or IPv6 address.",
	)
	IP_ADDRESS_REQUIRED = (
		400,
		"You have not supplied an IP address, which is a required field.",
	)
	IP_ADDRESS_NOT_FOUND = (
		404,
		"The supplied IP address is not in the database.",
	)
	IP_ADDRESS_RESERVED = (
		400,
		"You have supplied an IP address which belongs to a reserved or private range.",
	)
	# Account and billing errors are raised by a gateway in front of this service
	ACCOUNT_ID_REQUIRED = (
		401,
		"You have not supplied a account ID in the Authorization header.",
	)
	ACCOUNT_ID_UNKNOWN = (
		401,
		"You have supplied an unknown account ID.",
	)
	AUTHORIZATION_INVALID = (
		401,
		"You have supplied an invalid account ID and/or license key in the Authorization header.",
	)
	LICENSE_KEY_REQUIRED = (
		402,
		"You have not supplied a license key in the Authorization header.",
	)
	INSUFFICIENT_FUNDS = (
		402,
		"The license key you have provided does not have sufficient funds to use this service. "
		"Please purchase more service credits.",
	)
	PERMISSION_REQUIRED = (
		403,
		"You do not have permission to use the service.",
	)

	def __init__(self, status: int, message: str) -> None:
		self.status = status
		self.message = message

	@property
	def code(self) -> str:
		return self.name


class GeoLookupError(Exception):
	"""Terminal lookup failure, converted straight into an HTTP response."""

	def __init__(self, kind: ErrorKind) -> None:
		super().__init__(kind.message)
		self.kind = kind

	@property
	def status(self) -> int:
		return self.kind.status

	@property
	def code(self) -> str:
		return self.kind.code

	def to_dict(self) -> dict:
		"""Wire body: exactly ``code`` and ``error``."""
		return {"code": self.kind.code, "error": self.kind.message}
