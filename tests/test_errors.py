import pytest

from errors import ErrorKind, GeoLookupError


EXPECTED_STATUS = {
	"IP_ADDRESS_INVALID": 400,
	"IP_ADDRESS_REQUIRED": 400,
	"IP_ADDRESS_NOT_FOUND": 404,
	"IP_ADDRESS_RESERVED": 400,
	"ACCOUNT_ID_REQUIRED": 401,
	"ACCOUNT_ID_UNKNOWN": 401,
	"AUTHORIZATION_INVALID": 401,
	"LICENSE_KEY_REQUIRED": 402,
	"INSUFFICIENT_FUNDS": 402,
	"PERMISSION_REQUIRED": 403,
}


def test_taxonomy_is_closed():
	assert {kind.code for kind in ErrorKind} == set(EXPECTED_STATUS)


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_status_and_message(kind):
	assert kind.status == EXPECTED_STATUS[kind.code]
	assert kind.message.endswith(".")


def test_wire_body_has_exactly_code_and_error():
	error = GeoLookupError(ErrorKind.IP_ADDRESS_NOT_FOUND)
	assert error.to_dict() == {
		"code": "IP_ADDRESS_NOT_FOUND",
		"error": "The supplied IP address is not in the database.",
	}
	assert error.status == 404
	assert str(error) == ErrorKind.IP_ADDRESS_NOT_FOUND.message


def test_insufficient_funds_message_is_one_sentence_pair():
	assert ErrorKind.INSUFFICIENT_FUNDS.message == (
		"The license key you have provided does not have sufficient funds to use this service. "
		"Please purchase more service credits."
	)
