# tests/conftest.py
import pytest
import maxminddb

from app import create_app
from geoip_resolver import GeoDatabase


GOOGLE_CITY = {
	"city": {"geoname_id": 5375480, "names": {"en": "Mountain View"}},
	"continent": {"code": "NA", "geoname_id": 6255149, "names": {"en": "North America", "de": "Nordamerika"}},
	"country": {"geoname_id": 6252001, "iso_code": "US", "names": {"en": "United States"}},
	"location": {
		"accuracy_radius": 1000,
		"latitude": 37.386,
		"longitude": -122.0838,
		"metro_code": 807,
		"time_zone": "America/Los_Angeles",
	},
	"postal": {"code": "94035"},
	"registered_country": {"geoname_id": 6252001, "iso_code": "US", "names": {"en": "United States"}},
	"subdivisions": [{"geoname_id": 5332921, "iso_code": "CA", "names": {"en": "California"}}],
}

CLOUDFLARE_V6 = {
	"continent": {"code": "OC", "geoname_id": 6255151, "names": {"en": "Oceania"}},
	"country": {"geoname_id": 2077456, "iso_code": "AU", "names": {"en": "Australia"}},
	"registered_country": {"geoname_id": 6252001, "iso_code": "US", "names": {"en": "United States"}},
	"traits": {"is_anycast": True},
}


class FakeMetadata:
	database_type = "GeoLite2-City"
	ip_version = 6
	build_epoch = 1700000000


class FakeReader:
	"""Stands in for a maxminddb.Reader over a handful of records."""

	def __init__(self, records: dict, broken=()) -> None:
		self.records = records
		self.broken = set(broken)
		self.closed = False

	def get(self, ip):
		key = str(ip)
		if key in self.broken:
			raise maxminddb.InvalidDatabaseError("corrupt data section")
		return self.records.get(key)

	def metadata(self):
		return FakeMetadata()

	def close(self):
		self.closed = True


@pytest.fixture
def records():
	return {
		"8.8.8.8": GOOGLE_CITY,
		"2606:4700:4700::1111": CLOUDFLARE_V6,
		"10.1.2.3": {"country": {"iso_code": "ZZ", "names": {"en": "Private"}}},
	}


@pytest.fixture
def reader(records):
	return FakeReader(records, broken={"192.0.2.99"})


@pytest.fixture
def database(reader):
	return GeoDatabase(reader, path="test.mmdb")


@pytest.fixture
def app(database):
	app = create_app(database)
	app.config.update(TESTING=True)
	return app


@pytest.fixture
def client(app):
	return app.test_client()
