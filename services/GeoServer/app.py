import logging
import sys
import time

from flask import Flask, Response, g, jsonify, request
from werkzeug.exceptions import HTTPException, InternalServerError
from werkzeug.serving import WSGIRequestHandler, make_server

from config import load_settings
from errors import ErrorKind, GeoLookupError
from geoip_resolver import DatabaseOpenError, GeoDatabase, LookupHandler
from logging_config import setup_logging
from metrics import Metrics
from prometheus_exporter import CONTENT_TYPE, format_prometheus_metrics


logger = logging.getLogger(__name__)

LOOKUP_ENDPOINTS = ("city", "country")

# Seconds an idle keep-alive connection may hold a request thread
IDLE_CONNECTION_TIMEOUT = 10


class RequestHandler(WSGIRequestHandler):
	timeout = IDLE_CONNECTION_TIMEOUT


def _lookup_view(handler: LookupHandler):
	def view(ip):
		return jsonify(handler(ip))

	view.__name__ = f"{handler.record_type}_lookup"
	return view


def create_app(database: GeoDatabase, reject_reserved: bool = False, metrics: Metrics | None = None) -> Flask:
	"""Build the lookup app around an already opened database."""
	app = Flask(__name__)
	metrics = metrics if metrics is not None else Metrics()
	app.extensions["geo_database"] = database
	app.extensions["metrics"] = metrics

	for record_type in LOOKUP_ENDPOINTS:
		view = _lookup_view(LookupHandler(database, record_type, reject_reserved))
		app.add_url_rule(
			f"/geoip/v2.1/{record_type}/",
			endpoint=record_type,
			view_func=view,
			defaults={"ip": None},
		)
		# path: so an encoded slash still reaches address validation
		app.add_url_rule(f"/geoip/v2.1/{record_type}/<path:ip>", endpoint=record_type, view_func=view)

	@app.before_request
	def before_request():
		"""Store request start time for latency measurement."""
		g.request_start_time = time.perf_counter()

	@app.after_request
	def after_request(response):
		"""Log request details and record metrics after each response."""
		try:
			start = getattr(g, "request_start_time", None)
			duration_ms = (time.perf_counter() - start) * 1000.0 if start is not None else 0.0

			route = request.url_rule.rule if request.url_rule is not None else "<unmatched>"
			status_code = response.status_code
			client_ip = request.headers.get("X-Forwarded-For", request.remote_addr)

			metrics.record_request(
				route=route,
				status_code=status_code,
				duration_ms=duration_ms,
				error_code=g.get("error_code"),
			)

			logger.info(
				"request_completed method=%s path=%s status=%s duration_ms=%.3f client_ip=%s",
				request.method,
				request.path,
				status_code,
				duration_ms,
				client_ip,
			)
		except Exception:
			logger.exception("after_request logging failed")

		return response

	@app.errorhandler(GeoLookupError)
	def handle_lookup_error(error: GeoLookupError):
		g.error_code = error.code
		return jsonify(error.to_dict()), error.status

	@app.errorhandler(Exception)
	def handle_unexpected_error(error: Exception):
		if isinstance(error, HTTPException):
			return error
		if request.endpoint not in LOOKUP_ENDPOINTS:
			logger.exception("Unhandled error on %s", request.path)
			return InternalServerError(original_exception=error)
		# Lookup routes only ever answer with a taxonomy error
		logger.exception("Lookup failed for %s", request.path)
		return handle_lookup_error(GeoLookupError(ErrorKind.IP_ADDRESS_NOT_FOUND))

	@app.route("/status")
	def status():
		"""Liveness check, independent of the database."""
		return Response("ok", mimetype="text/plain")

	@app.route("/metrics")
	def metrics_endpoint():
		"""Expose request metrics in Prometheus text format."""
		return Response(format_prometheus_metrics(metrics.snapshot()), content_type=CONTENT_TYPE)

	return app


def build_server(app: Flask, bind: str, port: int):
	"""Threaded listener whose server_close() waits for in-flight requests."""
	server = make_server(bind, port, app, threaded=True, request_handler=RequestHandler)
	# Non-daemon request threads are joined by server_close()
	server.daemon_threads = False
	return server


def main(argv=None) -> int:
	settings = load_settings(argv)
	setup_logging(settings.log_level)

	try:
		database = GeoDatabase.open(settings.database)
	except DatabaseOpenError as e:
		logger.error("Unable to open GeoIP database: %s", e)
		return 1

	with database:
		logger.info(
			"Loaded %s database (IPv%s, built %s) from %s",
			database.database_type,
			database.ip_version,
			database.build_epoch.isoformat(),
			settings.database,
		)
		app = create_app(database, reject_reserved=settings.reject_reserved)

		server = build_server(app, settings.bind, settings.port)
		logger.info("listening on %s:%s...", settings.bind, settings.port)
		# Returns on Ctrl-C once the listener is closed and running requests are done
		server.serve_forever()
		logger.info("Shutting down")

	return 0


if __name__ == "__main__":
	sys.exit(main())
