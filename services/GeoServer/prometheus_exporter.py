from typing import Any, Dict, Iterable, Tuple


CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _sanitize_label_value(value: str) -> str:
	"""Escape characters inside Prometheus label values."""
	return (
		value.replace("\\", "\\\\")
		.replace("\n", "\\n")
		.replace('"', '\\"')
	)


def _metric(lines: list, name: str, kind: str, help_text: str) -> None:
	lines.append(f"# HELP {name} {help_text}")
	lines.append(f"# TYPE {name} {kind}")


def _labelled(lines: list, name: str, label: str, items: Iterable[Tuple[Any, Any]]) -> None:
	for key, count in sorted(items, key=lambda item: str(item[0])):
		if key is None:
			continue
		lines.append(f'{name}{{{label}="{_sanitize_label_value(str(key))}"}} {count}')


def format_prometheus_metrics(snapshot: Dict[str, Any]) -> str:
	"""Convert a Metrics snapshot into Prometheus exposition format."""
	lines: list[str] = []

	total_requests = snapshot.get("total_requests", 0) or 0
	total_success = snapshot.get("total_success", 0) or 0
	total_errors = snapshot.get("total_errors", 0) or 0
	avg_latency = snapshot.get("average_latency_ms", 0.0) or 0.0
	last_ts = snapshot.get("last_request_timestamp", 0) or 0

	_metric(lines, "geoserver_requests_total", "counter", "Total number of HTTP requests handled.")
	lines.append(f"geoserver_requests_total {total_requests}")

	_metric(lines, "geoserver_requests_success_total", "counter", "Total number of successful HTTP requests.")
	lines.append(f"geoserver_requests_success_total {total_success}")

	_metric(lines, "geoserver_requests_error_total", "counter", "Total number of error HTTP responses.")
	lines.append(f"geoserver_requests_error_total {total_errors}")

	_metric(lines, "geoserver_request_latency_ms_average", "gauge", "Average request latency in milliseconds.")
	lines.append(f"geoserver_request_latency_ms_average {avg_latency}")

	_metric(lines, "geoserver_last_request_timestamp_seconds", "gauge", "Unix timestamp of the last handled request.")
	lines.append(f"geoserver_last_request_timestamp_seconds {int(last_ts)}")

	_metric(lines, "geoserver_requests_by_route_total", "counter", "Total requests grouped by URL rule.")
	_labelled(lines, "geoserver_requests_by_route_total", "route", (snapshot.get("by_route") or {}).items())

	_metric(lines, "geoserver_requests_by_status_total", "counter", "Total requests grouped by HTTP status code.")
	_labelled(lines, "geoserver_requests_by_status_total", "status", (snapshot.get("by_status_code") or {}).items())

	_metric(lines, "geoserver_lookup_errors_total", "counter", "Lookup failures grouped by error code.")
	_labelled(lines, "geoserver_lookup_errors_total", "code", (snapshot.get("by_error_code") or {}).items())

	# Newline at the end is recommended by Prometheus
	return "\n".join(lines) + "\n"
