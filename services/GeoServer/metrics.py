import threading
from collections import defaultdict
from time import time
from datetime import datetime, timezone


class Metrics:
	"""In-memory request counters for the lookup server."""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self.total_requests = 0
		self.total_errors = 0
		self.total_success = 0
		self.route_counters = defaultdict(int)
		self.status_counters = defaultdict(int)
		self.error_code_counters = defaultdict(int)
		self.last_request_timestamp = None
		self.total_latency_ms = 0.0

	def record_request(
		self,
		route: str,
		status_code: int,
		duration_ms: float,
		error_code: str | None = None,
	) -> None:
		"""Record a single HTTP request against its route rule."""
		now_ts = time()
		with self._lock:
			self.total_requests += 1
			self.route_counters[route] += 1
			self.status_counters[status_code] += 1
			self.total_latency_ms += duration_ms
			self.last_request_timestamp = now_ts

			if error_code:
				self.error_code_counters[error_code] += 1

			if 200 <= status_code < 400:
				self.total_success += 1
			else:
				self.total_errors += 1

	def snapshot(self) -> dict:
		"""Return a snapshot of current metrics as a plain dict."""
		with self._lock:
			avg_latency = (
				self.total_latency_ms / self.total_requests
				if self.total_requests > 0
				else 0.0
			)
			last_dt = (
				datetime.fromtimestamp(self.last_request_timestamp, timezone.utc).isoformat()
				if self.last_request_timestamp is not None
				else None
			)

			return {
				"total_requests": self.total_requests,
				"total_success": self.total_success,
				"total_errors": self.total_errors,
				"average_latency_ms": avg_latency,
				"by_route": dict(self.route_counters),
				"by_status_code": dict(self.status_counters),
				"by_error_code": dict(self.error_code_counters),
				"last_request_timestamp": self.last_request_timestamp,
				"last_request_datetime": last_dt,
			}
