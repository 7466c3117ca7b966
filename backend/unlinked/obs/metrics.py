"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Histogram


REQUEST_COUNTER = Counter(
	"unlinked_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"unlinked_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

CONNECTION_REQUESTS_SENT = Counter(
	"unlinked_connection_requests_sent_total",
	"Connection requests created",
)

CONNECTION_REQUEST_REJECTS = Counter(
	"unlinked_connection_requests_send_rejects_total",
	"Rejected connection request attempts",
	["reason"],
)

CONNECTION_TRANSITIONS = Counter(
	"unlinked_connection_request_transitions_total",
	"Connection request terminal transitions",
	["status"],
)

CONNECTIONS_REMOVED = Counter(
	"unlinked_connections_removed_total",
	"Connection removals processed",
)

NOTIFICATIONS_EMITTED = Counter(
	"unlinked_notifications_emitted_total",
	"Notifications appended to the ledger",
	["type"],
)

POST_COMMIT_FAILURES = Counter(
	"unlinked_post_commit_hook_failures_total",
	"Best-effort side effects that failed after a committed write",
	["operation", "hook"],
)

POST_LIKES = Counter(
	"unlinked_post_likes_total",
	"Like toggles by resulting change",
	["change"],
)

POST_COMMENTS = Counter(
	"unlinked_post_comments_total",
	"Comments appended to posts",
)

EDGE_REPAIRS = Counter(
	"unlinked_edge_repairs_total",
	"Connection edges repaired by the reconciler",
	["kind"],
)

EDGE_WRITES_DEFERRED = Counter(
	"unlinked_edge_writes_deferred_total",
	"Edge writes left to the reconciler after a failed side write",
	["op"],
)

EMAILS_SENT = Counter(
	"unlinked_emails_total",
	"Outbound emails by template and result",
	["template", "result"],
)

BACKGROUND_RUNS = Counter(
	"unlinked_jobs_runs_total",
	"Background job executions",
	["name", "result"],
)

BACKGROUND_DURATION = Histogram(
	"unlinked_jobs_duration_seconds",
	"Background job duration",
	["name"],
	buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 15.0, 30.0, 60.0),
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_request_sent() -> None:
	CONNECTION_REQUESTS_SENT.inc()


def inc_request_send_reject(reason: str) -> None:
	CONNECTION_REQUEST_REJECTS.labels(reason=reason).inc()


def inc_request_transition(status: str) -> None:
	CONNECTION_TRANSITIONS.labels(status=status).inc()


def inc_connection_removed() -> None:
	CONNECTIONS_REMOVED.inc()


def inc_notification(kind: str) -> None:
	NOTIFICATIONS_EMITTED.labels(type=kind).inc()


def inc_post_commit_failure(operation: str, hook: str) -> None:
	POST_COMMIT_FAILURES.labels(operation=operation, hook=hook).inc()


def inc_like(change: str) -> None:
	POST_LIKES.labels(change=change).inc()


def inc_comment() -> None:
	POST_COMMENTS.inc()


def inc_edge_repair(kind: str, count: int = 1) -> None:
	if count:
		EDGE_REPAIRS.labels(kind=kind).inc(count)


def inc_edge_write_deferred(op: str) -> None:
	EDGE_WRITES_DEFERRED.labels(op=op).inc()


def inc_email(template: str, result: str) -> None:
	EMAILS_SENT.labels(template=template, result=result).inc()


def observe_job(name: str, result: str, duration_seconds: float | None = None) -> None:
	BACKGROUND_RUNS.labels(name=name, result=result).inc()
	if duration_seconds is not None:
		BACKGROUND_DURATION.labels(name=name).observe(duration_seconds)
