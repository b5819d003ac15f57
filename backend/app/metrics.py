from __future__ import annotations

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "resume_review_requests_total",
    "Total HTTP requests processed by the resume review API",
    ("method", "path", "status"),
)

REQUEST_LATENCY = Histogram(
    "resume_review_request_latency_seconds",
    "HTTP request latency in seconds",
    ("method", "path"),
)

REQUEST_ERRORS = Counter(
    "resume_review_request_errors_total",
    "HTTP requests resulting in server errors",
    ("method", "path", "status"),
)

AUTH_EVENTS = Counter(
    "resume_review_auth_events_total",
    "Magic-link and session events by outcome",
    ("event", "result"),
)

EMAILS_SENT = Counter(
    "resume_review_emails_total",
    "Outbound emails by template and outcome",
    ("kind", "result"),
)

RESUME_EVENTS = Counter(
    "resume_review_resume_events_total",
    "Resume lifecycle events",
    ("event",),
)

__all__ = [
    "AUTH_EVENTS",
    "EMAILS_SENT",
    "REQUEST_COUNT",
    "REQUEST_ERRORS",
    "REQUEST_LATENCY",
    "RESUME_EVENTS",
]
