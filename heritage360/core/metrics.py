"""Application metrics (Prometheus client).

The single inventory of everything the service measures.  Modules import
the metric they own and increment it at the point of action; /metrics
exposes the default registry.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Learning metrics
# ---------------------------------------------------------------------------

LESSONS_COMPLETED = Counter(
    "lessons_completed_total",
    "Lesson completion events applied (re-completions included)",
)

ACHIEVEMENTS_UNLOCKED = Counter(
    "achievements_unlocked_total",
    "Achievements newly earned by learners",
    ["achievement_id"],
)

CERTIFICATES_ISSUED = Counter(
    "certificates_issued_total",
    "Certificates created (idempotent re-issues are not counted)",
)

QUIZ_SUBMISSIONS = Counter(
    "quiz_submissions_total",
    "Graded quiz submissions",
    ["outcome"],  # "passed" or "failed"
)

PROGRESS_CONFLICTS = Counter(
    "progress_conflicts_total",
    "Optimistic-lock conflicts on the learner aggregate",
    ["outcome"],  # "retried" or "exhausted"
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache get operations by result",
    ["operation"],  # "hit" or "miss"
)
