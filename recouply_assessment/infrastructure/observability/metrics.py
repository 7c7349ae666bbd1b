"""Prometheus metrics for assessment volume, ROI distribution, rate limiting and webhook performance"""

from prometheus_client import Counter, Histogram

# Assessment metrics
assessment_counter = Counter(
    "recouply_assessment_total",
    "Total collections assessments calculated",
    ["risk_tier"],  # Low | Medium | High | Critical
)

roi_bucket_counter = Counter(
    "recouply_assessment_roi_bucket",
    "Assessments by estimated ROI multiple",
    ["bucket"],  # 0x, 0x-1x, 1x-3x, 3x-10x, 10x+
)

invalid_input_counter = Counter(
    "recouply_assessment_invalid_input_total",
    "Assessments rejected for invalid input",
    ["field"],
)

lead_counter = Counter(
    "recouply_assessment_leads_total",
    "Assessment leads captured",
)

share_counter = Counter(
    "recouply_assessment_shares_total",
    "Assessments shared by email",
    ["share_type"],  # self | boss | team
)

rate_limited_counter = Counter(
    "recouply_rate_limited_total",
    "Requests denied by the rate limiter",
    ["action"],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Assessment webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def roi_bucket(roi_multiple: float) -> str:
    if roi_multiple <= 0:
        return "0x"
    elif roi_multiple < 1:
        return "0x-1x"
    elif roi_multiple < 3:
        return "1x-3x"
    elif roi_multiple <= 10:
        return "3x-10x"
    else:
        return "10x+"


def record_assessment(risk_tier: str, roi_multiple: float) -> None:
    """Record assessment metrics for tier mix and ROI distribution"""
    assessment_counter.labels(risk_tier=risk_tier).inc()
    roi_bucket_counter.labels(bucket=roi_bucket(roi_multiple)).inc()
