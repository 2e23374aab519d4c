from prometheus_client import Counter, Histogram, Gauge
# Prometheus metrics definitions

# Per-photo outcomes of the classification pipeline
classify_success_total = Counter(
    "classify_success_total", "Photos classified successfully"
)
classify_failure_total = Counter(
    "classify_failure_total", "Photos whose classification attempt failed"
)

# Primary tier failed and the request was re-issued on the paid tier
classify_fallback_total = Counter(
    "classify_fallback_total", "Fallbacks from primary to secondary model tier"
)

# Replies that parsed but broke the tagging rules
classify_validation_reject_total = Counter(
    "classify_validation_reject_total", "Classification replies rejected by validation"
)

# Claims lost to a concurrent run
classify_claim_conflict_total = Counter(
    "classify_claim_conflict_total", "Photos skipped because another run claimed them"
)

# external call latency; the gateway answers in seconds
_call_latency_buckets = (
    0.5,
    1.0,
    2.0,
    4.0,
    8.0,
    16.0,
    32.0,
)

classify_call_seconds = Histogram(
    "classify_call_seconds",
    "Latency of a single classification service call",
    buckets=_call_latency_buckets,
)

classify_batch_seconds = Histogram(
    "classify_batch_seconds", "Duration of a classification batch run"
)

# Photos selected as eligible by the last batch run
classify_batch_size = Gauge(
    "classify_batch_size", "Number of photos selected by the last batch"
)

__all__ = [
    "classify_success_total",
    "classify_failure_total",
    "classify_fallback_total",
    "classify_validation_reject_total",
    "classify_claim_conflict_total",
    "classify_call_seconds",
    "classify_batch_seconds",
    "classify_batch_size",
]
