from prometheus_client import Counter, Gauge, Histogram

# Real-time dimension
REALTIME_WINDOWS_TOTAL = Counter(
    "measurements_realtime_windows_total", "Real-time count windows emitted."
)
REALTIME_MESSAGES_TOTAL = Counter(
    "measurements_realtime_messages_total",
    "Device messages counted by real-time windows.",
)
REALTIME_ACTIVE_SUBSCRIPTIONS = Gauge(
    "measurements_realtime_active_subscriptions",
    "Message bus subscriptions currently held by real-time dimensions.",
)
REALTIME_SUBSCRIPTION_FAILURES_TOTAL = Counter(
    "measurements_realtime_subscription_failures_total",
    "Real-time streams terminated by a message bus failure.",
)

# Aggregate dimension
AGGREGATE_QUERIES_TOTAL = Counter(
    "measurements_aggregate_queries_total", "Aggregation queries executed."
)
AGGREGATE_QUERY_FAILURES_TOTAL = Counter(
    "measurements_aggregate_query_failures_total",
    "Aggregation queries rejected or failed by the series store.",
)
AGGREGATE_QUERY_LATENCY_SECONDS = Histogram(
    "measurements_aggregate_query_latency_seconds",
    "Latency of series store aggregation calls.",
)

# Recorder
RECORDER_POINTS_TOTAL = Counter(
    "measurements_recorder_points_total", "Message count points written to the store."
)
RECORDER_FLUSH_ERRORS_TOTAL = Counter(
    "measurements_recorder_flush_errors_total", "Failed recorder flushes."
)
