class MeasurementError(Exception):
    """Base class for errors surfaced by measurement dimensions."""


class UnsupportedDimension(MeasurementError):
    """Raised when a measurement does not own the requested dimension kind."""

    def __init__(self, measurement_id: str, kind: str):
        super().__init__(
            f"Measurement '{measurement_id}' has no '{kind}' dimension"
        )
        self.measurement_id = measurement_id
        self.kind = kind


class UpstreamSubscriptionFailure(MeasurementError):
    """The message bus subscription feeding a real-time stream broke or closed."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Subscription to '{pattern}' terminated: {reason}")
        self.pattern = pattern
        self.reason = reason


class QueryExecutionFailure(MeasurementError):
    """The series store failed to execute an aggregation query."""

    def __init__(self, metric: str, reason: str):
        super().__init__(f"Aggregation over '{metric}' failed: {reason}")
        self.metric = metric
        self.reason = reason
