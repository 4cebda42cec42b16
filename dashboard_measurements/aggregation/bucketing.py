from datetime import datetime, timezone
from math import floor


def bucket_start(timestamp_seconds: float, granularity_seconds: float) -> float:
    """Epoch-aligned start of the bucket containing ``timestamp_seconds``."""
    return floor(timestamp_seconds / granularity_seconds) * granularity_seconds


def bucket_label(bucket_start_seconds: float, fmt: str) -> str:
    """Render a bucket start (UTC) with a strftime format such as ``%m-%d %H:00``."""
    return datetime.fromtimestamp(bucket_start_seconds, tz=timezone.utc).strftime(fmt)
