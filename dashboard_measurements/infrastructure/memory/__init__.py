from .bus import InMemoryMessageBus, InMemorySubscription
from .series_store import InMemorySeriesStore

__all__ = ["InMemoryMessageBus", "InMemorySeriesStore", "InMemorySubscription"]
