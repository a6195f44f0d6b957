from typing import Protocol


class ProcessedEventStore(Protocol):
    def has(self, event_id: str) -> bool: ...

    def add(self, event_id: str) -> None: ...

    def __len__(self) -> int: ...


class InMemoryProcessedEventStore:
    """Bounded set of handled event identities.

    Once an add pushes the size past ``max_size`` the oldest identities are
    dropped and only the most recent ``max_size // 2`` are kept. This is a
    best-effort window: a redelivery older than the window is not caught.
    """

    def __init__(self, max_size: int = 1000) -> None:
        if max_size < 2:
            raise ValueError("max_size must be at least 2")
        self.max_size = max_size
        # dict keeps insertion order, which is what eviction relies on
        self._seen: dict[str, None] = {}

    def has(self, event_id: str) -> bool:
        return event_id in self._seen

    def add(self, event_id: str) -> None:
        if event_id in self._seen:
            return
        self._seen[event_id] = None
        if len(self._seen) > self.max_size:
            keep = list(self._seen)[-(self.max_size // 2):]
            self._seen = dict.fromkeys(keep)

    def clear(self) -> None:
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._seen)
