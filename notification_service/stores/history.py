from typing import Protocol

from notification_service.schemas.notifications import NotificationRecord


class NotificationHistoryStore(Protocol):
    def append(self, record: NotificationRecord) -> None: ...

    def get(self, order_id: str) -> list[NotificationRecord]: ...


class InMemoryNotificationHistoryStore:
    def __init__(self) -> None:
        self._records: dict[str, list[NotificationRecord]] = {}

    def append(self, record: NotificationRecord) -> None:
        self._records.setdefault(record.order_id, []).append(record)

    def get(self, order_id: str) -> list[NotificationRecord]:
        return list(self._records.get(order_id, []))

    def __len__(self) -> int:
        return sum(len(records) for records in self._records.values())
