import asyncio
import json
from types import SimpleNamespace

from aiokafka.structs import TopicPartition

from order_events.builders import (
    build_order_cancelled_event,
    build_order_created_event,
    build_order_status_updated_event,
)
from order_events.schemas import to_wire


TOPIC = "order-events"


class FakeKafkaConsumer:
    """In-memory stand-in for AIOKafkaConsumer with a per-partition log."""

    def __init__(self, topic: str = TOPIC, partitions: int = 1) -> None:
        self.topic = topic
        self.logs = {TopicPartition(topic, p): [] for p in range(partitions)}
        self.positions = {tp: 0 for tp in self.logs}
        self.committed = {}
        self.seeks = []
        self.paused_partitions = set()
        self.topics = set()
        self.polls = 0
        self.started = False
        self.stopped = False

    def produce(self, value: bytes, partition: int = 0, key: bytes | None = None, headers=()):
        tp = TopicPartition(self.topic, partition)
        record = SimpleNamespace(
            topic=self.topic,
            partition=partition,
            offset=len(self.logs[tp]),
            timestamp=1_700_000_000_000,
            key=key,
            value=value,
            headers=tuple(headers),
        )
        self.logs[tp].append(record)
        return record

    def produce_event(self, event: dict, partition: int = 0):
        key = event.get("data", {}).get("orderId")
        return self.produce(
            json.dumps(event).encode("utf-8"),
            partition=partition,
            key=key.encode() if key else None,
            headers=[("event-type", event["type"].encode())],
        )

    async def start(self):
        self.started = True

    async def stop(self):
        self.stopped = True

    def subscribe(self, topics):
        self.topics = set(topics)

    def subscription(self):
        return set(self.topics)

    def assignment(self):
        return set(self.logs) if self.topics else set()

    def pause(self, *partitions):
        self.paused_partitions.update(partitions)

    def resume(self, *partitions):
        self.paused_partitions.difference_update(partitions)

    def paused(self):
        return set(self.paused_partitions)

    def seek(self, tp, offset):
        self.seeks.append((tp, offset))
        self.positions[tp] = offset

    async def commit(self, offsets):
        self.committed.update(offsets)

    async def getmany(self, timeout_ms=0):
        self.polls += 1
        batches = {}
        for tp, log in self.logs.items():
            if tp in self.paused_partitions:
                continue
            position = self.positions[tp]
            if position < len(log):
                batches[tp] = log[position:]
                self.positions[tp] = len(log)
        if not batches:
            await asyncio.sleep(timeout_ms / 1000)
        return batches


async def wait_until(predicate, timeout: float = 2.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition was not met in time")
        await asyncio.sleep(0.005)


def customer(order_id: str = "order-1", **overrides):
    data = {
        "orderId": order_id,
        "userId": "u1",
        "customerEmail": "a@b.com",
        "customerName": "A",
    }
    data.update(overrides)
    return data


def order_created_payload(order_id: str = "order-1", **overrides):
    data = {
        **customer(order_id),
        "items": [{"id": 1, "title": "Widget", "quantity": 2, "price": 9.99}],
        "totalAmount": 19.98,
        "status": "PENDING",
        "createdAt": "2026-10-19T10:00:00+00:00",
    }
    data.update(overrides)
    return data


def order_created_event(order_id: str = "order-1", **overrides) -> dict:
    return to_wire(build_order_created_event(order_created_payload(order_id, **overrides)))


def status_updated_event(order_id: str = "order-1", new_status: str = "SHIPPED") -> dict:
    return to_wire(build_order_status_updated_event(
        {**customer(order_id), "oldStatus": "CONFIRMED", "newStatus": new_status, "trackingNumber": "TRK-1"}
    ))


def order_cancelled_event(order_id: str = "order-1") -> dict:
    return to_wire(build_order_cancelled_event(
        {**customer(order_id), "reason": "Out of stock", "cancelledBy": "SYSTEM", "refundAmount": 19.98}
    ))


