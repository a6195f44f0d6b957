import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Optional

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError
from aiokafka.structs import ConsumerRecord, TopicPartition

from order_events.exceptions import ParseError
from notification_service.core.config import settings
from notification_service.services.handler import OrderEventHandler

logger = logging.getLogger(__name__)


class ConsumerState(str, Enum):
    STOPPED = "STOPPED"
    CONNECTING = "CONNECTING"
    SUBSCRIBED = "SUBSCRIBED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    STOPPING = "STOPPING"


def create_kafka_consumer() -> AIOKafkaConsumer:
    return AIOKafkaConsumer(
        bootstrap_servers=settings.kafka_bootstrap_servers,
        client_id=settings.kafka_client_id,
        group_id=settings.consumer_group_id,
        enable_auto_commit=False,
        auto_offset_reset=settings.auto_offset_reset,
        session_timeout_ms=settings.session_timeout_ms,
        heartbeat_interval_ms=settings.heartbeat_interval_ms,
        max_poll_interval_ms=settings.max_poll_interval_ms,
        max_partition_fetch_bytes=settings.max_partition_fetch_bytes,
    )


def parse_record(record: ConsumerRecord) -> dict[str, Any]:
    """Decode a record value into an envelope with broker metadata appended."""
    try:
        event = json.loads(record.value.decode("utf-8"))
    except (AttributeError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ParseError(f"Message parsing failed: {e}") from e

    if not isinstance(event, dict):
        raise ParseError(f"Message parsing failed: expected a JSON object, got {type(event).__name__}")

    metadata = event.get("metadata")
    if metadata is not None and not isinstance(metadata, dict):
        raise ParseError(f"Message parsing failed: metadata must be an object, got {type(metadata).__name__}")

    headers = {
        key: value.decode("utf-8", errors="replace") if value is not None else None
        for key, value in (record.headers or ())
    }
    metadata = {
        **(metadata or {}),
        "headers": headers,
        "key": record.key.decode("utf-8", errors="replace") if record.key is not None else None,
        "partition": record.partition,
        "offset": record.offset,
        "timestamp": record.timestamp,
        "receivedAt": datetime.now(timezone.utc).isoformat(),
    }
    return {**event, "metadata": metadata}


class OrderEventConsumer:
    """Consumes the order-events topic as a member of the notification group.

    Records are handled one at a time in offset order. The offset is
    committed only after the handler returns; when it raises, the partition
    is rewound to the failed record so the broker delivers it again.
    """

    def __init__(
        self,
        handler: OrderEventHandler,
        consumer_factory: Callable[[], AIOKafkaConsumer] = create_kafka_consumer,
        topics: Optional[list[str]] = None,
        poll_timeout_ms: int = settings.poll_timeout_ms
    ) -> None:
        self.handler = handler
        self.consumer_factory = consumer_factory
        self.topics = topics or [settings.order_events_topic]
        self.group_id = settings.consumer_group_id
        self.poll_timeout_ms = poll_timeout_ms

        self.state = ConsumerState.STOPPED
        self.consumer: Optional[AIOKafkaConsumer] = None
        # Local liveness stamp; the group heartbeat itself is sent by aiokafka
        self.last_liveness_check: Optional[float] = None
        self.stats = {"processed": 0, "failed": 0, "parse_errors": 0, "skipped": 0}
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self.state != ConsumerState.STOPPED:
            logger.warning(f"Consumer is already {self.state.value}")
            return

        self.state = ConsumerState.CONNECTING
        self.consumer = self.consumer_factory()
        try:
            await self.consumer.start()
            self.consumer.subscribe(topics=self.topics)
        except Exception:
            logger.error("Failed to start Kafka consumer", exc_info=True)
            self.state = ConsumerState.STOPPED
            self.consumer = None
            raise

        self.state = ConsumerState.SUBSCRIBED
        logger.info(f"Subscribed to topics {', '.join(self.topics)} as group {self.group_id}")

        self.state = ConsumerState.RUNNING
        self._task = asyncio.create_task(self._consume_loop())
        self._task.add_done_callback(self._on_loop_exit)

    async def stop(self) -> None:
        if self.state in (ConsumerState.STOPPED, ConsumerState.STOPPING):
            return

        logger.info("Stopping Kafka consumer")
        self.state = ConsumerState.STOPPING

        # The loop checks the state between records, so the in-flight
        # record is always allowed to finish before we disconnect.
        if self._task:
            await asyncio.wait([self._task])
            self._task = None

        if self.consumer:
            await self.consumer.stop()
            self.consumer = None

        self.state = ConsumerState.STOPPED
        logger.info("Kafka consumer stopped")

    async def pause(self) -> None:
        if self.state != ConsumerState.RUNNING or not self.consumer:
            return
        # The loop keeps polling while paused so the group membership stays
        # alive; paused partitions simply return no records.
        self.consumer.pause(*self.consumer.assignment())
        self.state = ConsumerState.PAUSED
        logger.info("Kafka consumer paused")

    async def resume(self) -> None:
        if self.state != ConsumerState.PAUSED or not self.consumer:
            return
        self.consumer.resume(*self.consumer.paused())
        self.state = ConsumerState.RUNNING
        logger.info("Kafka consumer resumed")

    def is_healthy(self) -> bool:
        return (
            self.state == ConsumerState.RUNNING
            and self.consumer is not None
            and bool(self.consumer.subscription())
            and self._task is not None
            and not self._task.done()
        )

    def get_stats(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "topics": self.topics,
            "group_id": self.group_id,
            "loop_alive": self._task is not None and not self._task.done(),
            "last_liveness_check": (
                datetime.fromtimestamp(self.last_liveness_check, timezone.utc).isoformat()
                if self.last_liveness_check else None
            ),
            **self.stats,
        }

    async def _consume_loop(self) -> None:
        while self._is_active():
            try:
                batches = await self.consumer.getmany(timeout_ms=self.poll_timeout_ms)
                for tp, records in batches.items():
                    await self._process_batch(tp, records)
            except KafkaError as e:
                logger.error(f"Kafka error in consumer loop: {type(e).__name__}: {e}", exc_info=True)
                await asyncio.sleep(self.poll_timeout_ms / 1000)

    async def _process_batch(self, tp: TopicPartition, records: list[ConsumerRecord]) -> None:
        for record in records:
            if self.state != ConsumerState.RUNNING:
                # Paused or stopping: rewind so the unprocessed tail is fetched again
                self.consumer.seek(tp, record.offset)
                return

            try:
                handled = await self.process_record(tp, record)
            except KafkaError:
                self.consumer.seek(tp, record.offset)
                raise
            except Exception as e:
                self.stats["skipped"] += 1
                logger.error(
                    f"Skipping record {tp.topic}[{tp.partition}]@{record.offset}: {type(e).__name__}: {e}",
                    exc_info=True
                )
                continue

            if not handled:
                # Later records in this partition wait for the redelivery
                return

    async def process_record(self, tp: TopicPartition, record: ConsumerRecord) -> bool:
        """Handle one record; return False when its partition was rewound."""
        started = time.monotonic()
        try:
            event = parse_record(record)
        except ParseError as e:
            self.stats["parse_errors"] += 1
            logger.error(
                f"Dropping unparseable record {tp.topic}[{tp.partition}]@{record.offset}: {e}"
            )
            return True

        logger.info(
            f"Received {event.get('type')} from {tp.topic}[{tp.partition}]@{record.offset}"
        )

        await self._check_liveness()

        try:
            await self.handler.handle(event)
        except Exception as e:
            self.stats["failed"] += 1
            logger.error(
                f"Failed to process record {tp.topic}[{tp.partition}]@{record.offset} "
                f"after {(time.monotonic() - started) * 1000:.0f}ms, scheduling redelivery: {e}"
            )
            self.consumer.seek(tp, record.offset)
            return False

        await self.consumer.commit({tp: record.offset + 1})
        self.stats["processed"] += 1
        logger.info(
            f"Processed record {tp.topic}[{tp.partition}]@{record.offset} "
            f"in {(time.monotonic() - started) * 1000:.0f}ms"
        )
        return True

    async def _check_liveness(self) -> None:
        # aiokafka's coordinator heartbeats from its own task; yielding here
        # lets it run before a potentially slow handler call.
        self.last_liveness_check = time.time()
        await asyncio.sleep(0)

    def _on_loop_exit(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Consumer loop exited: {type(exc).__name__}: {exc}", exc_info=exc)

    def _is_active(self) -> bool:
        return self.state in (ConsumerState.RUNNING, ConsumerState.PAUSED)
