import logging
from typing import Optional

from aiokafka import AIOKafkaProducer
from aiokafka.admin import AIOKafkaAdminClient, NewTopic
from aiokafka.errors import TopicAlreadyExistsError
from aiokafka.structs import RecordMetadata

from order_service.core.config import settings

logger = logging.getLogger(__name__)


class KafkaBroker:
    def __init__(self) -> None:
        self.producer: Optional[AIOKafkaProducer] = None

    @property
    def is_connected(self) -> bool:
        return self.producer is not None

    async def connect(self) -> None:
        await self.ensure_topic()

        # Idempotence pins acks=all and one in-flight batch per partition, so
        # producer retries never write duplicate records.
        self.producer = AIOKafkaProducer(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            client_id=settings.kafka_client_id,
            enable_idempotence=True,
            acks="all",
            request_timeout_ms=settings.producer_request_timeout_ms,
            retry_backoff_ms=settings.producer_retry_backoff_ms,
        )
        await self.producer.start()
        logger.info(f"Connected to Kafka at {settings.kafka_bootstrap_servers}")

    async def ensure_topic(self) -> None:
        admin = AIOKafkaAdminClient(
            bootstrap_servers=settings.kafka_bootstrap_servers,
            client_id=f"{settings.kafka_client_id}-admin",
        )
        await admin.start()
        try:
            existing_topics = await admin.list_topics()
            if settings.order_events_topic in existing_topics:
                logger.info(f"Topic {settings.order_events_topic} already exists")
                return

            await admin.create_topics([
                NewTopic(
                    name=settings.order_events_topic,
                    num_partitions=settings.topic_partitions,
                    replication_factor=settings.topic_replication_factor,
                    topic_configs={
                        "cleanup.policy": settings.topic_cleanup_policy,
                        "retention.ms": str(settings.topic_retention_ms),
                    },
                )
            ])
            logger.info(f"Created topic {settings.order_events_topic}")
        except TopicAlreadyExistsError:
            logger.info(f"Topic {settings.order_events_topic} was created concurrently")
        finally:
            await admin.close()

    async def close(self) -> None:
        if self.producer:
            await self.producer.stop()
            self.producer = None
        logger.info("Disconnected from Kafka")

    async def send(
        self,
        topic: str,
        value: bytes,
        key: str,
        headers: list[tuple[str, bytes]] | None = None
    ) -> RecordMetadata:
        if not self.producer:
            raise RuntimeError("Producer is not initialized")

        return await self.producer.send_and_wait(
            topic,
            value=value,
            key=key.encode(),
            headers=headers or [],
        )


broker = KafkaBroker()
