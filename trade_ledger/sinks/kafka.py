"""Kafka sink streaming lifecycle events to Kafka topics."""

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from confluent_kafka import Producer

from trade_ledger.config import KafkaConfig
from trade_ledger.events import LifecycleEvent
from trade_ledger.exceptions import SinkError
from trade_ledger.models import Event
from trade_ledger.serialization import to_dict

logger = logging.getLogger(__name__)

DEFAULT_SOURCE = "trade-ledger"

# Entity name to topic suffix
TOPIC_SUFFIXES = {
    "trade": "trades",
    "counterparty": "counterparties",
}


@dataclass
class ProducerStats:
    """Track producer delivery statistics."""

    sent: int = 0
    delivered: int = 0
    failed: int = 0
    skipped: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def success_rate(self) -> float:
        """Calculate success rate."""
        total = self.delivered + self.failed
        return self.delivered / total if total > 0 else 0.0

    @property
    def throughput(self) -> float:
        """Calculate events per second achieved."""
        if self.start_time is None or self.end_time is None:
            return 0.0
        duration = self.end_time - self.start_time
        return self.sent / duration if duration > 0 else 0.0


class KafkaEventSink:
    """Publish lifecycle events as JSON envelopes, one topic per entity.

    Trade events go to ``<topic_prefix>.trades`` and counterparty events to
    ``<topic_prefix>.counterparties``, keyed by entity id so all events of
    one record land on the same partition. Timing samples are not streamed.
    """

    def __init__(self, config: KafkaConfig | str, source: str = DEFAULT_SOURCE) -> None:
        """Initialize Kafka sink.

        Parameters
        ----------
        config : KafkaConfig | str
            Kafka configuration or bootstrap servers string.
        source : str
            Value of the envelope ``source`` field.
        """
        if isinstance(config, str):
            config = KafkaConfig(bootstrap_servers=config)

        self.config = config
        self.source = source
        self.producer = self._create_producer()
        self.stats = ProducerStats(start_time=time.time())

    def _create_producer(self) -> Producer:
        """Create Kafka producer with configuration."""
        try:
            return Producer(self.config.to_dict())
        except Exception as e:
            raise SinkError(f"Failed to create Kafka producer: {e}") from e

    def topic_for(self, event: LifecycleEvent) -> str:
        """Topic receiving events of the event's entity."""
        # trade.created -> dev.ledger.trades
        return f"{self.config.topic_prefix}.{TOPIC_SUFFIXES[event.event_type.entity]}"

    def on_event(self, event: LifecycleEvent) -> None:
        if event.event_type.is_timing:
            self.stats.skipped += 1
            return
        self.send(self.topic_for(event), self.to_envelope(event), key=event.subject)

    def to_envelope(self, event: LifecycleEvent) -> Event:
        """Wrap a lifecycle event in the streaming envelope."""
        metadata: dict[str, Any] = {"tags": dict(event.tags)}
        if event.value is not None:
            metadata["value"] = event.value
        return Event(
            event_id=str(uuid.uuid4()),
            event_type=event.event_type.value,
            event_time=event.occurred_at,
            source=self.source,
            subject=event.subject or "",
            data=dict(event.data),
            metadata=metadata,
        )

    def _delivery_callback(self, err: Any, msg: Any) -> None:
        """Handle delivery reports."""
        if err:
            self.stats.failed += 1
            logger.error("Delivery failed: %s", err)
        else:
            self.stats.delivered += 1
            logger.debug("Delivered to %s[%d]@%d", msg.topic(), msg.partition(), msg.offset())

    def send(self, topic: str, record: Any, key: str | None = None) -> None:
        """Send a single record to a Kafka topic as JSON."""
        value = json.dumps(to_dict(record), ensure_ascii=False, default=str).encode("utf-8")

        self.producer.produce(
            topic=topic,
            key=key.encode("utf-8") if key else None,
            value=value,
            callback=self._delivery_callback,
        )
        self.stats.sent += 1
        self.producer.poll(0)

    def flush(self, timeout: float = 30.0) -> int:
        """Flush pending messages, returning how many are still queued."""
        remaining = self.producer.flush(timeout)
        if remaining:
            logger.warning("%d messages still queued after flush", remaining)
        return remaining

    def close(self) -> None:
        """Flush and close the producer."""
        self.flush()
        self.stats.end_time = time.time()
        logger.info(
            "Kafka sink closed: sent=%d, delivered=%d, failed=%d",
            self.stats.sent,
            self.stats.delivered,
            self.stats.failed,
        )
