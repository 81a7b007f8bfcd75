"""Output sinks for streaming ledger events."""

from trade_ledger.sinks.kafka import KafkaEventSink, ProducerStats

__all__ = ["KafkaEventSink", "ProducerStats"]
