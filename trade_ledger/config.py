"""Configuration management for trade-ledger."""

from dataclasses import dataclass, field
from typing import Any

from trade_ledger.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")


@dataclass
class KafkaConfig:
    """Kafka producer configuration for lifecycle event streaming."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    batch_size: int = 16384
    linger_ms: int = 5
    compression: str = "snappy"
    retries: int = 3
    topic_prefix: str = "dev.ledger"
    enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "batch.size": self.batch_size,
            "linger.ms": self.linger_ms,
            "compression.type": self.compression,
            "retries": self.retries,
        }


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "ledger"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class EngineConfig:
    """Tunables for the lifecycle engines."""

    default_page_size: int = 20
    max_page_size: int = 100
    recent_days: int = 7

    def __post_init__(self) -> None:
        if self.default_page_size < 1:
            raise ConfigurationError("default_page_size must be at least 1")
        if self.max_page_size < self.default_page_size:
            raise ConfigurationError("max_page_size must be >= default_page_size")
        if self.recent_days < 0:
            raise ConfigurationError("recent_days cannot be negative")


@dataclass
class SampleDataConfig:
    """Configuration for seeding a ledger with sample data."""

    num_counterparties: int = 3
    trades_per_counterparty: int = 2
    seed: int | None = None
    locale: str = "en_US"


@dataclass
class TradeLedgerConfig:
    """Main configuration for trade-ledger."""

    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    sample_data: SampleDataConfig = field(default_factory=SampleDataConfig)
    store_backend: str = "memory"
    seed_sample_data: bool = False
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend '{self.store_backend}', expected one of {STORE_BACKENDS}"
            )

    @classmethod
    def from_env(cls) -> "TradeLedgerConfig":
        """Create config from environment variables."""
        import os

        try:
            kafka = KafkaConfig(
                bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
                acks=os.getenv("KAFKA_ACKS", "all"),
                topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", "dev.ledger"),
                enabled=os.getenv("KAFKA_ENABLED", "false").lower() == "true",
            )

            postgres = PostgresConfig(
                host=os.getenv("POSTGRES_HOST", "localhost"),
                port=int(os.getenv("POSTGRES_PORT", "5432")),
                database=os.getenv("POSTGRES_DB", "ledger"),
                user=os.getenv("POSTGRES_USER", "postgres"),
                password=os.getenv("POSTGRES_PASSWORD", "postgres"),
            )

            engine = EngineConfig(
                default_page_size=int(os.getenv("TRADE_LEDGER_PAGE_SIZE", "20")),
                max_page_size=int(os.getenv("TRADE_LEDGER_MAX_PAGE_SIZE", "100")),
                recent_days=int(os.getenv("TRADE_LEDGER_RECENT_DAYS", "7")),
            )

            seed = os.getenv("TRADE_LEDGER_SEED")
            sample_data = SampleDataConfig(
                num_counterparties=int(os.getenv("TRADE_LEDGER_SAMPLE_COUNTERPARTIES", "3")),
                trades_per_counterparty=int(os.getenv("TRADE_LEDGER_SAMPLE_TRADES", "2")),
                seed=int(seed) if seed else None,
                locale=os.getenv("TRADE_LEDGER_LOCALE", "en_US"),
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting: {e}") from e

        return cls(
            kafka=kafka,
            postgres=postgres,
            engine=engine,
            sample_data=sample_data,
            store_backend=os.getenv("TRADE_LEDGER_STORE", "memory"),
            seed_sample_data=os.getenv("TRADE_LEDGER_SEED_SAMPLE_DATA", "false").lower() == "true",
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
