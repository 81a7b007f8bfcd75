"""Pre-built ledger scenarios."""

from trade_ledger.scenarios.sample_data import SampleDataScenario

__all__ = ["SampleDataScenario"]
