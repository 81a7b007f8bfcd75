"""Base generator class for sample-data generators."""

from __future__ import annotations

import random
from abc import ABC
from datetime import date, timedelta
from decimal import Decimal

from faker import Faker


class BaseGenerator(ABC):
    """Base class for all sample-data generators.

    Each generator owns its Faker instance and its own ``random.Random``,
    both seeded from ``seed``, so two generators never disturb each other
    or the global ``random`` state.

    Parameters
    ----------
    seed : int | None
        Random seed for reproducibility.
    locale : str
        Faker locale (default ``en_US``).
    """

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        self.fake = Faker(locale)
        self.rng = random.Random(seed)
        if seed is not None:
            self.fake.seed_instance(seed)

    def chance(self, probability: float) -> bool:
        return self.rng.random() < probability

    def money(self, low: float, high: float) -> Decimal:
        """Random amount in ``[low, high]`` with two decimal places."""
        return Decimal(str(round(self.rng.uniform(low, high), 2)))

    def past_date(self, today: date, max_age_days: int) -> date:
        """Random date between ``today - max_age_days`` and ``today``."""
        return today - timedelta(days=self.rng.randint(0, max_age_days))
