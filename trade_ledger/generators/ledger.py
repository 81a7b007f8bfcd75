"""Counterparty and trade request generators.

Every request produced here passes field validation, so generated data
can be pushed straight through the lifecycle engines.
"""

import re
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterator

from trade_ledger.generators.base import BaseGenerator
from trade_ledger.models import (
    CounterpartyStatus,
    CounterpartyType,
    CreateCounterpartyRequest,
    CreateTradeRequest,
    TradeType,
)
from trade_ledger.validation import COUNTERPARTY_NAME_LENGTH, MAX_ADDRESS_LENGTH


class CounterpartyGenerator(BaseGenerator):
    """Generate counterparty requests with unique codes."""

    TYPES = list(CounterpartyType)
    TYPE_WEIGHTS = [0.10, 0.45, 0.45]

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        super().__init__(seed, locale)
        self._codes: set[str] = set()

    def generate(
        self,
        counterparty_type: CounterpartyType | None = None,
        status: CounterpartyStatus = CounterpartyStatus.ACTIVE,
    ) -> CreateCounterpartyRequest:
        """Generate a single counterparty request.

        Parameters
        ----------
        counterparty_type : CounterpartyType | None
            Fixed type, or None to pick a weighted random one.
        status : CounterpartyStatus
            Initial status.

        Returns
        -------
        CreateCounterpartyRequest
            Request with a code not produced before by this generator.
        """
        if counterparty_type is None:
            counterparty_type = self.rng.choices(self.TYPES, weights=self.TYPE_WEIGHTS, k=1)[0]

        if counterparty_type == CounterpartyType.INDIVIDUAL:
            name = self.fake.name()
        else:
            name = self.fake.company()
        name = name[: COUNTERPARTY_NAME_LENGTH[1]]

        domain = self.fake.domain_name()
        return CreateCounterpartyRequest(
            name=name,
            code=self._unique_code(name),
            type=counterparty_type,
            status=status,
            email=f"trading@{domain}",
            phone_number=self.fake.numerify("+1-555-####"),
            address=self.fake.address().replace("\n", ", ")[:MAX_ADDRESS_LENGTH],
        )

    def generate_batch(self, count: int) -> list[CreateCounterpartyRequest]:
        return [self.generate() for _ in range(count)]

    def _unique_code(self, name: str) -> str:
        # Global Investment Bank -> GIB001
        initials = "".join(word[0] for word in re.findall(r"[A-Za-z]+", name)).upper()
        prefix = (initials + "XXX")[:3]
        sequence = 1
        while f"{prefix}{sequence:03d}" in self._codes:
            sequence += 1
        code = f"{prefix}{sequence:03d}"
        self._codes.add(code)
        return code


class TradeRequestGenerator(BaseGenerator):
    """Generate trade requests against existing counterparties.

    Settlement follows the T+2 convention, so ``settlement_date`` is
    never before ``trade_date``.
    """

    # Listed instruments with realistic price ranges
    INSTRUMENTS = [
        {"instrument": "AAPL", "price_range": (150, 230)},
        {"instrument": "MSFT", "price_range": (300, 450)},
        {"instrument": "GOOGL", "price_range": (120, 190)},
        {"instrument": "AMZN", "price_range": (130, 200)},
        {"instrument": "NVDA", "price_range": (80, 140)},
        {"instrument": "JPM", "price_range": (150, 220)},
        {"instrument": "XOM", "price_range": (95, 125)},
        {"instrument": "US10Y", "price_range": (95, 102)},
    ]

    TRADE_TYPES = list(TradeType)
    SETTLEMENT_DAYS = 2

    def __init__(
        self,
        seed: int | None = None,
        locale: str = "en_US",
        reference_prefix: str = "TRD",
        today: date | None = None,
    ) -> None:
        super().__init__(seed, locale)
        self.reference_prefix = reference_prefix
        self.today = today or date.today()
        self._sequence = 0

    def generate(
        self,
        counterparty_id: int,
        trade_date: date | None = None,
        max_age_days: int = 30,
    ) -> CreateTradeRequest:
        """Generate a single trade request.

        Parameters
        ----------
        counterparty_id : int
            Counterparty the trade is booked against.
        trade_date : date | None
            Fixed trade date, or None for a random date within
            ``max_age_days`` of today.
        max_age_days : int
            Oldest random trade date, in days before today.

        Returns
        -------
        CreateTradeRequest
            Generated request.
        """
        listing = self.rng.choice(self.INSTRUMENTS)
        price_min, price_max = listing["price_range"]
        price = self.money(price_min, price_max)
        quantity = Decimal(self.rng.randint(1, 50) * 10)

        if trade_date is None:
            trade_date = self.past_date(self.today, max_age_days)

        self._sequence += 1
        return CreateTradeRequest(
            trade_reference=f"{self.reference_prefix}-{trade_date.year}-{self._sequence:04d}",
            counterparty_id=counterparty_id,
            instrument=listing["instrument"],
            trade_type=self.rng.choice(self.TRADE_TYPES),
            quantity=quantity,
            price=price,
            trade_date=trade_date,
            settlement_date=trade_date + timedelta(days=self.SETTLEMENT_DAYS),
            currency="USD",
            notes=self.fake.sentence(nb_words=6) if self.chance(0.3) else None,
        )

    def generate_stream(self, counterparty_ids: list[int]) -> Iterator[CreateTradeRequest]:
        """Generate an endless stream of requests spread over the counterparties."""
        while True:
            yield self.generate(self.rng.choice(counterparty_ids))
