"""
FILE: src/core/tutorials/bitemporal.py

Transactions booked in three batches, one of them back-dated, then listed as at the
system time of each batch.
"""

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Callable, List

from src.core.models import PortfolioHolding, Transaction, TransactionRequest
from src.core.test_data import TUTORIAL_SCOPE, build_transaction_request
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.infrastructure.platform import ApiFactory

logger = logging.getLogger(__name__)

CURRENCY = "GBP"
# After the back-dated buy (5 Jan), before the later one (8 Jan).
HOLDINGS_EFFECTIVE_AT = datetime(2018, 1, 6, tzinfo=UTC)


@dataclass(frozen=True)
class BitemporalResult:
    portfolio_code: str
    as_at_dates: List[datetime]
    transactions_as_at: List[List[Transaction]]
    latest_transactions: List[Transaction]
    holdings_as_at_first_batch: List[PortfolioHolding]
    latest_holdings: List[PortfolioHolding]


class BitemporalTutorial(TutorialBase):
    def __init__(
        self,
        api_factory: ApiFactory,
        pause_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(api_factory)
        self.instrument_ids: List[str] = []
        self.pause_seconds = pause_seconds
        self._sleep = sleep

    def set_up(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()

    def _buy(self, index: int, price: str, trade_date: datetime) -> TransactionRequest:
        return build_transaction_request(
            self.instrument_ids[index],
            Decimal("100"),
            Decimal(price),
            CURRENCY,
            trade_date,
            "Buy",
        )

    def _upsert_batch(
        self, portfolio_code: str, transactions: List[TransactionRequest]
    ) -> datetime:
        response = self.transaction_portfolios_api.upsert_transactions(
            TUTORIAL_SCOPE, portfolio_code, transactions
        )
        if response.version is None or response.version.as_at_date is None:
            raise AssertionError("transaction upsert returned no as-at date")
        # Keep each batch on a distinct system time.
        self._sleep(self.pause_seconds)
        return response.version.as_at_date

    def apply_bitemporal_portfolio_change(self) -> BitemporalResult:
        """Book three buys, a later buy, then a back-dated buy; list each as-at view.

        Holdings are also read on 6 Jan 2018 as at the first batch and as at now.
        """
        portfolio_code = self.create_transaction_portfolio(TUTORIAL_SCOPE)

        initial = self._upsert_batch(
            portfolio_code,
            [
                self._buy(0, "101", datetime(2018, 1, 1, tzinfo=UTC)),
                self._buy(1, "102", datetime(2018, 1, 2, tzinfo=UTC)),
                self._buy(2, "103", datetime(2018, 1, 3, tzinfo=UTC)),
            ],
        )
        later = self._upsert_batch(
            portfolio_code, [self._buy(3, "104", datetime(2018, 1, 8, tzinfo=UTC))]
        )
        back_dated = self._upsert_batch(
            portfolio_code, [self._buy(4, "105", datetime(2018, 1, 5, tzinfo=UTC))]
        )

        as_at_dates = [initial, later, back_dated]
        transactions_as_at = [
            self.transaction_portfolios_api.get_transactions(
                TUTORIAL_SCOPE, portfolio_code, as_at=as_at
            ).values
            for as_at in as_at_dates
        ]
        latest = self.transaction_portfolios_api.get_transactions(
            TUTORIAL_SCOPE, portfolio_code
        ).values
        # Only the latest view sees the back-dated buy.
        holdings_as_at_first_batch = self.transaction_portfolios_api.get_holdings(
            TUTORIAL_SCOPE, portfolio_code, effective_at=HOLDINGS_EFFECTIVE_AT, as_at=initial
        ).values
        latest_holdings = self.transaction_portfolios_api.get_holdings(
            TUTORIAL_SCOPE, portfolio_code, effective_at=HOLDINGS_EFFECTIVE_AT
        ).values
        logger.info(
            "tutorial.bitemporal.listed",
            extra={
                "extra_fields": {
                    "portfolio_code": portfolio_code,
                    "counts": [len(transactions) for transactions in transactions_as_at],
                }
            },
        )
        return BitemporalResult(
            portfolio_code=portfolio_code,
            as_at_dates=as_at_dates,
            transactions_as_at=transactions_as_at,
            latest_transactions=latest,
            holdings_as_at_first_batch=holdings_as_at_first_batch,
            latest_holdings=latest_holdings,
        )
