from datetime import UTC, datetime
from decimal import Decimal
from typing import List, Tuple

from src.core.models import HoldingAdjustment, PortfolioHolding
from src.core.test_data import (
    TUTORIAL_SCOPE,
    build_adjust_holdings_request,
    build_cash_funds_in_adjust_holdings_request,
    build_cash_funds_in_transaction_request,
    build_transaction_request,
)
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.infrastructure.platform import ApiFactory

CURRENCY = "GBP"


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=UTC)


class HoldingsTutorial(TutorialBase):
    def __init__(self, api_factory: ApiFactory) -> None:
        super().__init__(api_factory)
        self.instrument_ids: List[str] = []

    def set_up(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()

    def _sorted_holdings(
        self, portfolio_code: str, effective_at: datetime
    ) -> List[PortfolioHolding]:
        holdings = self.transaction_portfolios_api.get_holdings(
            TUTORIAL_SCOPE, portfolio_code, effective_at=effective_at
        ).values
        return sorted(holdings, key=lambda holding: holding.instrument_uid)

    def get_holdings(self) -> List[PortfolioHolding]:
        """Cash plus five buys over two dates; holdings on T+10 sorted by instrument uid."""
        day_t1 = _utc(2018, 1, 1)
        day_t_plus_5 = _utc(2018, 1, 5)
        ids = self.instrument_ids
        portfolio_code = self.create_transaction_portfolio(TUTORIAL_SCOPE)

        transactions = [
            build_cash_funds_in_transaction_request(Decimal("100000"), CURRENCY, day_t1),
            build_transaction_request(
                ids[0], Decimal("100.0"), Decimal("101.0"), CURRENCY, day_t1, "Buy"
            ),
            build_transaction_request(
                ids[1], Decimal("100.0"), Decimal("102.0"), CURRENCY, day_t1, "Buy"
            ),
            build_transaction_request(
                ids[2], Decimal("100.0"), Decimal("103.0"), CURRENCY, day_t1, "Buy"
            ),
            build_transaction_request(
                ids[1], Decimal("100.0"), Decimal("104.0"), CURRENCY, day_t_plus_5, "Buy"
            ),
            build_transaction_request(
                ids[3], Decimal("100.0"), Decimal("105.0"), CURRENCY, day_t_plus_5, "Buy"
            ),
        ]
        self.transaction_portfolios_api.upsert_transactions(
            TUTORIAL_SCOPE, portfolio_code, transactions
        )
        return self._sorted_holdings(portfolio_code, _utc(2018, 1, 10))

    def set_target_holdings(self) -> Tuple[List[PortfolioHolding], List[HoldingAdjustment]]:
        """Set day-one holdings, trade on day two, then read holdings and adjustments back."""
        day1 = _utc(2018, 1, 1)
        day2 = _utc(2018, 1, 5)
        instrument1, instrument2, instrument3 = self.instrument_ids[:3]
        portfolio_code = self.create_transaction_portfolio(TUTORIAL_SCOPE)

        self.transaction_portfolios_api.set_holdings(
            TUTORIAL_SCOPE,
            portfolio_code,
            day1,
            [
                build_cash_funds_in_adjust_holdings_request(CURRENCY, Decimal("100000.0")),
                build_adjust_holdings_request(
                    instrument1, Decimal("100.0"), Decimal("101.0"), CURRENCY, day1
                ),
                build_adjust_holdings_request(
                    instrument2, Decimal("100.0"), Decimal("102.0"), CURRENCY, day1
                ),
            ],
        )
        self.transaction_portfolios_api.upsert_transactions(
            TUTORIAL_SCOPE,
            portfolio_code,
            [
                build_transaction_request(
                    instrument1, Decimal("100.0"), Decimal("104.0"), CURRENCY, day2, "Buy"
                ),
                build_transaction_request(
                    instrument3, Decimal("100.0"), Decimal("103.0"), CURRENCY, day2, "Buy"
                ),
            ],
        )

        holdings = self._sorted_holdings(portfolio_code, day2)
        adjustments = self.transaction_portfolios_api.list_holdings_adjustments(
            TUTORIAL_SCOPE, portfolio_code
        ).values
        return holdings, adjustments
