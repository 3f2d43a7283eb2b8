from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import List

from src.core.models import (
    GetQuotesResponse,
    MetricValue,
    Quote,
    QuoteId,
    QuoteSeriesId,
    UpsertQuoteRequest,
    UpsertQuotesResponse,
)
from src.core.test_data import MARKET_DATA_SCOPE, TUTORIAL_SCOPE
from src.core.tutorials.base import TutorialBase

QUOTE_DATE = datetime(2019, 4, 15, tzinfo=UTC)
QUOTE_KEY = "correlationId"
TIME_SERIES_DAYS = 30


def bank_a_mid_price_series() -> QuoteSeriesId:
    return QuoteSeriesId(
        provider="DataScope",
        price_source="BankA",
        instrument_id="BBG000B9XRY4",
        instrument_id_type="Figi",
        quote_type="Price",
        field="mid",
    )


class QuotesTutorial(TutorialBase):
    def add_quote(self, price: Decimal = Decimal("199.23")) -> UpsertQuotesResponse:
        request = UpsertQuoteRequest(
            quote_id=QuoteId(quote_series_id=bank_a_mid_price_series(), effective_at=QUOTE_DATE),
            metric_value=MetricValue(value=price, unit="USD"),
            lineage="InternalSystem",
        )
        return self.quotes_api.upsert_quotes(TUTORIAL_SCOPE, {QUOTE_KEY: request})

    def get_quote_for_single_day(self) -> GetQuotesResponse:
        return self.quotes_api.get_quotes(
            TUTORIAL_SCOPE,
            {QUOTE_KEY: bank_a_mid_price_series()},
            effective_at=QUOTE_DATE,
        )

    def get_time_series_quotes(self, days: int = TIME_SERIES_DAYS) -> List[Quote]:
        """One lookup per day from the quote date; each day contributes whatever it found."""
        series = QuoteSeriesId(
            provider="Client",
            instrument_id="BBG000DMBXR2",
            instrument_id_type="Figi",
            quote_type="Price",
            field="mid",
        )
        quotes: List[Quote] = []
        for offset in range(days):
            response = self.quotes_api.get_quotes(
                MARKET_DATA_SCOPE,
                {QUOTE_KEY: series},
                effective_at=QUOTE_DATE + timedelta(days=offset),
            )
            quotes.extend(response.values.values())
        return quotes
