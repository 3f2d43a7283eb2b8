from datetime import UTC, datetime
from decimal import Decimal
from typing import List, Tuple
from uuid import uuid4

from src.core.models import (
    AggregateSpec,
    ConfigurationRecipe,
    ListAggregationResponse,
    MarketContext,
    MarketContextSuppliers,
    MarketOptions,
    MetricValue,
    PortfolioEntityId,
    QuoteId,
    QuoteSeriesId,
    ResourceId,
    UpsertQuoteRequest,
    UpsertRecipeRequest,
    ValuationRequest,
    ValuationSchedule,
)
from src.core.test_data import (
    INSTRUMENT_NAME_KEY,
    TUTORIAL_SCOPE,
    VALUATION_DATE_KEY,
    VALUATION_PV_KEY,
    build_transaction_request,
)
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader

VALUATION_DATE = datetime(2022, 6, 10, tzinfo=UTC)
RECIPE_SCOPE = "some-recipe-scope"
RECIPE_CODE = "DataScope_Recipe"
SUM_PV_KEY = f"Sum({VALUATION_PV_KEY})"


class ValuationTutorial(TutorialBase):
    """Values a three-equity portfolio off DataScope quotes, grouped by instrument name."""

    def run_valuation(self) -> ListAggregationResponse:
        instrument_ids = InstrumentLoader(self.api_factory).load_instruments()
        portfolio_code = self.create_transaction_portfolio(TUTORIAL_SCOPE)

        trades: List[Tuple[str, Decimal]] = sorted(
            [
                (instrument_ids[0], Decimal("101")),
                (instrument_ids[1], Decimal("102")),
                (instrument_ids[2], Decimal("103")),
            ]
        )
        self.transaction_portfolios_api.upsert_transactions(
            TUTORIAL_SCOPE,
            portfolio_code,
            [
                build_transaction_request(
                    instrument_id, Decimal("100.0"), price, "GBP", VALUATION_DATE, "Buy"
                )
                for instrument_id, price in trades
            ],
        )

        quote_scope = str(uuid4())
        recipe = ConfigurationRecipe(
            scope=RECIPE_SCOPE,
            code=RECIPE_CODE,
            market=MarketContext(
                suppliers=MarketContextSuppliers(equity="DataScope"),
                options=MarketOptions(
                    default_scope=quote_scope,
                    default_supplier="DataScope",
                    default_instrument_code_type="LusidInstrumentId",
                ),
            ),
        )
        self.recipe_api.upsert_configuration_recipe(
            UpsertRecipeRequest(configuration_recipe=recipe)
        )

        quotes = {
            str(uuid4()): UpsertQuoteRequest(
                quote_id=QuoteId(
                    quote_series_id=QuoteSeriesId(
                        provider="DataScope",
                        instrument_id=instrument_id,
                        instrument_id_type="LusidInstrumentId",
                        quote_type="Price",
                        field="mid",
                    ),
                    effective_at=VALUATION_DATE,
                ),
                metric_value=MetricValue(value=Decimal(price), unit="GBP"),
            )
            for instrument_id, price in zip(instrument_ids[:3], (100, 200, 300))
        }
        self.quotes_api.upsert_quotes(quote_scope, quotes)

        request = ValuationRequest(
            recipe_id=ResourceId(scope=RECIPE_SCOPE, code=RECIPE_CODE),
            metrics=[
                AggregateSpec(key=INSTRUMENT_NAME_KEY, op="Value"),
                AggregateSpec(key=VALUATION_PV_KEY, op="Proportion"),
                AggregateSpec(key=VALUATION_PV_KEY, op="Sum"),
                AggregateSpec(key=VALUATION_DATE_KEY, op="Value"),
            ],
            valuation_schedule=ValuationSchedule(effective_at=VALUATION_DATE),
            group_by=[INSTRUMENT_NAME_KEY],
            portfolio_entity_ids=[PortfolioEntityId(scope=TUTORIAL_SCOPE, code=portfolio_code)],
        )
        return self.aggregation_api.get_valuation(request)
