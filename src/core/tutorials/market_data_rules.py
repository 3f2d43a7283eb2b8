"""
FILE: src/core/tutorials/market_data_rules.py

Market data specific rules take priority over the generic key rules of a recipe. Two recipes
value the same USD equity option: one only knows the generic scope, the other adds a specific
rule routing USD equity option price lookups to an override scope.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Optional

from src.core.instruments import EquityOption
from src.core.models import (
    ConfigurationRecipe,
    DependencySourceFilter,
    InlineValuationRequest,
    MarketContext,
    MarketDataKeyRule,
    MarketDataSpecificRule,
    MarketOptions,
    PricingContext,
    ResourceId,
    UpsertRecipeRequest,
    ValuationSchedule,
    VendorModelRule,
    WeightedInstrument,
)
from src.core.test_data import VALUATION_PV_KEY, add_months, build_quote_request, valuation_spec
from src.core.tutorials.base import TutorialBase
from src.core.validation import validate_quote_upsert

RECIPE_SCOPE = "DemoMarketDataSpecificRules"
GENERIC_SCOPE = f"{RECIPE_SCOPE}genericScope"
SPECIFIC_SCOPE = f"{RECIPE_SCOPE}specificScope"
VALUATION_DATE = datetime(2019, 1, 1, tzinfo=UTC)


@dataclass(frozen=True)
class MarketDataRulesResult:
    pv_with_no_specific_rule: Optional[Decimal]
    pv_with_specific_rule: Optional[Decimal]


def tsla_call_option() -> EquityOption:
    return EquityOption(
        start_date=add_months(VALUATION_DATE, -1),
        option_maturity_date=add_months(VALUATION_DATE, 1),
        option_settlement_date=add_months(VALUATION_DATE, 1),
        delivery_type="Cash",
        option_type="Call",
        strike=Decimal("90"),
        dom_ccy="USD",
        underlying_identifier="RIC",
        code="TSLA",
    )


class MarketDataRulesTutorial(TutorialBase):
    def _upsert_spot(self, scope: str, key: str, price: Decimal) -> None:
        quotes = build_quote_request(key, "TSLA", "RIC", price, "USD", VALUATION_DATE, "Price")
        validate_quote_upsert(self.quotes_api.upsert_quotes(scope, quotes), len(quotes))

    def _upsert_recipe(self, recipe: ConfigurationRecipe) -> None:
        response = self.recipe_api.upsert_configuration_recipe(
            UpsertRecipeRequest(configuration_recipe=recipe)
        )
        if response.value is None:
            raise AssertionError(f"recipe {recipe.code} upsert returned no value")

    def _value_option(self, recipe_code: str, instrument: EquityOption) -> Optional[Decimal]:
        request = InlineValuationRequest(
            recipe_id=ResourceId(scope=RECIPE_SCOPE, code=recipe_code),
            metrics=valuation_spec(),
            valuation_schedule=ValuationSchedule(effective_at=VALUATION_DATE),
            instruments=[
                WeightedInstrument(
                    quantity=Decimal("1"), holding_identifier="myOption", instrument=instrument
                )
            ],
        )
        result = self.aggregation_api.get_valuation_of_weighted_instruments(request)
        if result.aggregation_failures:
            raise AssertionError(f"aggregation failures: {result.aggregation_failures}")
        return result.data[0].get(VALUATION_PV_KEY)

    def demo_market_data_specific_rules(self) -> MarketDataRulesResult:
        instrument = tsla_call_option()
        self._upsert_spot(GENERIC_SCOPE, "TSLA-fallback", Decimal("100"))
        self._upsert_spot(SPECIFIC_SCOPE, "TSLA-override", Decimal("120"))

        # Intrinsic value only, so the PV is spot minus strike.
        pricing = PricingContext(
            model_rules=[
                VendorModelRule(
                    supplier="Lusid",
                    model_name="ConstantTimeValueOfMoney",
                    instrument_type="EquityOption",
                    parameters="{}",
                )
            ]
        )
        generic_rule = MarketDataKeyRule(
            key="Quote.RIC.*",
            supplier="Lusid",
            data_scope=GENERIC_SCOPE,
            quote_type="Price",
            field="mid",
        )
        specific_rule = MarketDataSpecificRule(
            key="Quote.RIC.*",
            supplier="Lusid",
            data_scope=SPECIFIC_SCOPE,
            quote_type="Price",
            field="mid",
            dependency_source_filter=DependencySourceFilter(
                instrument_type="EquityOption", dom_ccy="USD"
            ),
        )

        without_specific = ConfigurationRecipe(
            scope=RECIPE_SCOPE,
            code="WithNoSpecificRules",
            market=MarketContext(
                options=MarketOptions(default_scope=GENERIC_SCOPE),
                market_rules=[generic_rule],
            ),
            pricing=pricing,
            description=f"Should use market data contained in {GENERIC_SCOPE}",
        )
        with_specific = ConfigurationRecipe(
            scope=RECIPE_SCOPE,
            code="ContainsSpecificRules",
            market=MarketContext(
                options=MarketOptions(default_scope=GENERIC_SCOPE),
                market_rules=[generic_rule],
                specific_rules=[specific_rule],
            ),
            pricing=pricing,
            description=(
                f"Should override the market data contained in {GENERIC_SCOPE} "
                f"with a quote contained in {SPECIFIC_SCOPE}"
            ),
        )
        self._upsert_recipe(without_specific)
        self._upsert_recipe(with_specific)

        return MarketDataRulesResult(
            pv_with_no_specific_rule=self._value_option(without_specific.code, instrument),
            pv_with_specific_rule=self._value_option(with_specific.code, instrument),
        )
