"""
FILE: src/core/tutorials/demo_instrument.py

Shared valuation and cash-flow flows for a single instrument. Subclasses supply the market
data an instrument type needs and what its portfolio cash flows should look like.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple
from uuid import uuid4

from src.core.instruments import LusidInstrument
from src.core.models import (
    Instrument,
    InstrumentCashFlow,
    ListAggregationResponse,
    PricingModel,
    Transaction,
    UpsertComplexMarketDataRequest,
    UpsertQuoteRequest,
)
from src.core.test_data import (
    EFFECTIVE_AT,
    build_instrument_upsert_request,
    build_quote_request,
    build_recipe_request,
    build_transaction_requests_for_luids,
    create_inline_valuation_request,
    create_valuation_request,
    new_instrument_id,
)
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.portfolio_cash_flows import (
    cash_flow_transactions_with_unique_ids,
    to_transaction_requests,
)
from src.core.validation import (
    check_pv_results_make_sense,
    validate_complex_market_data_upsert,
    validate_instrument_response,
    validate_quote_upsert,
    validate_upsert_instrument_response,
)

logger = logging.getLogger(__name__)

SIMPLE_STATIC_QUOTE_KEY = "UniqueKeyForDictionary"
CLIENT_INTERNAL = "ClientInternal"


@dataclass(frozen=True)
class LifecycleResult:
    """Cash flows booked back at expiry and the valuations either side of booking them."""

    cash_flows: List[Transaction]
    valuation_before_booking: ListAggregationResponse
    valuation_after_booking: ListAggregationResponse


class DemoInstrumentBase(TutorialBase, ABC):
    # Definition fields, dotted for nested ones, that must survive an upsert and read back.
    round_trip_fields: Tuple[str, ...] = ()

    @abstractmethod
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        """Upsert the market data needed to price `instrument` under `model`."""

    def create_and_upsert_instrument_resets(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        """Upsert reset fixings; only instruments with floating payments need any."""

    @abstractmethod
    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        """Fetch portfolio cash flows and check them against the instrument's schedule."""

    def upsert_quotes(self, scope: str, quote_requests: Dict[str, UpsertQuoteRequest]) -> None:
        response = self.quotes_api.upsert_quotes(scope, quote_requests)
        validate_quote_upsert(response, len(quote_requests))

    def upsert_complex_market_data(
        self, scope: str, requests: Dict[str, UpsertComplexMarketDataRequest]
    ) -> None:
        if not requests:
            return
        response = self.complex_market_data_api.upsert_complex_market_data(scope, requests)
        validate_complex_market_data_upsert(response, len(requests))

    def create_and_upsert_recipe(
        self,
        scope: str,
        model: PricingModel,
        window_valuation_on_instrument_start_end: bool = False,
    ) -> str:
        recipe_code = str(uuid4())
        request = build_recipe_request(
            recipe_code, scope, model, window_valuation_on_instrument_start_end
        )
        response = self.recipe_api.upsert_configuration_recipe(request)
        if response.value is None:
            raise AssertionError(f"recipe {recipe_code} upsert returned no value")
        return recipe_code

    def create_portfolio_and_instrument(
        self, scope: str, instrument: LusidInstrument
    ) -> Tuple[str, str]:
        """Create a portfolio holding one unit of `instrument`; returns (instrument id, code)."""
        portfolio_code = self.create_transaction_portfolio(scope, EFFECTIVE_AT)
        instrument_id = self._book_instrument_to_portfolio(instrument, scope, portfolio_code)
        return instrument_id, portfolio_code

    def _book_instrument_to_portfolio(
        self, instrument: LusidInstrument, scope: str, portfolio_code: str
    ) -> str:
        instrument_id = new_instrument_id(instrument)
        definitions = build_instrument_upsert_request([(instrument, instrument_id)])
        upsert_response = self.instruments_api.upsert_instruments(definitions)
        validate_upsert_instrument_response(upsert_response)

        luids = [value.lusid_instrument_id for value in upsert_response.values.values()]
        transactions = build_transaction_requests_for_luids(luids, EFFECTIVE_AT)
        self.transaction_portfolios_api.upsert_transactions(scope, portfolio_code, transactions)
        return instrument_id

    def _upsert_market_data_for_instrument(
        self, instrument: LusidInstrument, model: PricingModel, instrument_id: str, scope: str
    ) -> None:
        if model != "SimpleStatic":
            self.create_and_upsert_market_data(scope, model, instrument)
            return
        # Lookup pricing reads a quote under the ClientInternal id the instrument was booked with.
        quote_request = build_quote_request(
            SIMPLE_STATIC_QUOTE_KEY,
            instrument_id,
            CLIENT_INTERNAL,
            Decimal("100"),
            "USD",
            EFFECTIVE_AT,
            "Price",
        )
        self.upsert_quotes(scope, quote_request)
        # Accrued interest still needs resets even when the price is a lookup.
        self.create_and_upsert_instrument_resets(scope, model, instrument)

    def call_get_valuation_endpoint(
        self, instrument: LusidInstrument, model: PricingModel
    ) -> ListAggregationResponse:
        scope = str(uuid4())
        instrument_id, portfolio_code = self.create_portfolio_and_instrument(scope, instrument)
        self._upsert_market_data_for_instrument(instrument, model, instrument_id, scope)
        recipe_code = self.create_and_upsert_recipe(scope, model)

        valuation_request = create_valuation_request(
            scope, portfolio_code, recipe_code, EFFECTIVE_AT
        )
        result = self.aggregation_api.get_valuation(valuation_request)
        if len(result.data) < 1:
            raise AssertionError("valuation returned no rows")
        check_pv_results_make_sense(result, instrument.instrument_type)
        logger.info(
            "tutorial.valuation.completed",
            extra={
                "extra_fields": {
                    "instrument_type": instrument.instrument_type,
                    "model": model,
                    "rows": len(result.data),
                }
            },
        )

        self.recipe_api.delete_configuration_recipe(scope, recipe_code)
        self.portfolios_api.delete_portfolio(scope, portfolio_code)
        return result

    def call_inline_valuation_endpoint(
        self, instrument: LusidInstrument, model: PricingModel
    ) -> ListAggregationResponse:
        """Value the instrument without persisting it or booking it into a portfolio."""
        scope = str(uuid4())
        recipe_code = self.create_and_upsert_recipe(scope, model)
        self.create_and_upsert_market_data(scope, model, instrument)

        request = create_inline_valuation_request(scope, recipe_code, instrument, EFFECTIVE_AT)
        result = self.aggregation_api.get_valuation_of_weighted_instruments(request)
        if len(result.data) < 1:
            raise AssertionError("inline valuation returned no rows")
        check_pv_results_make_sense(result, instrument.instrument_type)

        self.recipe_api.delete_configuration_recipe(scope, recipe_code)
        return result

    def call_get_portfolio_cash_flows_endpoint(
        self, instrument: LusidInstrument, model: PricingModel
    ) -> List[InstrumentCashFlow]:
        scope = str(uuid4())
        instrument_id, portfolio_code = self.create_portfolio_and_instrument(scope, instrument)
        self.create_and_upsert_market_data(scope, model, instrument)
        recipe_code = self.create_and_upsert_recipe(scope, model)

        cash_flows = self.get_and_validate_portfolio_cash_flows(
            instrument, scope, portfolio_code, recipe_code, instrument_id
        )

        self.instruments_api.delete_instrument(CLIENT_INTERNAL, instrument_id)
        self.recipe_api.delete_configuration_recipe(scope, recipe_code)
        self.portfolios_api.delete_portfolio(scope, portfolio_code)
        return cash_flows

    def get_upsertable_cash_flows(
        self,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        effective_at: datetime,
        window_start: datetime,
        window_end: datetime,
    ) -> List[Transaction]:
        return self.transaction_portfolios_api.get_upsertable_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=effective_at,
            window_start=window_start,
            window_end=window_end,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values

    def book_cash_flows(
        self,
        scope: str,
        portfolio_code: str,
        cash_flows: List[Transaction],
        currency: Optional[str] = None,
    ) -> List[Transaction]:
        """Book upsertable cash flows back into the portfolio as cash; returns what was booked."""
        unique = cash_flow_transactions_with_unique_ids(cash_flows, currency)
        self.transaction_portfolios_api.upsert_transactions(
            scope, portfolio_code, to_transaction_requests(unique)
        )
        return unique

    def delete_lifecycle_entities(
        self, scope: str, recipe_code: str, instrument_id: str, portfolio_code: str
    ) -> None:
        self.recipe_api.delete_configuration_recipe(scope, recipe_code)
        self.instruments_api.delete_instrument(CLIENT_INTERNAL, instrument_id)
        self.portfolios_api.delete_portfolio(scope, portfolio_code)

    def instrument_creation_and_upsertion(
        self, instrument: LusidInstrument, delete: bool = True
    ) -> Instrument:
        """Upsert the instrument, read it back as of the upsert and return what was stored."""
        instrument_id = new_instrument_id(instrument)
        definitions = build_instrument_upsert_request([(instrument, instrument_id)])
        upsert_response = self.instruments_api.upsert_instruments(definitions)
        validate_upsert_instrument_response(upsert_response)

        upserted = next(iter(upsert_response.values.values()))
        as_at = upserted.version.as_at_date if upserted.version else None
        get_response = self.instruments_api.get_instruments(
            CLIENT_INTERNAL, [instrument_id], as_at=as_at
        )
        validate_instrument_response(get_response, instrument_id)

        retrieved = get_response.values[instrument_id]
        retrieved_type = _definition_type(retrieved)
        if retrieved_type != instrument.instrument_type:
            raise AssertionError(
                f"round-tripped instrument type {retrieved_type} != {instrument.instrument_type}"
            )
        if self.round_trip_fields:
            _check_round_trip_fields(instrument, retrieved, self.round_trip_fields)

        if delete:
            self.instruments_api.delete_instrument(CLIENT_INTERNAL, instrument_id)
        return retrieved


def _definition_type(instrument: Instrument) -> Optional[str]:
    definition = instrument.instrument_definition
    if definition is None:
        return None
    if isinstance(definition, dict):
        return definition.get("instrumentType")
    return definition.instrument_type


def _field_value(definition: Any, path: str) -> Any:
    value = definition
    for name in path.split("."):
        value = getattr(value, name)
    return value


def _check_round_trip_fields(
    instrument: LusidInstrument, retrieved: Instrument, fields: Tuple[str, ...]
) -> None:
    definition = retrieved.instrument_definition
    if isinstance(definition, dict):
        definition = type(instrument).model_validate(definition)
    for path in fields:
        expected = _field_value(instrument, path)
        actual = _field_value(definition, path)
        if actual != expected:
            raise AssertionError(f"round-tripped {path} {actual!r} != {expected!r}")
