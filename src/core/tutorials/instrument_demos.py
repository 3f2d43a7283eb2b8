from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Dict, List
from uuid import uuid4

from src.core.instruments import (
    Bond,
    ContractForDifference,
    EquityOption,
    FxForward,
    FxOption,
    LusidInstrument,
    SimpleInstrument,
    TermDeposit,
)
from src.core.models import (
    Instrument,
    InstrumentCashFlow,
    InstrumentDefinition,
    InstrumentIdValue,
    ListAggregationResponse,
    MetricValue,
    PricingModel,
    Property,
    PropertyValue,
    ResourceId,
    Transaction,
    UpsertComplexMarketDataRequest,
)
from src.core.test_data import (
    EFFECTIVE_AT,
    EXAMPLE_DISCOUNT_FACTORS_1,
    LUID_KEY,
    ON_EXERCISE_KEY,
    add_months,
    build_equity_quote_request,
    build_fx_rate_request,
    build_ois_curve_request,
    build_quote_request,
    build_rate_curve_request,
    build_transaction_requests_for_luids,
    constant_volatility_surface_request,
    create_valuation_request,
    new_instrument_id,
)
from src.core.tutorials.demo_instrument import (
    CLIENT_INTERNAL,
    DemoInstrumentBase,
    LifecycleResult,
)
from src.core.tutorials.setup import ensure_property_definition
from src.core.validation import (
    check_converted_pv_is_constant_across_dates,
    check_no_cash_positions,
    check_non_zero_pv_before_maturity_and_zero_after,
    check_pv_is_constant_across_dates,
    validate_instrument_response,
    validate_upsert_instrument_response,
)

CASH_FLOW_WINDOW_PADDING = timedelta(days=3)
WIDE_WINDOW_START = datetime(2000, 1, 1, 1, tzinfo=UTC)
WIDE_WINDOW_END = datetime(2050, 1, 1, 1, tzinfo=UTC)
USD_JPY_RATE = Decimal("150")


def _expect_cash_flow_count(cash_flows: List, expected: int) -> None:
    if len(cash_flows) != expected:
        raise AssertionError(f"expected {expected} cash flows, got {len(cash_flows)}")


def _expect_consideration_currencies(cash_flows: List[Transaction], expected: List[str]) -> None:
    currencies = [
        flow.total_consideration.currency if flow.total_consideration else None
        for flow in cash_flows
    ]
    if currencies != expected:
        raise AssertionError(f"expected cash flows in {expected}, got {currencies}")


def _cash_flow_date(cash_flows: List[Transaction]) -> datetime:
    cash_flow_date = cash_flows[0].transaction_date
    if cash_flow_date is None:
        raise AssertionError(f"cash flow {cash_flows[0].transaction_id} has no transaction date")
    return cash_flow_date


def _cash_luids(result: ListAggregationResponse) -> List[str]:
    luids = {row.get(LUID_KEY) for row in result.data}
    return sorted(luid for luid in luids if isinstance(luid, str) and luid.startswith("CCY_"))


def _fx_discount_curves() -> Dict[str, UpsertComplexMarketDataRequest]:
    return {
        "discount_curve_USD": build_rate_curve_request(
            EFFECTIVE_AT, "USD", "OIS", EXAMPLE_DISCOUNT_FACTORS_1
        ),
        "discount_curve_JPY": build_rate_curve_request(
            EFFECTIVE_AT, "JPY", "OIS", EXAMPLE_DISCOUNT_FACTORS_1
        ),
    }


class _NoCashFlowsMixin:
    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        return []


class EquityOptionDemo(DemoInstrumentBase):
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        option: EquityOption = instrument
        # Reset price of the underlying at expiry.
        self.upsert_quotes(
            scope,
            build_quote_request(
                "ACME", "ACME", "RIC", Decimal("135"), "USD", EFFECTIVE_AT, "Price"
            ),
        )
        # Physically settled options deliver the underlying, which then needs its own price.
        self.upsert_quotes(
            scope,
            build_quote_request(
                "ACME",
                "ACME",
                CLIENT_INTERNAL,
                Decimal("135"),
                "USD",
                datetime(2020, 12, 16, tzinfo=UTC),
                "Price",
            ),
        )

        requests: Dict[str, UpsertComplexMarketDataRequest] = {}
        if model != "ConstantTimeValueOfMoney":
            requests["discountCurve"] = build_ois_curve_request(EFFECTIVE_AT, "USD")
        if model == "BlackScholes":
            requests["BlackScholesVolSurface"] = constant_volatility_surface_request(
                EFFECTIVE_AT, option, model, Decimal("0.2")
            )
        if model == "Bachelier":
            requests["BachelierVolSurface"] = constant_volatility_surface_request(
                EFFECTIVE_AT, option, model, Decimal("10")
            )
        self.upsert_complex_market_data(scope, requests)

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        option: EquityOption = instrument
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=option.start_date - CASH_FLOW_WINDOW_PADDING,
            window_end=option.option_maturity_date + CASH_FLOW_WINDOW_PADDING,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        _expect_cash_flow_count(cash_flows, 1)
        return cash_flows

    def lifecycle_management(
        self, option: EquityOption, model: PricingModel = "ConstantTimeValueOfMoney"
    ) -> LifecycleResult:
        """Book the expiry cash flow back into the portfolio and check its PV is conserved.

        Before expiry the portfolio is worth the option; afterwards it is worth the cash flow,
        plus the delivered underlying when the option settles physically. Each valuation date
        should therefore carry the same total PV once the cash flow is booked.
        """
        physical = option.delivery_type == "Physical"
        window_start = add_months(option.start_date, -1)
        window_end = add_months(option.option_settlement_date, 1)

        scope = str(uuid4())
        instrument_id, portfolio_code = self.create_portfolio_and_instrument(scope, option)
        self.create_and_upsert_market_data(scope, model, option)
        recipe_code = self.create_and_upsert_recipe(
            scope, model, window_valuation_on_instrument_start_end=True
        )

        cash_flows = self.get_upsertable_cash_flows(
            scope,
            portfolio_code,
            recipe_code,
            option.option_settlement_date,
            window_start,
            window_end,
        )
        _expect_cash_flow_count(cash_flows, 1)
        _expect_consideration_currencies(cash_flows, [option.dom_ccy])
        cash_flow_date = _cash_flow_date(cash_flows)

        valuation_request = create_valuation_request(
            scope,
            portfolio_code,
            recipe_code,
            effective_at=cash_flow_date + timedelta(days=5),
            effective_from=cash_flow_date - timedelta(days=5),
            additional_request_keys=[ON_EXERCISE_KEY] if physical else None,
        )
        before = self.aggregation_api.get_valuation(valuation_request)
        check_no_cash_positions(before, option.dom_ccy)
        check_non_zero_pv_before_maturity_and_zero_after(before, option.option_maturity_date)

        booked = self.book_cash_flows(scope, portfolio_code, cash_flows, option.dom_ccy)
        if physical:
            self._book_delivered_underlying(
                scope, portfolio_code, option, before, cash_flow_date
            )

        after = self.aggregation_api.get_valuation(valuation_request)
        cash_luid = f"CCY_{option.dom_ccy}"
        if not any(row.get(LUID_KEY) != cash_luid for row in after.data):
            raise AssertionError(f"expected positions other than {cash_luid} after expiry")
        check_pv_is_constant_across_dates(after, tolerance=0.0)

        self.delete_lifecycle_entities(scope, recipe_code, instrument_id, portfolio_code)
        return LifecycleResult(
            cash_flows=booked, valuation_before_booking=before, valuation_after_booking=after
        )

    def _book_delivered_underlying(
        self,
        scope: str,
        portfolio_code: str,
        option: EquityOption,
        valuation: ListAggregationResponse,
        cash_flow_date: datetime,
    ) -> None:
        # Cash flows carry no instrument, so the underlying is read off the valuation.
        if not valuation.data or valuation.data[0].get(ON_EXERCISE_KEY) is None:
            raise AssertionError("valuation did not report the underlying delivered on exercise")

        underlying = InstrumentDefinition(
            name=option.code,
            identifiers={CLIENT_INTERNAL: InstrumentIdValue(value=option.code)},
        )
        upsert_response = self.instruments_api.upsert_instruments({option.code: underlying})
        validate_upsert_instrument_response(upsert_response)
        luids = [value.lusid_instrument_id for value in upsert_response.values.values()]
        self.transaction_portfolios_api.upsert_transactions(
            scope, portfolio_code, build_transaction_requests_for_luids(luids, cash_flow_date)
        )


class FxForwardDemo(DemoInstrumentBase):
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        self.upsert_quotes(
            scope, build_fx_rate_request("USD", "JPY", USD_JPY_RATE, EFFECTIVE_AT, EFFECTIVE_AT)
        )
        if model == "Discounting":
            self.upsert_complex_market_data(scope, _fx_discount_curves())

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        fx_forward: FxForward = instrument
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=WIDE_WINDOW_START,
            window_end=WIDE_WINDOW_END,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        # A deliverable forward settles both legs; an NDF settles the difference only.
        _expect_cash_flow_count(cash_flows, 1 if fx_forward.is_ndf else 2)
        return cash_flows

    def lifecycle_management(
        self, fx_forward: FxForward, model: PricingModel = "ConstantTimeValueOfMoney"
    ) -> LifecycleResult:
        """Book both settlement legs back as cash and check the USD value of the portfolio holds.

        The FX rate is held constant over the whole window, so the forward before maturity and
        the two cash balances after it should be worth the same once converted.
        """
        if fx_forward.is_ndf:
            raise ValueError("lifecycle management needs a deliverable FX forward")
        window_start = add_months(fx_forward.start_date, -1)
        window_end = add_months(fx_forward.maturity_date, 1)

        scope = str(uuid4())
        instrument_id, portfolio_code = self.create_portfolio_and_instrument(scope, fx_forward)
        self.upsert_quotes(
            scope,
            build_fx_rate_request(
                fx_forward.dom_ccy,
                fx_forward.fgn_ccy,
                USD_JPY_RATE,
                window_start,
                window_end,
                use_constant_fx_rate=True,
            ),
        )
        recipe_code = self.create_and_upsert_recipe(
            scope, model, window_valuation_on_instrument_start_end=True
        )

        cash_flows = self.get_upsertable_cash_flows(
            scope, portfolio_code, recipe_code, EFFECTIVE_AT, window_start, window_end
        )
        _expect_cash_flow_count(cash_flows, 2)
        _expect_consideration_currencies(cash_flows, [fx_forward.dom_ccy, fx_forward.fgn_ccy])
        if len({flow.transaction_date for flow in cash_flows}) != 1:
            raise AssertionError("both FX forward legs should settle on the same date")
        cash_flow_date = _cash_flow_date(cash_flows)

        valuation_request = create_valuation_request(
            scope,
            portfolio_code,
            recipe_code,
            effective_at=cash_flow_date + timedelta(days=5),
            effective_from=cash_flow_date - timedelta(days=5),
        )
        before = self.aggregation_api.get_valuation(valuation_request)
        check_no_cash_positions(before, fx_forward.dom_ccy)
        check_non_zero_pv_before_maturity_and_zero_after(before, fx_forward.maturity_date)

        booked = self.book_cash_flows(scope, portfolio_code, cash_flows)

        after = self.aggregation_api.get_valuation(valuation_request)
        check_converted_pv_is_constant_across_dates(
            after, {fx_forward.fgn_ccy: 1 / float(USD_JPY_RATE)}
        )

        self.delete_lifecycle_entities(scope, recipe_code, instrument_id, portfolio_code)
        return LifecycleResult(
            cash_flows=booked, valuation_before_booking=before, valuation_after_booking=after
        )


class FxOptionDemo(DemoInstrumentBase):
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        self.upsert_quotes(
            scope, build_fx_rate_request("USD", "JPY", USD_JPY_RATE, EFFECTIVE_AT, EFFECTIVE_AT)
        )
        requests: Dict[str, UpsertComplexMarketDataRequest] = {}
        if model != "ConstantTimeValueOfMoney":
            requests.update(_fx_discount_curves())
        if model == "BlackScholes":
            requests["VolSurface"] = constant_volatility_surface_request(
                EFFECTIVE_AT, instrument, model, Decimal("0.2")
            )
        if model == "Bachelier":
            requests["VolSurface"] = constant_volatility_surface_request(
                EFFECTIVE_AT, instrument, model, Decimal("10")
            )
        self.upsert_complex_market_data(scope, requests)

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        fx_option: FxOption = instrument
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=fx_option.start_date - CASH_FLOW_WINDOW_PADDING,
            window_end=fx_option.option_maturity_date + CASH_FLOW_WINDOW_PADDING,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        _expect_cash_flow_count(cash_flows, 2 if fx_option.is_delivery_not_cash else 1)
        return cash_flows

    def lifecycle_management(
        self, option: FxOption, model: PricingModel = "ConstantTimeValueOfMoney"
    ) -> LifecycleResult:
        """Book the option's settlement cash flows back and check the portfolio PV holds.

        A cash settled option pays its payoff in one currency; a delivered one exchanges both
        currencies. Spot is held constant around settlement so the PV should not move.
        """
        window_start = add_months(option.start_date, -1)
        window_end = add_months(option.option_settlement_date, 1)
        expected_flows = 2 if option.is_delivery_not_cash else 1

        scope = str(uuid4())
        instrument_id, portfolio_code = self.create_portfolio_and_instrument(scope, option)
        self.create_and_upsert_market_data(scope, model, option)
        recipe_code = self.create_and_upsert_recipe(
            scope, model, window_valuation_on_instrument_start_end=True
        )

        effective_at = option.option_settlement_date
        self.upsert_quotes(
            scope,
            build_fx_rate_request(
                option.dom_ccy,
                option.fgn_ccy,
                USD_JPY_RATE,
                effective_at - timedelta(days=5),
                effective_at + timedelta(days=5),
                use_constant_fx_rate=True,
            ),
        )
        cash_flows = self.get_upsertable_cash_flows(
            scope, portfolio_code, recipe_code, effective_at, window_start, window_end
        )
        _expect_cash_flow_count(cash_flows, expected_flows)
        cash_flow_date = _cash_flow_date(cash_flows)

        valuation_request = create_valuation_request(
            scope,
            portfolio_code,
            recipe_code,
            effective_at=cash_flow_date + timedelta(days=4),
            effective_from=cash_flow_date - timedelta(days=4),
        )
        before = self.aggregation_api.get_valuation(valuation_request)
        check_no_cash_positions(before, option.dom_ccy)
        check_non_zero_pv_before_maturity_and_zero_after(before, option.option_settlement_date)

        booked = self.book_cash_flows(scope, portfolio_code, cash_flows)

        after = self.aggregation_api.get_valuation(valuation_request)
        cash_luids = _cash_luids(after)
        if len(cash_luids) != expected_flows:
            raise AssertionError(
                f"expected {expected_flows} cash currencies after settlement, got {cash_luids}"
            )
        check_pv_is_constant_across_dates(after, tolerance=1e-10)

        self.delete_lifecycle_entities(scope, recipe_code, instrument_id, portfolio_code)
        return LifecycleResult(
            cash_flows=booked, valuation_before_booking=before, valuation_after_booking=after
        )


class BondDemo(DemoInstrumentBase):
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        if model == "ConstantTimeValueOfMoney":
            return
        self.upsert_complex_market_data(
            scope,
            {
                "discountCurve": build_rate_curve_request(
                    EFFECTIVE_AT, "USD", "OIS", EXAMPLE_DISCOUNT_FACTORS_1
                )
            },
        )

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        bond: Bond = instrument
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=bond.start_date - CASH_FLOW_WINDOW_PADDING,
            window_end=bond.maturity_date + CASH_FLOW_WINDOW_PADDING,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        # Zero coupon bonds pay once at maturity; coupon bonds pay semi-annually plus principal.
        _expect_cash_flow_count(cash_flows, 1 if bond.is_zero_coupon() else 13)
        if not all(flow.amount is not None and flow.amount > 0 for flow in cash_flows):
            raise AssertionError("bond cash flows must all be positive")
        return cash_flows


class TermDepositDemo(DemoInstrumentBase):
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        if model != "Discounting":
            return
        self.upsert_complex_market_data(
            scope,
            {
                "discount_curve_USD": build_rate_curve_request(
                    EFFECTIVE_AT, "USD", "OIS", EXAMPLE_DISCOUNT_FACTORS_1
                )
            },
        )

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        term_deposit: TermDeposit = instrument
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=term_deposit.start_date - CASH_FLOW_WINDOW_PADDING,
            window_end=term_deposit.maturity_date + CASH_FLOW_WINDOW_PADDING,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        _expect_cash_flow_count(cash_flows, 1)
        return cash_flows


class _NoMarketDataMixin:
    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        # Only priced by lookup, whose quote the shared valuation flow upserts.
        return None


class _WholeLifeCashFlowsMixin:
    expected_cash_flows = 2

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=WIDE_WINDOW_START,
            window_end=WIDE_WINDOW_END,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        _expect_cash_flow_count(cash_flows, self.expected_cash_flows)
        return cash_flows


class EquityDemo(_NoMarketDataMixin, _NoCashFlowsMixin, DemoInstrumentBase):
    pass


class FutureDemo(_NoMarketDataMixin, _WholeLifeCashFlowsMixin, DemoInstrumentBase):
    round_trip_fields = (
        "start_date",
        "ref_spot_price",
        "maturity_date",
        "contracts",
        "contract_details.description",
        "contract_details.contract_month",
        "underlying.instrument_type",
    )


class ForwardRateAgreementDemo(_NoMarketDataMixin, _NoCashFlowsMixin, DemoInstrumentBase):
    round_trip_fields = ("start_date", "maturity_date", "fixing_date", "fra_rate", "dom_ccy")


class CfdDemo(DemoInstrumentBase):
    round_trip_fields = ("pay_ccy", "code", "reference_rate", "start_date", "underlying_ccy")

    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        cfd: ContractForDifference = instrument
        # Daily prices of the underlying, keyed by the CFD's own code.
        self.upsert_quotes(
            scope,
            build_equity_quote_request(
                cfd.code,
                datetime(2019, 2, 7, tzinfo=UTC),
                datetime(2020, 4, 3, tzinfo=UTC),
                instrument_id_type="RIC",
            ),
        )
        if model == "ConstantTimeValueOfMoney":
            return
        self.upsert_complex_market_data(
            scope,
            {
                "discount_curve_USD": build_rate_curve_request(
                    EFFECTIVE_AT, "USD", "OIS", EXAMPLE_DISCOUNT_FACTORS_1
                )
            },
        )

    def get_and_validate_portfolio_cash_flows(
        self,
        instrument: LusidInstrument,
        scope: str,
        portfolio_code: str,
        recipe_code: str,
        instrument_id: str,
    ) -> List[InstrumentCashFlow]:
        cfd: ContractForDifference = instrument
        if cfd.maturity_date is None:
            raise ValueError("open-ended CFDs have no cash flow window")
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            scope,
            portfolio_code,
            effective_at=EFFECTIVE_AT,
            window_start=cfd.start_date - CASH_FLOW_WINDOW_PADDING,
            window_end=cfd.maturity_date + CASH_FLOW_WINDOW_PADDING,
            recipe_id_scope=scope,
            recipe_id_code=recipe_code,
        ).values
        _expect_cash_flow_count(cash_flows, 1)
        if cash_flows[0].currency != cfd.pay_ccy:
            raise AssertionError(
                f"expected the CFD to pay in {cfd.pay_ccy}, got {cash_flows[0].currency}"
            )
        return cash_flows


class ExoticDemo(_NoMarketDataMixin, _WholeLifeCashFlowsMixin, DemoInstrumentBase):
    round_trip_fields = ("content", "instrument_format")


class SimpleInstrumentDemo(_NoCashFlowsMixin, DemoInstrumentBase):
    property_scope = "ibor"
    property_code = "dividendYield"

    def create_and_upsert_market_data(
        self, scope: str, model: PricingModel, instrument: LusidInstrument
    ) -> None:
        raise NotImplementedError("simple instruments are not valued in the tutorials")

    @property
    def dividend_yield_key(self) -> str:
        return f"Instrument/{self.property_scope}/{self.property_code}"

    def upsert_with_property(
        self, instrument: SimpleInstrument, dividend_yield: Decimal = Decimal("0.88")
    ) -> Instrument:
        """Upsert the instrument carrying a numeric dividend yield property and read both back."""
        ensure_property_definition(
            self.property_definitions_api,
            "Instrument",
            self.property_scope,
            self.property_code,
            display_name="Dividend Yield",
            data_type_id=ResourceId(scope="system", code="number"),
        )

        instrument_id = new_instrument_id(instrument)
        definition = InstrumentDefinition(
            name="Microsoft",
            identifiers={CLIENT_INTERNAL: InstrumentIdValue(value=instrument_id)},
            definition=instrument,
            properties=[
                Property(
                    key=self.dividend_yield_key,
                    value=PropertyValue(metric_value=MetricValue(value=dividend_yield)),
                )
            ],
        )
        validate_upsert_instrument_response(
            self.instruments_api.upsert_instruments({instrument_id: definition})
        )

        get_response = self.instruments_api.get_instruments(
            CLIENT_INTERNAL, [instrument_id], property_keys=[self.dividend_yield_key]
        )
        validate_instrument_response(get_response, instrument_id)
        retrieved = get_response.values[instrument_id]

        self.instruments_api.delete_instrument(CLIENT_INTERNAL, instrument_id)
        return retrieved
