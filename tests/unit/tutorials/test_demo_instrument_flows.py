from datetime import timedelta
from decimal import Decimal

import pytest

from src.core.instrument_examples import (
    create_example_bond,
    create_example_cfd,
    create_example_equity,
    create_example_equity_option,
    create_example_exotic,
    create_example_forward_rate_agreement,
    create_example_future,
    create_example_fx_forward,
    create_example_simple_instrument,
    create_example_zero_coupon_bond,
)
from src.core.test_data import VALUATION_PV_KEY
from src.core.tutorials import (
    BondDemo,
    CfdDemo,
    EquityDemo,
    EquityOptionDemo,
    ExoticDemo,
    ForwardRateAgreementDemo,
    FutureDemo,
    FxForwardDemo,
    SimpleInstrumentDemo,
)
from tests.factories import (
    instrument_payload,
    resource_list,
    route_families,
    stub_valuation_backend,
)


def _stub_valuation_result(stub, pv=Decimal("101.5"), inline=False):
    route = r"aggregation/\$valuationinlined" if inline else r"aggregation/\$valuation"
    stub.on("POST", route, {"data": [{VALUATION_PV_KEY: float(pv)}]})


def _positive_cash_flows(count):
    return resource_list(
        [
            {"paymentDate": "2021-01-04T00:00:00Z", "amount": 2.5, "currency": "USD"}
            for _ in range(count)
        ]
    )


def test_bond_valuation_books_prices_and_cleans_up(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform)

    result = BondDemo(api_factory).call_get_valuation_endpoint(
        create_example_bond(), "Discounting"
    )

    assert result.data[0][VALUATION_PV_KEY] == Decimal("101.5")
    assert route_families(stub_platform) == [
        "POST transactionportfolios",
        "POST instruments",
        "POST transactionportfolios",
        "POST complexmarketdata",
        "POST recipes",
        "POST aggregation",
        "DELETE recipes",
        "DELETE portfolios",
    ]

    scope = stub_platform.calls[0].path.split("/")[1]
    transactions = stub_platform.calls[2].body
    assert transactions[0]["instrumentIdentifiers"] == {
        "Instrument/default/LusidInstrumentId": "LUID_00000001"
    }
    market_data = stub_platform.calls[3]
    assert market_data.path == f"complexmarketdata/{scope}"
    assert market_data.body["discountCurve"]["marketDataId"]["marketAsset"] == "USD/USDOIS"
    recipe = stub_platform.calls[4].body["configurationRecipe"]
    assert recipe["scope"] == scope
    assert recipe["pricing"]["options"]["modelSelection"] == {
        "library": "Lusid",
        "model": "Discounting",
    }
    valuation = stub_platform.calls[5].body
    assert valuation["recipeId"] == {"scope": scope, "code": recipe["code"]}
    assert valuation["portfolioEntityIds"][0]["scope"] == scope


def test_constant_time_value_of_money_needs_no_market_data(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform)

    BondDemo(api_factory).call_get_valuation_endpoint(
        create_example_bond(), "ConstantTimeValueOfMoney"
    )

    assert "POST complexmarketdata" not in route_families(stub_platform)


def test_simple_static_equity_is_priced_off_a_client_internal_quote(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform)

    EquityDemo(api_factory).call_get_valuation_endpoint(create_example_equity(), "SimpleStatic")

    upserted_id = stub_platform.calls[1].body["upsertIdForEquity"]["identifiers"]
    quote = stub_platform.last_call("POST", r"quotes/[^/]+").body["UniqueKeyForDictionary"]
    assert quote["quoteId"]["quoteSeriesId"]["instrumentIdType"] == "ClientInternal"
    assert quote["quoteId"]["quoteSeriesId"]["instrumentId"] == (
        upserted_id["ClientInternal"]["value"]
    )
    assert quote["metricValue"] == {"value": 100, "unit": "USD"}


def test_zero_pv_aborts_before_cleanup(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform, pv=Decimal("0"))

    with pytest.raises(AssertionError, match="non-zero PV"):
        BondDemo(api_factory).call_get_valuation_endpoint(create_example_bond(), "Discounting")

    assert stub_platform.calls_to("DELETE", ".+") == []


def test_fx_forward_allows_a_negative_inline_pv(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform, pv=Decimal("-3.25"), inline=True)

    result = FxForwardDemo(api_factory).call_inline_valuation_endpoint(
        create_example_fx_forward(), "Discounting"
    )

    assert result.data[0][VALUATION_PV_KEY] == Decimal("-3.25")
    assert route_families(stub_platform) == [
        "POST recipes",
        "POST quotes",
        "POST complexmarketdata",
        "POST aggregation",
        "DELETE recipes",
    ]
    quotes = stub_platform.calls[1].body
    assert set(quotes) == {"day_0_fx_rate", "day_0_inverseFx_rate"}
    assert set(stub_platform.calls[2].body) == {"discount_curve_USD", "discount_curve_JPY"}


def test_black_scholes_option_gets_a_curve_and_a_vol_surface(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)

    EquityOptionDemo(api_factory).create_and_upsert_market_data(
        "scope-1", "BlackScholes", create_example_equity_option()
    )

    quote_calls = stub_platform.calls_to("POST", "quotes/scope-1")
    assert [list(call.body) for call in quote_calls] == [["ACME"], ["ACME"]]
    assert [
        call.body["ACME"]["quoteId"]["quoteSeriesId"]["instrumentIdType"] for call in quote_calls
    ] == ["RIC", "ClientInternal"]
    market_data = stub_platform.last_call("POST", "complexmarketdata/scope-1").body
    assert set(market_data) == {"discountCurve", "BlackScholesVolSurface"}
    surface = market_data["BlackScholesVolSurface"]["marketData"]
    assert surface["marketDataType"] == "EquityVolSurfaceData"
    assert surface["quotes"] == [{"quoteType": "LogNormalVol", "value": 0.2}]


@pytest.mark.parametrize(
    "instrument,flow_count",
    [(create_example_bond(), 13), (create_example_zero_coupon_bond(), 1)],
)
def test_bond_cash_flows_match_the_schedule(stub_platform, api_factory, instrument, flow_count):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET", r"transactionportfolios/[^/]+/[^/]+/cashflows", _positive_cash_flows(flow_count)
    )

    flows = BondDemo(api_factory).call_get_portfolio_cash_flows_endpoint(
        instrument, "Discounting"
    )

    assert len(flows) == flow_count
    assert route_families(stub_platform)[-3:] == [
        "DELETE instruments",
        "DELETE recipes",
        "DELETE portfolios",
    ]
    call = stub_platform.last_call("GET", r"transactionportfolios/[^/]+/[^/]+/cashflows")
    window_start = instrument.start_date - timedelta(days=3)
    assert call.query_value("windowStart") == window_start.isoformat()


def test_unexpected_cash_flow_count_fails(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET", r"transactionportfolios/[^/]+/[^/]+/cashflows", _positive_cash_flows(12)
    )

    with pytest.raises(AssertionError, match="expected 13 cash flows, got 12"):
        BondDemo(api_factory).call_get_portfolio_cash_flows_endpoint(
            create_example_bond(), "Discounting"
        )


def _echo_instrument_lookup(instrument_type):
    def lookup(call):
        instrument_id = call.body[0]
        payload = instrument_payload(
            "LUID_00000001",
            identifiers={"ClientInternal": instrument_id},
            definition={"instrumentType": instrument_type, "domCcy": "USD"},
        )
        return 200, {"values": {instrument_id: payload}, "failed": {}}

    return lookup


def test_instrument_round_trip_reads_back_as_of_the_upsert(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on("POST", r"instruments/\$get", _echo_instrument_lookup("FxForward"))

    retrieved = FxForwardDemo(api_factory).instrument_creation_and_upsertion(
        create_example_fx_forward()
    )

    assert retrieved.lusid_instrument_id == "LUID_00000001"
    lookup = stub_platform.last_call("POST", r"instruments/\$get")
    assert lookup.query_value("identifierType") == "ClientInternal"
    assert lookup.query_value("asAt") == "2024-01-02T03:04:05+00:00"
    assert lookup.body[0].startswith("FxForward")
    assert stub_platform.last_call("DELETE", r"instruments/.+").path == (
        f"instruments/ClientInternal/{lookup.body[0]}"
    )


def test_instrument_round_trip_rejects_a_different_type(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on("POST", r"instruments/\$get", _echo_instrument_lookup("Bond"))

    with pytest.raises(AssertionError, match="round-tripped instrument type Bond"):
        FxForwardDemo(api_factory).instrument_creation_and_upsertion(
            create_example_fx_forward(), delete=False
        )


def test_simple_instrument_carries_a_dividend_yield(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET",
        "propertydefinitions/Instrument/ibor/dividendYield",
        {"key": "Instrument/ibor/dividendYield"},
    )
    stub_platform.on("POST", r"instruments/\$get", _echo_instrument_lookup("SimpleInstrument"))

    SimpleInstrumentDemo(api_factory).upsert_with_property(create_example_simple_instrument())

    upsert = stub_platform.last_call("POST", "instruments").body
    (definition,) = upsert.values()
    assert definition["name"] == "Microsoft"
    assert definition["properties"] == [
        {
            "key": "Instrument/ibor/dividendYield",
            "value": {"metricValue": {"value": 0.88}},
        }
    ]
    lookup = stub_platform.last_call("POST", r"instruments/\$get")
    assert lookup.query_values("propertyKeys") == ["Instrument/ibor/dividendYield"]
    assert stub_platform.calls_to("POST", "propertydefinitions") == []


def _echo_upserted_definition(stub, **overrides):
    """Read back whatever definition was last upserted, with `overrides` applied on the wire."""

    def lookup(call):
        instrument_id = call.body[0]
        (upserted,) = stub.last_call("POST", "instruments").body.values()
        definition = {**upserted["definition"], **overrides}
        payload = instrument_payload(
            "LUID_00000001",
            identifiers={"ClientInternal": instrument_id},
            definition=definition,
        )
        return 200, {"values": {instrument_id: payload}, "failed": {}}

    return lookup


@pytest.mark.parametrize(
    "demo_type,instrument",
    [
        (FutureDemo, create_example_future()),
        (ForwardRateAgreementDemo, create_example_forward_rate_agreement()),
        (CfdDemo, create_example_cfd()),
        (ExoticDemo, create_example_exotic()),
    ],
)
def test_definition_fields_survive_the_round_trip(
    stub_platform, api_factory, demo_type, instrument
):
    stub_valuation_backend(stub_platform)
    stub_platform.on("POST", r"instruments/\$get", _echo_upserted_definition(stub_platform))

    retrieved = demo_type(api_factory).instrument_creation_and_upsertion(instrument)

    assert retrieved.lusid_instrument_id == "LUID_00000001"
    assert route_families(stub_platform) == [
        "POST instruments",
        "POST instruments",
        "DELETE instruments",
    ]


def test_future_round_trip_compares_nested_contract_details(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    future = create_example_future()
    details = future.contract_details.to_wire()
    details["description"] = "Brent future"
    stub_platform.on(
        "POST",
        r"instruments/\$get",
        _echo_upserted_definition(stub_platform, contractDetails=details),
    )

    with pytest.raises(AssertionError, match="round-tripped contract_details.description"):
        FutureDemo(api_factory).instrument_creation_and_upsertion(future, delete=False)


def test_forward_rate_agreement_round_trip_compares_the_rate(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "POST", r"instruments/\$get", _echo_upserted_definition(stub_platform, fraRate=0.06)
    )

    with pytest.raises(AssertionError, match="round-tripped fra_rate"):
        ForwardRateAgreementDemo(api_factory).instrument_creation_and_upsertion(
            create_example_forward_rate_agreement()
        )


@pytest.mark.parametrize(
    "demo_type,instrument",
    [
        (FutureDemo, create_example_future()),
        (ForwardRateAgreementDemo, create_example_forward_rate_agreement()),
        (ExoticDemo, create_example_exotic()),
    ],
)
def test_lookup_priced_instruments_need_only_their_quote(
    stub_platform, api_factory, demo_type, instrument
):
    stub_valuation_backend(stub_platform)
    _stub_valuation_result(stub_platform)

    demo_type(api_factory).call_get_valuation_endpoint(instrument, "SimpleStatic")

    assert route_families(stub_platform) == [
        "POST transactionportfolios",
        "POST instruments",
        "POST transactionportfolios",
        "POST quotes",
        "POST recipes",
        "POST aggregation",
        "DELETE recipes",
        "DELETE portfolios",
    ]


@pytest.mark.parametrize("demo_type", [FutureDemo, ExoticDemo])
def test_whole_life_cash_flows_are_read_over_a_wide_window(
    stub_platform, api_factory, demo_type
):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET", r"transactionportfolios/[^/]+/[^/]+/cashflows", _positive_cash_flows(2)
    )
    instrument = create_example_future() if demo_type is FutureDemo else create_example_exotic()

    flows = demo_type(api_factory).call_get_portfolio_cash_flows_endpoint(
        instrument, "SimpleStatic"
    )

    assert len(flows) == 2
    call = stub_platform.last_call("GET", r"transactionportfolios/[^/]+/[^/]+/cashflows")
    assert call.query_value("windowStart") == "2000-01-01T01:00:00+00:00"
    assert call.query_value("windowEnd") == "2050-01-01T01:00:00+00:00"
    assert call.query_value("effectiveAt") == "2020-01-02T00:00:00+00:00"


def test_forward_rate_agreement_cash_flows_are_not_requested(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)

    flows = ForwardRateAgreementDemo(api_factory).call_get_portfolio_cash_flows_endpoint(
        create_example_forward_rate_agreement(), "SimpleStatic"
    )

    assert flows == []
    assert stub_platform.calls_to("GET", ".+") == []


def test_cfd_market_data_is_a_daily_price_series_and_a_curve(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)

    CfdDemo(api_factory).create_and_upsert_market_data(
        "scope-1", "Discounting", create_example_cfd()
    )

    quotes = stub_platform.last_call("POST", "quotes/scope-1").body
    # One price a day from 2019-02-07 to 2020-04-03 inclusive.
    assert len(quotes) == 422
    first = quotes["day_0_equity_quote"]
    assert first["quoteId"]["quoteSeriesId"]["instrumentId"] == "some-id"
    assert first["quoteId"]["quoteSeriesId"]["instrumentIdType"] == "RIC"
    assert first["quoteId"]["effectiveAt"] == "2019-02-07T00:00:00+00:00"
    assert first["metricValue"] == {"value": 100, "unit": "USD"}
    assert quotes["day_421_equity_quote"]["metricValue"]["value"] == 521
    market_data = stub_platform.last_call("POST", "complexmarketdata/scope-1").body
    assert set(market_data) == {"discount_curve_USD"}


def test_cfd_under_constant_time_value_of_money_needs_no_curve(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)

    CfdDemo(api_factory).create_and_upsert_market_data(
        "scope-1", "ConstantTimeValueOfMoney", create_example_cfd()
    )

    assert route_families(stub_platform) == ["POST quotes"]


def test_cfd_pays_once_in_its_pay_currency(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET", r"transactionportfolios/[^/]+/[^/]+/cashflows", _positive_cash_flows(1)
    )
    cfd = create_example_cfd()

    flows = CfdDemo(api_factory).call_get_portfolio_cash_flows_endpoint(
        cfd, "ConstantTimeValueOfMoney"
    )

    assert [flow.currency for flow in flows] == ["USD"]
    call = stub_platform.last_call("GET", r"transactionportfolios/[^/]+/[^/]+/cashflows")
    assert call.query_value("windowEnd") == (cfd.maturity_date + timedelta(days=3)).isoformat()


def test_cfd_cash_flow_in_another_currency_fails(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    stub_platform.on(
        "GET",
        r"transactionportfolios/[^/]+/[^/]+/cashflows",
        resource_list([{"paymentDate": "2026-01-02T00:00:00Z", "amount": 4, "currency": "EUR"}]),
    )

    with pytest.raises(AssertionError, match="expected the CFD to pay in USD, got EUR"):
        CfdDemo(api_factory).call_get_portfolio_cash_flows_endpoint(
            create_example_cfd(), "ConstantTimeValueOfMoney"
        )
