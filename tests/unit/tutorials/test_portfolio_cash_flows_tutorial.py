from decimal import Decimal

import pytest

from src.core.instrument_examples import create_example_bond, create_example_fx_forward
from src.core.models import Transaction
from src.core.tutorials import PortfolioCashFlowsTutorial
from src.core.tutorials.portfolio_cash_flows import (
    cash_flow_transactions_with_unique_ids,
    to_transaction_requests,
)
from tests.factories import TransactionStore, resource_list, stub_valuation_backend

CASH_FLOWS = r"transactionportfolios/Testdemo/[^/]+/cashflows"
UPSERTABLE_CASH_FLOWS = r"transactionportfolios/Testdemo/[^/]+/upsertablecashflows"
TRANSACTIONS = r"transactionportfolios/Testdemo/[^/]+/transactions"


def _upsertable(transaction_id, amount, currency, date="2026-01-02T00:00:00Z"):
    return {
        "transactionId": transaction_id,
        "type": "CashFlow",
        "instrumentIdentifiers": {},
        "instrumentUid": f"CCY_{currency}",
        "transactionDate": date,
        "settlementDate": date,
        "units": amount,
        "totalConsideration": {"amount": amount, "currency": currency},
        "transactionCurrency": currency,
        "properties": {},
    }


@pytest.fixture
def tutorial(stub_platform, api_factory):
    stub_valuation_backend(stub_platform)
    TransactionStore().register(stub_platform)
    tutorial = PortfolioCashFlowsTutorial(api_factory)
    tutorial.set_up()
    return tutorial


def test_unique_ids_and_cash_identifiers():
    flows = [
        Transaction.model_validate(_upsertable("cf", 2.5, "USD")),
        Transaction.model_validate(_upsertable("cf", 100, "USD")),
    ]

    unique = cash_flow_transactions_with_unique_ids(flows)
    overridden = cash_flow_transactions_with_unique_ids(flows, currency="GBP")

    assert [flow.transaction_id for flow in unique] == ["cf0", "cf1"]
    assert unique[0].instrument_identifiers == {"Instrument/default/Currency": "USD"}
    assert overridden[1].instrument_identifiers == {"Instrument/default/Currency": "GBP"}
    assert flows[0].transaction_id == "cf"
    assert flows[0].instrument_identifiers == {}


def test_cash_flow_without_a_currency_cannot_be_booked():
    payload = _upsertable("cf", 2.5, "USD")
    del payload["transactionCurrency"]

    with pytest.raises(ValueError, match="cash flow cf has no currency"):
        cash_flow_transactions_with_unique_ids([Transaction.model_validate(payload)])


def test_transactions_convert_back_into_requests():
    (flow,) = cash_flow_transactions_with_unique_ids(
        [Transaction.model_validate(_upsertable("cf", 2.5, "USD"))]
    )

    (request,) = to_transaction_requests([flow])

    wire = request.to_wire()
    assert wire["transactionId"] == "cf0"
    assert wire["type"] == "CashFlow"
    assert wire["units"] == 2.5
    assert wire["totalConsideration"] == {"amount": 2.5, "currency": "USD"}
    assert wire["instrumentIdentifiers"] == {"Instrument/default/Currency": "USD"}
    assert "properties" not in wire


def test_nothing_is_booked_before_set_up(api_factory):
    with pytest.raises(RuntimeError, match="set_up"):
        PortfolioCashFlowsTutorial(api_factory).fx_forward_cash_flows(create_example_fx_forward())


def test_fx_forward_cash_flows_at_maturity(stub_platform, tutorial):
    stub_platform.on(
        "GET",
        CASH_FLOWS,
        resource_list(
            [
                {"paymentDate": "2020-10-02T00:00:00Z", "amount": 1, "currency": "USD"},
                {"paymentDate": "2020-10-02T00:00:00Z", "amount": -123, "currency": "JPY"},
            ]
        ),
    )

    flows = tutorial.fx_forward_cash_flows(create_example_fx_forward())

    assert [(flow.amount, flow.currency) for flow in flows] == [(1, "USD"), (-123, "JPY")]
    call = stub_platform.last_call("GET", CASH_FLOWS)
    assert call.query_value("effectiveAt") == "2020-02-23T00:00:00+00:00"
    assert call.query_value("windowStart") == "2020-10-01T23:59:59.999000+00:00"
    assert call.query_value("windowEnd") == "2020-10-02T00:00:00.001000+00:00"
    assert call.query_value("recipeIdScope") == "Testdemo"
    assert call.query_value("recipeIdCode") == "CTVoMRecipe"

    spot = stub_platform.last_call("POST", "quotes/Testdemo").body
    assert spot["day_0_fx_rate"]["metricValue"] == {"value": 150, "unit": "JPY"}
    assert spot["day_0_fx_rate"]["quoteId"]["effectiveAt"] == "2020-02-23T00:00:00+00:00"
    recipe = stub_platform.last_call("POST", "recipes").body["configurationRecipe"]
    assert recipe["code"] == "CTVoMRecipe"
    assert stub_platform.last_call("DELETE", "recipes/.+").path == "recipes/Testdemo/CTVoMRecipe"


def test_bond_cash_flows_are_booked_and_listed_back(stub_platform, tutorial):
    stub_platform.on(
        "GET",
        UPSERTABLE_CASH_FLOWS,
        resource_list([_upsertable("bond-cf", 2.5, "USD"), _upsertable("bond-cf", 100, "USD")]),
    )

    result = tutorial.upsertable_bond_cash_flows(create_example_bond())

    flows_call = stub_platform.last_call("GET", UPSERTABLE_CASH_FLOWS)
    assert flows_call.query_value("effectiveAt") == "2026-01-01T23:59:59.999000+00:00"
    assert flows_call.query_value("windowEnd") == "2026-01-02T00:00:00.001000+00:00"
    assert flows_call.query_value("recipeIdCode") is None
    assert [flow.transaction_id for flow in result.cash_flows] == ["bond-cf0", "bond-cf1"]

    listing = stub_platform.last_call("GET", TRANSACTIONS)
    assert listing.query_value("fromTransactionDate") == "2026-01-01T23:59:59.999000+00:00"
    assert listing.query_value("toTransactionDate") == "2026-01-02T00:00:00.001000+00:00"
    assert listing.query_value("asAt") is not None
    booked = {transaction.transaction_id: transaction for transaction in result.booked}
    assert booked["bond-cf1"].total_consideration.amount == Decimal("100")
    assert booked["bond-cf1"].instrument_identifiers == {"Instrument/default/Currency": "USD"}
    # The bond itself is bought once before its cash flows are read.
    assert [call.body[0]["type"] for call in stub_platform.calls_to("POST", TRANSACTIONS)] == [
        "Buy",
        "CashFlow",
    ]


def test_fx_forward_upsertable_cash_flows_are_booked_in_their_own_currency(
    stub_platform, tutorial
):
    raw = [
        _upsertable("fx-cf", 1, "USD", "2020-10-02T00:00:00Z"),
        _upsertable("fx-cf", -123, "JPY", "2020-10-02T00:00:00Z"),
    ]
    stub_platform.on("GET", UPSERTABLE_CASH_FLOWS, resource_list(raw))

    flows = tutorial.upsertable_fx_forward_cash_flows(create_example_fx_forward())

    assert [flow.transaction_id for flow in flows] == ["fx-cf", "fx-cf"]
    assert stub_platform.last_call("GET", UPSERTABLE_CASH_FLOWS).query_value("recipeIdCode") == (
        "CTVoMRecipe"
    )
    booked = stub_platform.last_call("POST", TRANSACTIONS).body
    assert [(t["transactionId"], t["instrumentIdentifiers"]) for t in booked] == [
        ("fx-cf0", {"Instrument/default/Currency": "USD"}),
        ("fx-cf1", {"Instrument/default/Currency": "JPY"}),
    ]
    assert stub_platform.route_log()[-1] == "DELETE recipes/Testdemo/CTVoMRecipe"


def test_tear_down_deletes_the_portfolio_once(stub_platform, tutorial):
    tutorial.tear_down()
    tutorial.tear_down()

    deletes = stub_platform.calls_to("DELETE", "portfolios/.+")
    assert len(deletes) == 1
    assert deletes[0].path.startswith("portfolios/Testdemo/")
