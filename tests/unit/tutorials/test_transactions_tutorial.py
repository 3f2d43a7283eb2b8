from decimal import Decimal

import pytest

from src.core.tutorials import TransactionsTutorial
from tests.factories import (
    EXAMPLE_LUIDS,
    TransactionStore,
    stub_example_equities,
    stub_portfolio_creation,
)

TRANSACTIONS = r"transactionportfolios/Testdemo/[^/]+/transactions"


@pytest.fixture
def tutorial(stub_platform, api_factory):
    stub_example_equities(stub_platform)
    stub_portfolio_creation(stub_platform)
    TransactionStore().register(stub_platform)
    tutorial = TransactionsTutorial(api_factory)
    tutorial.set_up()
    return tutorial


def test_instruments_load_once_across_set_ups(stub_platform, tutorial):
    tutorial.set_up()

    assert len(stub_platform.calls_to("POST", "instruments")) == 1
    assert len(stub_platform.calls_to("POST", "transactionportfolios/Testdemo")) == 2


def test_listed_instrument_buy(tutorial):
    request, transactions = tutorial.load_listed_instrument_transaction()

    (booked,) = transactions
    assert booked.transaction_id == request.transaction_id
    assert booked.type == "Buy"
    assert booked.units == Decimal("100")
    assert booked.transaction_price.price == Decimal("12.3")
    assert booked.total_consideration.amount == Decimal("1230")
    assert booked.instrument_identifiers == {
        "Instrument/default/LusidInstrumentId": EXAMPLE_LUIDS[0]
    }


def test_cash_is_booked_against_the_currency_identifier(stub_platform, tutorial):
    request, transactions = tutorial.load_cash_transaction()

    body = stub_platform.last_call("POST", TRANSACTIONS).body[0]
    assert body["type"] == "FundsIn"
    assert body["instrumentIdentifiers"] == {"Instrument/default/Currency": "GBP"}
    assert body["units"] == 100
    assert [t.transaction_id for t in transactions] == [request.transaction_id]


def test_cancel_transactions_removes_what_was_booked(stub_platform, tutorial):
    requests, booked, remaining = tutorial.cancel_transactions()

    assert [r.type for r in requests] == ["Buy", "Sell"]
    assert [t.transaction_id for t in booked] == [r.transaction_id for r in requests]
    assert remaining == []
    cancel = stub_platform.last_call("DELETE", TRANSACTIONS)
    assert cancel.query_values("transactionIds") == [r.transaction_id for r in requests]


def test_executing_trader_property(stub_platform, tutorial):
    stub_platform.fail("GET", r"propertydefinitions/Transaction/Testdemo/ExecutingTrader", 404)
    stub_platform.on("POST", "propertydefinitions", {"key": "Transaction/Testdemo/ExecutingTrader"})

    request, key, transactions = tutorial.add_transaction_with_property()

    assert key == "Transaction/Testdemo/ExecutingTrader"
    (booked,) = transactions
    assert booked.properties[key].value.label_value == "Glyn Jagger"
    body = stub_platform.last_call("POST", TRANSACTIONS).body[0]
    assert body["properties"] == {key: {"key": key, "value": {"labelValue": "Glyn Jagger"}}}
