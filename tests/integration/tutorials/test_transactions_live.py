from decimal import Decimal

import pytest

from src.core.test_data import TUTORIAL_SCOPE
from src.core.tutorials import TransactionsTutorial


@pytest.fixture
def tutorial(live_api_factory):
    tutorial = TransactionsTutorial(live_api_factory)
    tutorial.set_up()
    yield tutorial
    tutorial.portfolios_api.delete_portfolio(TUTORIAL_SCOPE, tutorial.portfolio_code)


def test_listed_instrument_transaction_live(tutorial):
    request, booked = tutorial.load_listed_instrument_transaction()

    assert [t.transaction_id for t in booked] == [request.transaction_id]
    assert booked[0].units == Decimal("100")


def test_cash_transaction_live(tutorial):
    request, booked = tutorial.load_cash_transaction()

    assert [t.transaction_id for t in booked] == [request.transaction_id]
    assert booked[0].instrument_uid == "CCY_GBP"


def test_cancel_transactions_live(tutorial):
    requests, booked, remaining = tutorial.cancel_transactions()

    assert len(booked) == len(requests)
    assert remaining == []


def test_transaction_property_live(tutorial):
    _, key, booked = tutorial.add_transaction_with_property()

    assert booked[0].properties[key].value.label_value == "Glyn Jagger"
