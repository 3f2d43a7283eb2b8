from decimal import Decimal

import pytest

from src.core.tutorials import BitemporalTutorial
from tests.factories import (
    EXAMPLE_LUIDS,
    holding_payload,
    resource_list,
    stub_example_equities,
    stub_portfolio_creation,
    transaction_payload,
)

TRANSACTIONS = r"transactionportfolios/Testdemo/[^/]+/transactions"
HOLDINGS = r"transactionportfolios/Testdemo/[^/]+/holdings"


class VersionedTransactions:
    """Transactions kept per upsert batch, each stamped with its own as-at time."""

    def __init__(self) -> None:
        self.batches = []

    def register(self, stub) -> None:
        stub.on("POST", TRANSACTIONS, self._upsert)
        stub.on("GET", TRANSACTIONS, self._list)
        stub.on("GET", HOLDINGS, self._holdings)

    def _upsert(self, call):
        as_at = f"2024-01-02T03:04:{len(self.batches):02d}+00:00"
        self.batches.append((as_at, [transaction_payload(t) for t in call.body]))
        return 200, {"version": {"asAtDate": as_at}}

    def _visible(self, as_at):
        return [
            transaction
            for stamp, batch in self.batches
            if as_at is None or stamp <= as_at
            for transaction in batch
        ]

    def _list(self, call):
        return 200, resource_list(self._visible(call.query_value("asAt")))

    def _holdings(self, call):
        effective_at = call.query_value("effectiveAt")
        units = {}
        for transaction in self._visible(call.query_value("asAt")):
            if transaction["transactionDate"] <= effective_at:
                uid = transaction["instrumentIdentifiers"]["Instrument/default/LusidInstrumentId"]
                units[uid] = units.get(uid, 0) + transaction["units"]
        return 200, resource_list([holding_payload(uid, count) for uid, count in units.items()])


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def tutorial(stub_platform, api_factory, sleeps):
    stub_example_equities(stub_platform)
    stub_portfolio_creation(stub_platform)
    VersionedTransactions().register(stub_platform)
    tutorial = BitemporalTutorial(api_factory, sleep=sleeps.append)
    tutorial.set_up()
    return tutorial


def test_each_as_at_sees_only_what_was_booked_by_then(stub_platform, tutorial, sleeps):
    result = tutorial.apply_bitemporal_portfolio_change()

    assert [len(transactions) for transactions in result.transactions_as_at] == [3, 4, 5]
    assert len(result.latest_transactions) == 5
    assert [as_at.second for as_at in result.as_at_dates] == [0, 1, 2]
    assert sleeps == [0.5, 0.5, 0.5]

    listings = stub_platform.calls_to("GET", TRANSACTIONS)
    assert [call.query_value("asAt") for call in listings] == [
        "2024-01-02T03:04:00+00:00",
        "2024-01-02T03:04:01+00:00",
        "2024-01-02T03:04:02+00:00",
        None,
    ]


def test_back_dated_buy_is_booked_after_the_later_one(stub_platform, tutorial):
    result = tutorial.apply_bitemporal_portfolio_change()

    later, back_dated = result.transactions_as_at[2][3:]
    assert later.instrument_identifiers == {
        "Instrument/default/LusidInstrumentId": EXAMPLE_LUIDS[3]
    }
    assert later.transaction_date.day == 8
    assert back_dated.transaction_date.day == 5
    assert back_dated.transaction_price.price == Decimal("105")
    assert back_dated.total_consideration.amount == Decimal("10500")
    assert back_dated.total_consideration.currency == "GBP"


def test_pause_between_batches_is_configurable(stub_platform, api_factory):
    sleeps = []
    stub_example_equities(stub_platform)
    stub_portfolio_creation(stub_platform)
    VersionedTransactions().register(stub_platform)
    tutorial = BitemporalTutorial(api_factory, pause_seconds=0, sleep=sleeps.append)
    tutorial.set_up()

    tutorial.apply_bitemporal_portfolio_change()

    assert sleeps == [0, 0, 0]


def test_upsert_without_a_version_fails(stub_platform, api_factory):
    stub_example_equities(stub_platform)
    stub_portfolio_creation(stub_platform)
    stub_platform.on("POST", TRANSACTIONS, {})
    tutorial = BitemporalTutorial(api_factory, sleep=lambda seconds: None)
    tutorial.set_up()

    with pytest.raises(AssertionError, match="no as-at date"):
        tutorial.apply_bitemporal_portfolio_change()


def test_holdings_on_one_date_differ_by_system_time(stub_platform, tutorial):
    result = tutorial.apply_bitemporal_portfolio_change()

    first = [holding.instrument_uid for holding in result.holdings_as_at_first_batch]
    latest = [holding.instrument_uid for holding in result.latest_holdings]
    assert first == EXAMPLE_LUIDS[:3]
    assert latest == EXAMPLE_LUIDS[:3] + [EXAMPLE_LUIDS[4]]
    listings = stub_platform.calls_to("GET", HOLDINGS)
    assert [call.query_value("effectiveAt") for call in listings] == [
        "2018-01-06T00:00:00+00:00"
    ] * 2
    assert [call.query_value("asAt") for call in listings] == [
        "2024-01-02T03:04:00+00:00",
        None,
    ]
