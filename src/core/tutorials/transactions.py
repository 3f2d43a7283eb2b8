from datetime import UTC, datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import uuid4

from src.core.models import (
    CurrencyAndAmount,
    PerpetualProperty,
    PropertyValue,
    Transaction,
    TransactionPrice,
    TransactionRequest,
)
from src.core.test_data import LUSID_CASH_IDENTIFIER, LUSID_INSTRUMENT_IDENTIFIER, TUTORIAL_SCOPE
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.core.tutorials.setup import ensure_property_definition
from src.infrastructure.platform import ApiFactory

TRADE_DATE = datetime(2018, 1, 1, tzinfo=UTC)
EXECUTING_TRADER_CODE = "ExecutingTrader"


def _listed_transaction(
    instrument_id: str,
    transaction_type: str,
    units: Decimal,
    price: Decimal,
    consideration: Decimal,
) -> TransactionRequest:
    return TransactionRequest(
        transaction_id=str(uuid4()),
        type=transaction_type,
        instrument_identifiers={LUSID_INSTRUMENT_IDENTIFIER: instrument_id},
        transaction_date=TRADE_DATE,
        settlement_date=TRADE_DATE,
        units=units,
        transaction_price=TransactionPrice(price=price),
        total_consideration=CurrencyAndAmount(amount=consideration, currency="GBP"),
        source="Custodian",
    )


class TransactionsTutorial(TutorialBase):
    """Each scenario books into the fresh portfolio created by `set_up`."""

    def __init__(self, api_factory: ApiFactory) -> None:
        super().__init__(api_factory)
        self.instrument_ids: List[str] = []
        self.portfolio_code: Optional[str] = None

    def load_instruments(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()

    def set_up(self) -> None:
        if not self.instrument_ids:
            self.load_instruments()
        self.portfolio_code = self.create_transaction_portfolio(TUTORIAL_SCOPE)

    def _upsert_and_fetch(self, transactions: List[TransactionRequest]) -> List[Transaction]:
        self.transaction_portfolios_api.upsert_transactions(
            TUTORIAL_SCOPE, self.portfolio_code, transactions
        )
        return self.get_transactions()

    def get_transactions(self) -> List[Transaction]:
        return self.transaction_portfolios_api.get_transactions(
            TUTORIAL_SCOPE, self.portfolio_code
        ).values

    def build_buy_request(self) -> TransactionRequest:
        return _listed_transaction(
            self.instrument_ids[0], "Buy", Decimal("100"), Decimal("12.3"), Decimal("1230")
        )

    def load_listed_instrument_transaction(
        self,
    ) -> Tuple[TransactionRequest, List[Transaction]]:
        transaction = self.build_buy_request()
        return transaction, self._upsert_and_fetch([transaction])

    def load_cash_transaction(self) -> Tuple[TransactionRequest, List[Transaction]]:
        transaction = TransactionRequest(
            transaction_id=str(uuid4()),
            type="FundsIn",
            instrument_identifiers={LUSID_CASH_IDENTIFIER: "GBP"},
            transaction_date=TRADE_DATE,
            settlement_date=TRADE_DATE,
            units=Decimal("100"),
            transaction_price=TransactionPrice(price=Decimal("0.0")),
            total_consideration=CurrencyAndAmount(amount=Decimal("0.0"), currency="GBP"),
            source="Custodian",
        )
        return transaction, self._upsert_and_fetch([transaction])

    def cancel_transactions(
        self,
    ) -> Tuple[List[TransactionRequest], List[Transaction], List[Transaction]]:
        """Book a buy and a sell, cancel both; returns (requests, booked, remaining)."""
        requests = [
            self.build_buy_request(),
            _listed_transaction(
                self.instrument_ids[0], "Sell", Decimal("50"), Decimal("20.4"), Decimal("45")
            ),
        ]
        booked = self._upsert_and_fetch(requests)
        self.transaction_portfolios_api.cancel_transactions(
            TUTORIAL_SCOPE,
            self.portfolio_code,
            [transaction.transaction_id for transaction in booked],
        )
        return requests, booked, self.get_transactions()

    def add_transaction_with_property(
        self, trader: str = "Glyn Jagger"
    ) -> Tuple[TransactionRequest, str, List[Transaction]]:
        ensure_property_definition(
            self.property_definitions_api, "Transaction", TUTORIAL_SCOPE, EXECUTING_TRADER_CODE
        )
        key = f"Transaction/{TUTORIAL_SCOPE}/{EXECUTING_TRADER_CODE}"
        transaction = self.build_buy_request()
        transaction.properties = {
            key: PerpetualProperty(key=key, value=PropertyValue(label_value=trader))
        }
        return transaction, key, self._upsert_and_fetch([transaction])
