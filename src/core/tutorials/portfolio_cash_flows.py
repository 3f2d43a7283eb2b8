"""
FILE: src/core/tutorials/portfolio_cash_flows.py

Portfolio cash flows read as instrument cash flows or as upsertable transactions, and the
helpers that book upsertable cash flows back into a portfolio as cash.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from src.core.instruments import Bond, FxForward, LusidInstrument
from src.core.models import InstrumentCashFlow, Transaction, TransactionRequest
from src.core.test_data import (
    LUSID_CASH_IDENTIFIER,
    TUTORIAL_SCOPE,
    build_fx_rate_request,
    build_instrument_upsert_request,
    build_recipe_request,
    build_transaction_requests_for_luids,
    new_instrument_id,
)
from src.core.tutorials.base import TutorialBase
from src.core.validation import validate_quote_upsert, validate_upsert_instrument_response
from src.infrastructure.platform import ApiFactory

CTVOM_RECIPE_CODE = "CTVoMRecipe"
# Cash flows are requested in a window this wide either side of the payment date.
WINDOW_EDGE = timedelta(milliseconds=1)
FX_SPOT_RATE = Decimal("150")


def cash_flow_transactions_with_unique_ids(
    transactions: Iterable[Transaction], currency: Optional[str] = None
) -> List[Transaction]:
    """Cash flow transactions identified by their cash currency, with ids made distinct.

    `currency` overrides each transaction's own currency as the booked cash instrument.
    """
    unique: List[Transaction] = []
    for index, transaction in enumerate(transactions):
        cash_currency = currency or transaction.transaction_currency
        if cash_currency is None:
            raise ValueError(f"cash flow {transaction.transaction_id} has no currency")
        identifiers = dict(transaction.instrument_identifiers)
        identifiers[LUSID_CASH_IDENTIFIER] = cash_currency
        unique.append(
            transaction.model_copy(
                update={
                    "transaction_id": f"{transaction.transaction_id}{index}",
                    "instrument_identifiers": identifiers,
                }
            )
        )
    return unique


def to_transaction_requests(transactions: Iterable[Transaction]) -> List[TransactionRequest]:
    return [
        TransactionRequest(
            transaction_id=transaction.transaction_id,
            type=transaction.type,
            instrument_identifiers=transaction.instrument_identifiers,
            transaction_date=transaction.transaction_date,
            settlement_date=transaction.settlement_date,
            units=transaction.units,
            transaction_price=transaction.transaction_price,
            total_consideration=transaction.total_consideration,
            exchange_rate=transaction.exchange_rate,
            transaction_currency=transaction.transaction_currency,
            properties=transaction.properties or None,
            counterparty_id=transaction.counterparty_id,
            source=transaction.source,
        )
        for transaction in transactions
    ]


@dataclass(frozen=True)
class BookedCashFlows:
    cash_flows: List[Transaction]
    booked: List[Transaction]


class PortfolioCashFlowsTutorial(TutorialBase):
    def __init__(self, api_factory: ApiFactory, scope: str = TUTORIAL_SCOPE) -> None:
        super().__init__(api_factory)
        self.scope = scope
        self.effective_at = datetime(2020, 2, 23, tzinfo=UTC)
        self.portfolio_code: Optional[str] = None

    def set_up(self) -> None:
        self.portfolio_code = self.create_transaction_portfolio(self.scope)

    def tear_down(self) -> None:
        if self.portfolio_code is not None:
            self.portfolios_api.delete_portfolio(self.scope, self.portfolio_code)
            self.portfolio_code = None

    def _require_portfolio(self) -> str:
        if self.portfolio_code is None:
            raise RuntimeError("set_up() must create the portfolio first")
        return self.portfolio_code

    def book_instruments(self, instruments: Sequence[LusidInstrument]) -> List[str]:
        """Upsert the instruments, buy one unit of each and add the FX spot they price off."""
        portfolio_code = self._require_portfolio()
        definitions = build_instrument_upsert_request(
            [(instrument, new_instrument_id(instrument)) for instrument in instruments]
        )
        upsert_response = self.instruments_api.upsert_instruments(definitions)
        validate_upsert_instrument_response(upsert_response, len(definitions))
        luids = [value.lusid_instrument_id for value in upsert_response.values.values()]
        self.transaction_portfolios_api.upsert_transactions(
            self.scope,
            portfolio_code,
            build_transaction_requests_for_luids(luids, self.effective_at),
        )

        for instrument in instruments:
            if isinstance(instrument, FxForward):
                quotes = build_fx_rate_request(
                    instrument.dom_ccy,
                    instrument.fgn_ccy,
                    FX_SPOT_RATE,
                    self.effective_at,
                    self.effective_at,
                )
                response = self.quotes_api.upsert_quotes(self.scope, quotes)
                validate_quote_upsert(response, len(quotes))
        return luids

    def _upsert_ctvom_recipe(self) -> None:
        request = build_recipe_request(CTVOM_RECIPE_CODE, self.scope, "ConstantTimeValueOfMoney")
        self.recipe_api.upsert_configuration_recipe(request)

    def fx_forward_cash_flows(self, fx_forward: FxForward) -> List[InstrumentCashFlow]:
        """Cash flows paid at the forward's maturity, priced with a CTVoM recipe."""
        portfolio_code = self._require_portfolio()
        self.book_instruments([fx_forward])
        self._upsert_ctvom_recipe()

        maturity = fx_forward.maturity_date
        cash_flows = self.transaction_portfolios_api.get_portfolio_cash_flows(
            self.scope,
            portfolio_code,
            effective_at=self.effective_at,
            window_start=maturity - WINDOW_EDGE,
            window_end=maturity + WINDOW_EDGE,
            recipe_id_scope=self.scope,
            recipe_id_code=CTVOM_RECIPE_CODE,
        ).values

        self.recipe_api.delete_configuration_recipe(self.scope, CTVOM_RECIPE_CODE)
        return cash_flows

    def upsertable_bond_cash_flows(self, bond: Bond) -> BookedCashFlows:
        """Book the bond's final coupon and principal as cash and list them back."""
        portfolio_code = self._require_portfolio()
        self.book_instruments([bond])

        maturity = bond.maturity_date
        cash_flows = self.transaction_portfolios_api.get_upsertable_portfolio_cash_flows(
            self.scope,
            portfolio_code,
            effective_at=maturity - WINDOW_EDGE,
            window_start=maturity - WINDOW_EDGE,
            window_end=maturity + WINDOW_EDGE,
        ).values

        unique = cash_flow_transactions_with_unique_ids(cash_flows)
        self.transaction_portfolios_api.upsert_transactions(
            self.scope, portfolio_code, to_transaction_requests(unique)
        )
        booked = self.transaction_portfolios_api.get_transactions(
            self.scope,
            portfolio_code,
            from_transaction_date=maturity - WINDOW_EDGE,
            to_transaction_date=maturity + WINDOW_EDGE,
            as_at=datetime.now(UTC),
        ).values
        return BookedCashFlows(cash_flows=unique, booked=booked)

    def upsertable_fx_forward_cash_flows(self, fx_forward: FxForward) -> List[Transaction]:
        """Upsertable cash flows at the forward's maturity, booked back into the portfolio."""
        portfolio_code = self._require_portfolio()
        self.book_instruments([fx_forward])
        self._upsert_ctvom_recipe()

        maturity = fx_forward.maturity_date
        cash_flows = self.transaction_portfolios_api.get_upsertable_portfolio_cash_flows(
            self.scope,
            portfolio_code,
            effective_at=self.effective_at,
            window_start=maturity - WINDOW_EDGE,
            window_end=maturity + WINDOW_EDGE,
            recipe_id_scope=self.scope,
            recipe_id_code=CTVOM_RECIPE_CODE,
        ).values

        self.transaction_portfolios_api.upsert_transactions(
            self.scope,
            portfolio_code,
            to_transaction_requests(cash_flow_transactions_with_unique_ids(cash_flows)),
        )
        self.recipe_api.delete_configuration_recipe(self.scope, CTVOM_RECIPE_CODE)
        return cash_flows
