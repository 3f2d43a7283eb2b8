"""
FILE: src/core/tutorials/portfolios.py

Creating transaction portfolios, attaching portfolio and transaction properties, and listing
portfolios and scopes.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import List, Optional, Tuple
from uuid import uuid4

from src.core.models import (
    CreatePropertyDefinitionRequest,
    CreateTransactionPortfolioRequest,
    CurrencyAndAmount,
    PerpetualProperty,
    Portfolio,
    PortfolioProperties,
    Property,
    PropertyDomain,
    PropertyValue,
    ResourceId,
    Scope,
    Transaction,
    TransactionPrice,
    TransactionRequest,
)
from src.core.test_data import LUSID_INSTRUMENT_IDENTIFIER, TUTORIAL_SCOPE
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.infrastructure.platform import ApiFactory

TRADE_DATE = datetime(2018, 1, 1, tzinfo=UTC)


def build_buy_transaction(
    instrument_id: str, source: str = "Broker", trade_date: datetime = TRADE_DATE
) -> TransactionRequest:
    """Buy of 100 units at 12.3 GBP."""
    return TransactionRequest(
        transaction_id=str(uuid4()),
        type="Buy",
        instrument_identifiers={LUSID_INSTRUMENT_IDENTIFIER: instrument_id},
        transaction_date=trade_date,
        settlement_date=trade_date,
        units=Decimal("100"),
        transaction_price=TransactionPrice(price=Decimal("12.3"), type="Price"),
        total_consideration=CurrencyAndAmount(amount=Decimal("1230"), currency="GBP"),
        source=source,
    )


class PortfoliosTutorial(TutorialBase):
    def __init__(self, api_factory: ApiFactory, scope: str = TUTORIAL_SCOPE) -> None:
        super().__init__(api_factory)
        self.scope = scope
        self.instrument_ids: List[str] = []
        self.portfolio_code: Optional[str] = None

    def set_up(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()
        self.portfolio_code = self.create_transaction_portfolio(self.scope)

    def tear_down(self) -> None:
        if self.portfolio_code is not None:
            self.portfolios_api.delete_portfolio(self.scope, self.portfolio_code)
            self.portfolio_code = None

    def _create_string_property(self, domain: PropertyDomain, display_name: str) -> str:
        definition = self.property_definitions_api.create_property_definition(
            CreatePropertyDefinitionRequest(
                domain=domain,
                scope=self.scope,
                code=f"fund-style-{uuid4()}",
                value_required=False,
                display_name=display_name,
                data_type_id=ResourceId(scope="system", code="string"),
                life_time="Perpetual",
            )
        )
        return definition.key

    def create_minimal_transaction_portfolio(self) -> str:
        # Minimum set of mandatory fields only.
        uuid = uuid4()
        request = CreateTransactionPortfolioRequest(
            code=f"id-{uuid}", display_name=f"Portfolio-{uuid}", base_currency="GBP"
        )
        portfolio = self.transaction_portfolios_api.create_portfolio(self.scope, request)
        if portfolio.id.code != request.code:
            raise AssertionError(f"created portfolio code {portfolio.id.code} != {request.code}")
        return portfolio.id.code

    def create_transaction_portfolio_with_properties(
        self, style: str = "Active"
    ) -> Tuple[str, PortfolioProperties]:
        property_key = self._create_string_property("Portfolio", "Fund Style")
        uuid = uuid4()
        request = CreateTransactionPortfolioRequest(
            display_name=f"portfolio-{uuid}",
            code=f"id-{uuid}",
            base_currency="GBP",
            properties={
                property_key: Property(key=property_key, value=PropertyValue(label_value=style))
            },
        )
        portfolio = self.transaction_portfolios_api.create_portfolio(self.scope, request)
        return property_key, self.portfolios_api.get_portfolio_properties(
            self.scope, portfolio.id.code
        )

    def add_transactions_to_portfolio(self) -> Tuple[TransactionRequest, List[Transaction]]:
        transaction = build_buy_transaction(self.instrument_ids[0])
        self.transaction_portfolios_api.upsert_transactions(
            self.scope, self.portfolio_code, [transaction]
        )
        return transaction, self.transaction_portfolios_api.get_transactions(
            self.scope, self.portfolio_code
        ).values

    def add_transactions_to_portfolio_with_property(
        self, trader: str = "A Trader"
    ) -> Tuple[str, List[Transaction]]:
        property_key = self._create_string_property("Transaction", "Trader Id")
        transaction = build_buy_transaction(self.instrument_ids[0], source="Custodian")
        transaction.properties = {
            property_key: PerpetualProperty(
                key=property_key, value=PropertyValue(label_value=trader)
            )
        }
        self.transaction_portfolios_api.upsert_transactions(
            self.scope, self.portfolio_code, [transaction]
        )
        return property_key, self.transaction_portfolios_api.get_transactions(
            self.scope, self.portfolio_code
        ).values

    def list_portfolios(self, count: int = 10) -> List[Portfolio]:
        """Create `count` portfolios in a fresh scope and list that scope."""
        scope = f"{TUTORIAL_SCOPE}-{uuid4()}"
        for _ in range(count):
            self.create_transaction_portfolio(scope)
        return self.portfolios_api.list_portfolios_for_scope(scope).values

    def list_scopes(self) -> List[Scope]:
        return self.scopes_api.list_scopes().values
