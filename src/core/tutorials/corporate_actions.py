"""
FILE: src/core/tutorials/corporate_actions.py

Corporate actions applied to transaction portfolios through a corporate action source: a cash
dividend, a two-for-one stock split and a name change expressed as a transition between
instruments. Each scenario returns the holdings fetched around the action's key dates.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import uuid4

from src.core.models import (
    CorporateActionSource,
    CorporateActionTransitionComponentRequest,
    CorporateActionTransitionRequest,
    CreateCorporateActionSourceRequest,
    CreateTransactionPortfolioRequest,
    InstrumentDefinition,
    InstrumentIdValue,
    PortfolioHolding,
    ResourceId,
    UpsertCorporateActionRequest,
)
from src.core.test_data import (
    LUSID_CASH_IDENTIFIER,
    LUSID_INSTRUMENT_IDENTIFIER,
    TUTORIAL_SCOPE,
    build_cash_funds_in_transaction_request,
    build_transaction_request,
)
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.core.tutorials.setup import (
    create_corporate_action_source_if_absent,
    delete_corporate_action_source_if_present,
)
from src.infrastructure.platform import ApiFactory

logger = logging.getLogger(__name__)

CURRENCY = "GBP"
STARTING_CASH = Decimal("2960000")
STARTING_UNITS = Decimal("132000")
STARTING_PRICE = Decimal("5")

ORIGINAL_INSTRUMENT = ("BBG000C6K6G9", "VODAFONE GROUP PLC")
RENAMED_INSTRUMENT = ("BB5555555555", "VODAFONE INCORPORATED")


def _utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=UTC)


def _sorted_holdings(holdings: List[PortfolioHolding]) -> List[PortfolioHolding]:
    return sorted(holdings, key=lambda holding: holding.instrument_uid)


@dataclass(frozen=True)
class NameChangeResult:
    original_luid: str
    new_luid: str
    holdings_before: List[PortfolioHolding]
    holdings_after: List[PortfolioHolding]


class CorporateActionsTutorial(TutorialBase):
    def __init__(self, api_factory: ApiFactory, source_code: Optional[str] = None) -> None:
        super().__init__(api_factory)
        self.scope = TUTORIAL_SCOPE
        self.source_code = source_code or f"ca_source-{uuid4()}"
        self.instrument_ids: List[str] = []

    def set_up(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()
        create_corporate_action_source_if_absent(
            self.corporate_action_sources_api,
            CreateCorporateActionSourceRequest(
                scope=self.scope,
                code=self.source_code,
                display_name="Test Source",
                description="Corporate Actions source used for automated testing",
            ),
        )

    def tear_down(self) -> None:
        delete_corporate_action_source_if_present(
            self.corporate_action_sources_api, self.scope, self.source_code
        )

    def list_corporate_action_sources(self) -> List[CorporateActionSource]:
        return self.corporate_action_sources_api.list_corporate_action_sources().values

    def _create_portfolio(self, created: datetime) -> str:
        uuid = uuid4()
        request = CreateTransactionPortfolioRequest(
            code=f"id-{uuid}",
            display_name=f"Portfolio-{uuid}",
            base_currency=CURRENCY,
            created=created,
            corporate_action_source_id=ResourceId(scope=self.scope, code=self.source_code),
        )
        self.transaction_portfolios_api.create_portfolio(self.scope, request)
        return request.code

    def _seed_cash_and_equity(self, portfolio_code: str, trade_date: datetime) -> None:
        transactions = [
            build_cash_funds_in_transaction_request(STARTING_CASH, CURRENCY, trade_date),
            build_transaction_request(
                self.instrument_ids[0],
                STARTING_UNITS,
                STARTING_PRICE,
                CURRENCY,
                trade_date,
                "StockIn",
            ),
        ]
        self.transaction_portfolios_api.upsert_transactions(
            self.scope, portfolio_code, transactions
        )

    def _upsert_corporate_action(self, action: UpsertCorporateActionRequest) -> None:
        response = self.corporate_action_sources_api.batch_upsert_corporate_actions(
            self.scope, self.source_code, [action]
        )
        if response.failed:
            raise AssertionError(f"corporate action upsert failures: {list(response.failed)}")
        logger.info(
            "corporate_action.upserted",
            extra={
                "extra_fields": {
                    "source": self.source_code,
                    "corporate_action_code": action.corporate_action_code,
                }
            },
        )

    def _holdings_at(self, portfolio_code: str, effective_at: datetime) -> List[PortfolioHolding]:
        holdings = self.transaction_portfolios_api.get_holdings(
            self.scope, portfolio_code, effective_at=effective_at
        )
        return _sorted_holdings(holdings.values)

    def create_dividend_payment(self) -> Dict[str, List[PortfolioHolding]]:
        """Pay 0.5 GBP per share; holdings keyed by the date they were fetched relative to."""
        start_date = _utc(2021, 9, 1)
        portfolio_code = self._create_portfolio(start_date)
        self._seed_cash_and_equity(portfolio_code, start_date)

        self._upsert_corporate_action(
            UpsertCorporateActionRequest(
                corporate_action_code=self.scope,
                description="Dividend Payment",
                announcement_date=_utc(2021, 9, 6),
                ex_date=_utc(2021, 9, 20),
                record_date=_utc(2021, 9, 21),
                payment_date=_utc(2021, 10, 5),
                transitions=[
                    CorporateActionTransitionRequest(
                        input_transition=CorporateActionTransitionComponentRequest(
                            instrument_identifiers={
                                LUSID_INSTRUMENT_IDENTIFIER: self.instrument_ids[0]
                            },
                            units_factor=Decimal("1"),
                            cost_factor=Decimal("0"),
                        ),
                        output_transitions=[
                            CorporateActionTransitionComponentRequest(
                                instrument_identifiers={LUSID_CASH_IDENTIFIER: CURRENCY},
                                units_factor=Decimal("0.5"),
                                cost_factor=Decimal("0"),
                            )
                        ],
                    )
                ],
            )
        )

        return {
            "pre_ex_date": self._holdings_at(portfolio_code, _utc(2021, 9, 15)),
            "pre_payment_date": self._holdings_at(portfolio_code, _utc(2021, 10, 4)),
            "post_payment_date": self._holdings_at(portfolio_code, _utc(2021, 10, 12)),
        }

    def create_stock_split(self) -> Dict[str, List[PortfolioHolding]]:
        """Split every share in two, carrying the full cost onto the new units."""
        start_date = _utc(2021, 9, 1)
        announcement_date = _utc(2021, 9, 4)
        record_date = _utc(2021, 9, 20)
        portfolio_code = self._create_portfolio(start_date)
        self._seed_cash_and_equity(portfolio_code, start_date)

        identifiers = {LUSID_INSTRUMENT_IDENTIFIER: self.instrument_ids[0]}
        self._upsert_corporate_action(
            UpsertCorporateActionRequest(
                corporate_action_code=self.scope,
                description="Stock Split",
                announcement_date=announcement_date,
                ex_date=_utc(2021, 9, 6),
                record_date=record_date,
                payment_date=_utc(2021, 9, 22),
                transitions=[
                    CorporateActionTransitionRequest(
                        input_transition=CorporateActionTransitionComponentRequest(
                            instrument_identifiers=identifiers,
                            units_factor=Decimal("1"),
                            cost_factor=Decimal("1"),
                        ),
                        output_transitions=[
                            CorporateActionTransitionComponentRequest(
                                instrument_identifiers=identifiers,
                                units_factor=Decimal("2"),
                                cost_factor=Decimal("1"),
                            )
                        ],
                    )
                ],
            )
        )

        return {
            "announcement_date": self._holdings_at(portfolio_code, announcement_date),
            "record_date": self._holdings_at(portfolio_code, record_date),
            "post_payment_date": self._holdings_at(portfolio_code, _utc(2021, 9, 24)),
        }

    def process_name_change(self) -> NameChangeResult:
        initial_date = _utc(2021, 9, 1)
        name_change_date = _utc(2021, 9, 2)
        instruments = [ORIGINAL_INSTRUMENT, RENAMED_INSTRUMENT]

        self.instruments_api.upsert_instruments(
            {
                figi: InstrumentDefinition(
                    name=name, identifiers={"Figi": InstrumentIdValue(value=figi)}
                )
                for figi, name in instruments
            }
        )
        looked_up = self.instruments_api.get_instruments(
            "Figi", [figi for figi, _ in instruments]
        ).values
        original_luid = looked_up[ORIGINAL_INSTRUMENT[0]].lusid_instrument_id
        new_luid = looked_up[RENAMED_INSTRUMENT[0]].lusid_instrument_id

        portfolio_code = self._create_portfolio(initial_date)
        self.transaction_portfolios_api.upsert_transactions(
            self.scope,
            portfolio_code,
            [
                build_transaction_request(
                    original_luid,
                    Decimal("60000"),
                    Decimal("122.0"),
                    CURRENCY,
                    initial_date,
                    "StockIn",
                )
            ],
        )

        # The holding moves off the original instrument entirely and onto the renamed one.
        self._upsert_corporate_action(
            UpsertCorporateActionRequest(
                corporate_action_code=self.scope,
                description="Name Change",
                announcement_date=name_change_date,
                ex_date=name_change_date,
                record_date=name_change_date,
                payment_date=name_change_date,
                transitions=[
                    CorporateActionTransitionRequest(
                        input_transition=CorporateActionTransitionComponentRequest(
                            instrument_identifiers={LUSID_INSTRUMENT_IDENTIFIER: original_luid},
                            units_factor=Decimal("1"),
                            cost_factor=Decimal("1"),
                        ),
                        output_transitions=[
                            CorporateActionTransitionComponentRequest(
                                instrument_identifiers={
                                    LUSID_INSTRUMENT_IDENTIFIER: original_luid
                                },
                                units_factor=Decimal("0"),
                                cost_factor=Decimal("0"),
                            ),
                            CorporateActionTransitionComponentRequest(
                                instrument_identifiers={LUSID_INSTRUMENT_IDENTIFIER: new_luid},
                                units_factor=Decimal("1"),
                                cost_factor=Decimal("1"),
                            ),
                        ],
                    )
                ],
            )
        )

        result = NameChangeResult(
            original_luid=original_luid,
            new_luid=new_luid,
            holdings_before=self._holdings_at(portfolio_code, initial_date),
            holdings_after=self._holdings_at(portfolio_code, _utc(2021, 9, 3)),
        )

        for figi, _ in instruments:
            self.instruments_api.delete_instrument("Figi", figi)
        return result
