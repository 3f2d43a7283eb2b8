"""
FILE: src/core/tutorials/cut_labels.py

Cut labels name a local time in a time zone ("LDNOpen" is 08:00 in GB). Holdings set and
transactions booked at cut-labelled dates are read back at other cut labels on the same day
to show how the labels order events across time zones.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from decimal import Decimal
from typing import Dict, List, Optional
from uuid import uuid4

from src.core.models import CreateCutLabelDefinitionRequest, CutLocalTime, PortfolioHolding
from src.core.test_data import (
    build_adjust_holdings_request,
    build_cash_funds_in_adjust_holdings_request,
    build_cash_portfolio_holding,
    build_portfolio_holding,
    build_transaction_request,
    cut_label,
)
from src.core.tutorials.base import TutorialBase
from src.core.tutorials.instrument_loader import InstrumentLoader
from src.core.tutorials.setup import delete_cut_label_if_present
from src.core.validation import check_holdings_match
from src.infrastructure.platform import ApiFactory

logger = logging.getLogger(__name__)

CUT_LABELS_SCOPE = "cut_labels_demo"
CURRENCY = "GBP"
CUT_LABEL_CODE_MAX_LENGTH = 20


@dataclass(frozen=True)
class CutLabelSpec:
    display_name: str
    hours: int
    minutes: int
    description: str
    time_zone: str


CUT_LABELS = [
    CutLabelSpec("SGPOpen", 9, 0, "Singapore Opening Time, 2am in UK", "Singapore"),
    CutLabelSpec("LDNOpen", 8, 0, "London Opening Time, 9am in UK", "GB"),
    CutLabelSpec("SGPClose", 17, 0, "Singapore Closing Time, 10am in UK", "Singapore"),
    CutLabelSpec("NYOpen", 9, 0, "New York Opening Time, 2pm in UK", "America/New_York"),
    CutLabelSpec("LDNClose", 17, 0, "London Closing Time, 5pm in UK", "GB"),
    CutLabelSpec("NYClose", 17, 0, "New York Closing Time, 10pm in UK", "America/New_York"),
]


def cut_label_code(display_name: str) -> str:
    return f"{display_name}{uuid4()}"[:CUT_LABEL_CODE_MAX_LENGTH]


class CutLabelsTutorial(TutorialBase):
    def __init__(self, api_factory: ApiFactory, current_date: Optional[date] = None) -> None:
        super().__init__(api_factory)
        today = current_date or datetime.now(UTC).date()
        self.current_date = datetime(today.year, today.month, today.day, tzinfo=UTC)
        self.cut_label_codes: Dict[str, str] = {}
        self.instrument_ids: List[str] = []
        self.portfolio_code: Optional[str] = None

    def set_up(self) -> None:
        self.instrument_ids = InstrumentLoader(self.api_factory).load_instruments()
        self.portfolio_code = self.create_transaction_portfolio(CUT_LABELS_SCOPE)

    def tear_down(self) -> None:
        if self.portfolio_code is not None:
            self.portfolios_api.delete_portfolio(CUT_LABELS_SCOPE, self.portfolio_code)
            self.portfolio_code = None
        for code in self.cut_label_codes.values():
            delete_cut_label_if_present(self.cut_label_definitions_api, code)
        self.cut_label_codes.clear()

    def create_cut_label(self, spec: CutLabelSpec) -> str:
        local_time = CutLocalTime(hours=spec.hours, minutes=spec.minutes)
        request = CreateCutLabelDefinitionRequest(
            code=cut_label_code(spec.display_name),
            display_name=spec.display_name,
            description=spec.description,
            cut_local_time=local_time,
            time_zone=spec.time_zone,
        )
        result = self.cut_label_definitions_api.create_cut_label_definition(request)
        self.cut_label_codes[spec.display_name] = request.code

        if (
            result.display_name != spec.display_name
            or result.description != spec.description
            or result.cut_local_time != local_time
            or result.time_zone != spec.time_zone
        ):
            raise AssertionError(f"cut label {request.code} does not echo its definition")
        return request.code

    def label(self, display_name: str, day: Optional[datetime] = None) -> str:
        return cut_label(day or self.current_date, self.cut_label_codes[display_name])

    def holdings_at(self, display_name: str) -> List[PortfolioHolding]:
        return self.transaction_portfolios_api.get_holdings(
            CUT_LABELS_SCOPE, self.portfolio_code, effective_at=self.label(display_name)
        ).values

    def _check_holdings_at(
        self, display_name: str, expected: List[PortfolioHolding]
    ) -> List[PortfolioHolding]:
        holdings = self.holdings_at(display_name)
        check_holdings_match(holdings, expected)
        logger.info(
            "tutorial.cut_label.holdings_checked",
            extra={"extra_fields": {"cut_label": display_name, "holdings": len(holdings)}},
        )
        return holdings

    def run_cut_labels(self) -> Dict[str, List[PortfolioHolding]]:
        """Holdings read at each checkpoint, keyed by cut label name."""
        for spec in CUT_LABELS:
            self.create_cut_label(spec)

        instrument1, instrument2, instrument3 = self.instrument_ids[:3]
        currency_luid = f"CCY_{CURRENCY}"

        # Initial holdings from LDNOpen five days ago.
        self.transaction_portfolios_api.set_holdings(
            CUT_LABELS_SCOPE,
            self.portfolio_code,
            self.label("LDNOpen", self.current_date - timedelta(days=5)),
            [
                build_cash_funds_in_adjust_holdings_request(CURRENCY, Decimal("100000.0")),
                build_adjust_holdings_request(
                    instrument1, Decimal("100.0"), Decimal("101.0"), CURRENCY, None
                ),
                build_adjust_holdings_request(
                    instrument2, Decimal("100.0"), Decimal("102.0"), CURRENCY, None
                ),
                build_adjust_holdings_request(
                    instrument3, Decimal("100.0"), Decimal("99.0"), CURRENCY, None
                ),
            ],
        )

        def cash(units: str) -> PortfolioHolding:
            return build_cash_portfolio_holding(CURRENCY, currency_luid, Decimal(units))

        def position(instrument_id: str, units: str, cost: str) -> PortfolioHolding:
            return build_portfolio_holding(CURRENCY, instrument_id, Decimal(units), Decimal(cost))

        open1 = position(instrument1, "100.0", "10100.0")
        open2 = position(instrument2, "100.0", "10200.0")
        open3 = position(instrument3, "100.0", "9900.0")
        close1 = position(instrument1, "200.0", "20100.0")
        close2 = position(instrument2, "200.0", "20200.0")
        close3 = position(instrument3, "200.0", "19900.0")

        results: Dict[str, List[PortfolioHolding]] = {}
        results["LDNOpen_before_trades"] = self._check_holdings_at(
            "LDNOpen", [cash("100000.0"), open1, open2, open3]
        )

        # One buy of 100 at 100 GBP per cut label; instrument 1 trades twice.
        trades = [
            (instrument1, "LDNOpen"),
            (instrument2, "SGPClose"),
            (instrument3, "NYOpen"),
            (instrument1, "NYClose"),
        ]
        self.transaction_portfolios_api.upsert_transactions(
            CUT_LABELS_SCOPE,
            self.portfolio_code,
            [
                build_transaction_request(
                    instrument_id,
                    Decimal("100.0"),
                    Decimal("100.0"),
                    CURRENCY,
                    self.label(label_name),
                    "Buy",
                )
                for instrument_id, label_name in trades
            ],
        )

        results["LDNOpen"] = self._check_holdings_at(
            "LDNOpen", [cash("90000.0"), close1, open2, open3]
        )
        results["SGPClose"] = self._check_holdings_at(
            "SGPClose", [cash("80000.0"), close1, close2, open3]
        )
        results["NYOpen"] = self._check_holdings_at(
            "NYOpen", [cash("70000.0"), close1, close2, close3]
        )
        # NYClose falls after LDNClose, so the second instrument 1 buy is not yet included.
        results["LDNClose"] = self._check_holdings_at(
            "LDNClose", [cash("70000.0"), close1, close2, close3]
        )
        return results
