"""
FILE: src/core/validation.py

Response checks shared by the tutorials. Every check raises AssertionError with a message
naming what was violated.
"""

from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, Optional, Sequence, Union

from src.core.instruments import NEGATIVE_PV_INSTRUMENT_TYPES
from src.core.models import (
    GetInstrumentsResponse,
    ListAggregationResponse,
    PortfolioHolding,
    UpsertInstrumentsResponse,
    UpsertQuotesResponse,
    UpsertStructuredDataResponse,
)
from src.core.test_data import (
    CURRENCY_KEY,
    LUID_KEY,
    VALUATION_DATE_KEY,
    VALUATION_PV_IN_REPORT_CCY_KEY,
    VALUATION_PV_KEY,
)

PV_ZERO_TOLERANCE = 1e-8
PV_MATURITY_TOLERANCE = 1e-12


def _check(condition: bool, message: str) -> None:
    if not condition:
        raise AssertionError(message)


def validate_upsert_instrument_response(
    response: UpsertInstrumentsResponse, expected_count: int = 1
) -> None:
    _check(not response.failed, f"instrument upsert failures: {list(response.failed)}")
    _check(
        len(response.values) == expected_count,
        f"expected {expected_count} upserted instruments, got {len(response.values)}",
    )


def validate_instrument_response(
    response: GetInstrumentsResponse, identifier: str, identifier_type: str = "ClientInternal"
) -> None:
    _check(not response.failed, f"instrument lookup failures: {list(response.failed)}")
    instrument = response.values.get(identifier)
    _check(instrument is not None, f"instrument {identifier} missing from response")
    _check(
        instrument.identifiers.get(identifier_type) == identifier,
        f"instrument {identifier_type} identifier does not match {identifier}",
    )


def validate_quote_upsert(response: UpsertQuotesResponse, expected_count: int) -> None:
    _check(not response.failed, f"quote upsert failures: {list(response.failed)}")
    _check(
        len(response.values) == expected_count,
        f"expected {expected_count} upserted quotes, got {len(response.values)}",
    )


def validate_complex_market_data_upsert(
    response: UpsertStructuredDataResponse, expected_count: int
) -> None:
    _check(not response.failed, f"market data upsert failures: {list(response.failed)}")
    _check(
        len(response.values) == expected_count,
        f"expected {expected_count} upserted market data items, got {len(response.values)}",
    )


def _as_float(value: Any) -> float:
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    raise AssertionError(f"expected a numeric result, got {value!r}")


def _as_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def check_pv_results_make_sense(
    result: ListAggregationResponse, instrument_type: Optional[str] = "Unknown"
) -> None:
    """PVs are non-zero, and non-negative unless the instrument can carry a negative PV."""
    for row in result.data:
        # Swaption PVs are not reliable enough to assert on.
        if instrument_type == "InterestRateSwaption":
            continue
        pv = _as_float(row.get(VALUATION_PV_KEY))
        _check(abs(pv) > PV_ZERO_TOLERANCE, f"expected non-zero PV, got {pv}")
        if instrument_type not in NEGATIVE_PV_INSTRUMENT_TYPES:
            _check(pv >= 0, f"expected non-negative PV for {instrument_type}, got {pv}")


def values_within_relative_tolerance(
    values: Iterable[Union[float, Decimal]], tolerance: float = 0.01
) -> bool:
    """True when every value is within `tolerance` (relative) of the first one."""
    numbers = [float(value) for value in values]
    if not numbers:
        raise ValueError("expected at least one value")
    first = numbers[0]
    if first == 0:
        return all(value == 0 for value in numbers)
    return all(abs((value - first) / first) <= tolerance for value in numbers)


def check_pv_is_constant_across_dates(
    result: ListAggregationResponse, tolerance: float = 0.015
) -> None:
    pv_by_date: Dict[datetime, float] = defaultdict(float)
    for row in result.data:
        valuation_date = _as_datetime(row.get(VALUATION_DATE_KEY))
        pv_by_date[valuation_date] += _as_float(row.get(VALUATION_PV_IN_REPORT_CCY_KEY))
    _check(
        values_within_relative_tolerance(pv_by_date.values(), tolerance),
        f"portfolio PV varies by more than {tolerance} across valuation dates",
    )


def check_converted_pv_is_constant_across_dates(
    result: ListAggregationResponse,
    conversion_rates: Dict[str, float],
    tolerance: float = 0.01,
) -> None:
    """Like `check_pv_is_constant_across_dates`, converting each row's PV by its currency.

    Rows in a currency missing from `conversion_rates` are taken as already converted.
    """
    pv_by_date: Dict[datetime, float] = defaultdict(float)
    for row in result.data:
        valuation_date = _as_datetime(row.get(VALUATION_DATE_KEY))
        rate = conversion_rates.get(row.get(CURRENCY_KEY), 1.0)
        pv_by_date[valuation_date] += _as_float(row.get(VALUATION_PV_KEY)) * rate
    _check(
        values_within_relative_tolerance(pv_by_date.values(), tolerance),
        f"converted portfolio PV varies by more than {tolerance} across valuation dates",
    )


def check_non_zero_pv_before_maturity_and_zero_after(
    result: ListAggregationResponse, maturity: datetime
) -> None:
    """Single-instrument portfolios only; the maturity date itself is not asserted on."""
    for row in result.data:
        valuation_date = _as_datetime(row.get(VALUATION_DATE_KEY))
        pv = _as_float(row.get(VALUATION_PV_KEY))
        if valuation_date < maturity:
            _check(
                abs(pv) > PV_MATURITY_TOLERANCE,
                f"expected non-zero PV before maturity on {valuation_date}, got {pv}",
            )
        elif valuation_date > maturity:
            _check(
                abs(pv) <= PV_MATURITY_TOLERANCE,
                f"expected zero PV after maturity on {valuation_date}, got {pv}",
            )


def check_no_cash_positions(result: ListAggregationResponse, currency: str) -> None:
    cash_luid = f"CCY_{currency}"
    _check(
        all(row.get(LUID_KEY) != cash_luid for row in result.data),
        f"unexpected {cash_luid} position in valuation results",
    )


def check_holdings_match(
    actual: Sequence[PortfolioHolding], expected: Sequence[PortfolioHolding]
) -> None:
    """Compare holdings field by field after ordering both sides by instrument uid."""
    _check(
        len(actual) == len(expected),
        f"expected {len(expected)} holdings, got {len(actual)}",
    )
    by_uid = sorted(actual, key=lambda holding: holding.instrument_uid)
    for got, want in zip(by_uid, sorted(expected, key=lambda holding: holding.instrument_uid)):
        for field in ("instrument_uid", "holding_type", "units", "settled_units", "currency"):
            _check(
                getattr(got, field) == getattr(want, field),
                f"holding {want.instrument_uid} {field}: "
                f"expected {getattr(want, field)}, got {getattr(got, field)}",
            )
        _check(
            got.cost.amount == want.cost.amount and got.cost.currency == want.cost.currency,
            f"holding {want.instrument_uid} cost: expected {want.cost}, got {got.cost}",
        )
