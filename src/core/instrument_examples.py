from datetime import timedelta
from decimal import Decimal

from src.core.instruments import (
    Bond,
    ContractForDifference,
    Equity,
    EquityIdentifiers,
    EquityOption,
    ExoticInstrument,
    FlowConventions,
    ForwardRateAgreement,
    Future,
    FuturesContractDetails,
    FxForward,
    FxOption,
    InstrumentDefinitionFormat,
    LusidInstrument,
    SimpleInstrument,
    TermDeposit,
)
from src.core.test_data import START_DATE, add_months, add_years


def create_example_fx_forward(is_ndf: bool = True) -> FxForward:
    maturity_date = add_months(START_DATE, 9)
    return FxForward(
        dom_amount=Decimal("1"),
        fgn_amount=Decimal("-123"),
        dom_ccy="USD",
        fgn_ccy="JPY",
        ref_spot_rate=Decimal("100"),
        start_date=START_DATE,
        maturity_date=maturity_date,
        fixing_date=maturity_date - timedelta(days=1),
        is_ndf=is_ndf,
    )


def create_example_forward_rate_agreement() -> ForwardRateAgreement:
    return ForwardRateAgreement(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 1),
        fixing_date=add_months(START_DATE, 11),
        fra_rate=Decimal("0.05"),
        notional=Decimal("1000000"),
        dom_ccy="GBP",
    )


def create_example_fx_option(is_delivery_not_cash: bool = True) -> FxOption:
    maturity_date = add_years(START_DATE, 1)
    return FxOption(
        strike=Decimal("130"),
        dom_ccy="USD",
        fgn_ccy="JPY",
        start_date=START_DATE,
        option_maturity_date=maturity_date,
        option_settlement_date=maturity_date + timedelta(days=2),
        is_call_not_put=True,
        is_delivery_not_cash=is_delivery_not_cash,
    )


def create_example_equity_option(is_cash_settled: bool = False) -> EquityOption:
    maturity_date = add_years(START_DATE, 1)
    return EquityOption(
        start_date=START_DATE,
        option_maturity_date=maturity_date,
        option_settlement_date=maturity_date + timedelta(days=2),
        delivery_type="Cash" if is_cash_settled else "Physical",
        option_type="Call",
        strike=Decimal("130"),
        dom_ccy="USD",
        underlying_identifier="RIC",
        code="ACME",
    )


def create_example_simple_instrument() -> SimpleInstrument:
    return SimpleInstrument(dom_ccy="USD", asset_class="Equities", simple_instrument_type="Equity")


def create_example_equity() -> Equity:
    return Equity(dom_ccy="USD", identifiers=EquityIdentifiers(isin="US-000402625-0"))


def _flow_conventions(
    currency: str,
    payment_frequency: str,
    roll_convention: str,
    day_count: str,
    settle_days: int,
    reset_days: int,
) -> FlowConventions:
    return FlowConventions(
        currency=currency,
        payment_frequency=payment_frequency,
        roll_convention=roll_convention,
        day_count_convention=day_count,
        payment_calendars=[],
        reset_calendars=[],
        settle_days=settle_days,
        reset_days=reset_days,
    )


def create_example_bond() -> Bond:
    return Bond(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 6),
        dom_ccy="USD",
        principal=Decimal("100"),
        coupon_rate=Decimal("0.05"),
        flow_conventions=_flow_conventions("USD", "6M", "MF", "Act365", 2, 2),
    )


def create_example_zero_coupon_bond() -> Bond:
    return Bond(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 6),
        dom_ccy="USD",
        principal=Decimal("100"),
        coupon_rate=Decimal("0"),
        flow_conventions=FlowConventions(
            currency="USD",
            payment_frequency="0Invalid",
            roll_convention="MF",
            day_count_convention="Act365",
            settle_days=2,
        ),
    )


def create_example_cfd() -> ContractForDifference:
    return ContractForDifference(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 6),
        code="some-id",
        contract_size=Decimal("10"),
        pay_ccy="USD",
        reference_rate=Decimal("0"),
        type="Futures",
        underlying_ccy="USD",
        underlying_identifier="RIC",
    )


def create_example_term_deposit() -> TermDeposit:
    return TermDeposit(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 1),
        contract_size=Decimal("1000000"),
        flow_convention=_flow_conventions("USD", "6M", "MF", "Act365", 2, 2),
    )


def create_example_exotic() -> ExoticInstrument:
    return ExoticInstrument(
        instrument_format=InstrumentDefinitionFormat(
            source_system="source", vendor="someVendor", version="1.1"
        ),
        content='{"data":"exoticInstrument"}',
    )


def create_example_future() -> Future:
    contract_details = FuturesContractDetails(
        dom_ccy="USD",
        contract_code="CL",
        contract_month="F",
        contract_size=Decimal("42000"),
        convention="Actual365",
        country="US",
        description="Crude Oil Nymex future Jan21",
        exchange_code="NYM",
        exchange_name="NYM",
        ticker_step=Decimal("0.01"),
        unit_value=Decimal("4.2"),
    )
    return Future(
        start_date=START_DATE,
        maturity_date=add_years(START_DATE, 6),
        contract_details=contract_details,
        contracts=Decimal("1"),
        ref_spot_price=Decimal("100"),
        underlying=ExoticInstrument(
            instrument_format=InstrumentDefinitionFormat(
                source_system="custom", vendor="custom", version="0.0.0"
            ),
            content="{}",
        ),
    )


_EXAMPLES_BY_NAME = {
    "Bond": create_example_bond,
    "FxForward": create_example_fx_forward,
    "FxOption": create_example_fx_option,
    "ContractForDifference": create_example_cfd,
}


def get_example_instrument(instrument_name: str) -> LusidInstrument:
    try:
        factory = _EXAMPLES_BY_NAME[instrument_name]
    except KeyError:
        raise ValueError(f"no example instrument for {instrument_name}") from None
    return factory()
