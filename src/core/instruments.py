"""
FILE: src/core/instruments.py

Economic instrument definitions understood by the platform valuation engine.
Every definition carries an `instrumentType` discriminator on the wire.
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import Field

from src.core.common.wire import Number, PlatformModel

InstrumentType = Literal[
    "Equity",
    "SimpleInstrument",
    "Bond",
    "TermDeposit",
    "FxForward",
    "FxOption",
    "EquityOption",
    "ForwardRateAgreement",
    "ContractForDifference",
    "Future",
    "ExoticInstrument",
    "InterestRateSwap",
    "InterestRateSwaption",
    "EquitySwap",
    "FxSwap",
    "CreditDefaultSwap",
    "CdsIndex",
    "Unknown",
]

# Instrument types whose present value may legitimately be negative.
NEGATIVE_PV_INSTRUMENT_TYPES = frozenset(
    {
        "InterestRateSwap",
        "EquitySwap",
        "FxSwap",
        "FxForward",
        "CreditDefaultSwap",
        "CdsIndex",
    }
)


class FlowConventions(PlatformModel):
    currency: str = Field(examples=["USD"])
    payment_frequency: str = Field(
        description="Coupon frequency tenor; `0Invalid` marks a zero coupon schedule.",
        examples=["6M"],
    )
    roll_convention: str = Field(examples=["MF"])
    day_count_convention: str = Field(examples=["Act365"])
    payment_calendars: List[str] = Field(default_factory=list)
    reset_calendars: List[str] = Field(default_factory=list)
    settle_days: Optional[int] = None
    reset_days: Optional[int] = None


class InstrumentDefinitionFormat(PlatformModel):
    source_system: str = Field(examples=["source"])
    vendor: str = Field(examples=["someVendor"])
    version: str = Field(examples=["1.1"])


class EquityIdentifiers(PlatformModel):
    lusid_instrument_id: Optional[str] = None
    isin: Optional[str] = None
    sedol: Optional[str] = None
    cusip: Optional[str] = None
    ric: Optional[str] = None
    figi: Optional[str] = None


class Equity(PlatformModel):
    instrument_type: Literal["Equity"] = "Equity"
    dom_ccy: str = Field(examples=["USD"])
    identifiers: Optional[EquityIdentifiers] = None


class SimpleInstrument(PlatformModel):
    instrument_type: Literal["SimpleInstrument"] = "SimpleInstrument"
    dom_ccy: str
    asset_class: str = Field(examples=["Equities"])
    simple_instrument_type: str = Field(examples=["Equity"])
    maturity_date: Optional[datetime] = None
    fgn_ccys: Optional[List[str]] = None


class Bond(PlatformModel):
    instrument_type: Literal["Bond"] = "Bond"
    start_date: datetime
    maturity_date: datetime
    dom_ccy: str
    principal: Number
    coupon_rate: Number
    flow_conventions: FlowConventions
    identifiers: Dict[str, str] = Field(default_factory=dict)

    def is_zero_coupon(self) -> bool:
        return self.flow_conventions.payment_frequency == "0Invalid"


class TermDeposit(PlatformModel):
    instrument_type: Literal["TermDeposit"] = "TermDeposit"
    start_date: datetime
    maturity_date: datetime
    contract_size: Number
    flow_convention: FlowConventions
    rate: Optional[Number] = None


class FxForward(PlatformModel):
    instrument_type: Literal["FxForward"] = "FxForward"
    start_date: datetime
    maturity_date: datetime
    dom_amount: Number
    dom_ccy: str
    fgn_amount: Number
    fgn_ccy: str
    ref_spot_rate: Optional[Number] = None
    is_ndf: bool = False
    fixing_date: Optional[datetime] = None


class FxOption(PlatformModel):
    instrument_type: Literal["FxOption"] = "FxOption"
    start_date: datetime
    option_maturity_date: datetime
    option_settlement_date: datetime
    is_delivery_not_cash: bool
    is_call_not_put: bool
    strike: Number
    dom_ccy: str
    fgn_ccy: str


class EquityOption(PlatformModel):
    instrument_type: Literal["EquityOption"] = "EquityOption"
    start_date: datetime
    option_maturity_date: datetime
    option_settlement_date: datetime
    delivery_type: Literal["Cash", "Physical"]
    option_type: Literal["Call", "Put"]
    strike: Number
    dom_ccy: str
    underlying_identifier: str = Field(
        description="Identifier scheme of the underlying.", examples=["RIC"]
    )
    code: str = Field(description="Underlying identifier value.", examples=["ACME"])


class ForwardRateAgreement(PlatformModel):
    instrument_type: Literal["ForwardRateAgreement"] = "ForwardRateAgreement"
    start_date: datetime
    maturity_date: datetime
    dom_ccy: str
    fixing_date: datetime
    fra_rate: Number
    notional: Number


class ContractForDifference(PlatformModel):
    instrument_type: Literal["ContractForDifference"] = "ContractForDifference"
    start_date: datetime
    maturity_date: Optional[datetime] = None
    code: str
    contract_size: Number
    pay_ccy: str
    reference_rate: Number
    type: str
    underlying_ccy: str
    underlying_identifier: str


class ExoticInstrument(PlatformModel):
    instrument_type: Literal["ExoticInstrument"] = "ExoticInstrument"
    instrument_format: InstrumentDefinitionFormat
    content: str


class FuturesContractDetails(PlatformModel):
    dom_ccy: str
    contract_code: str
    contract_month: str
    contract_size: Number
    convention: str
    country: str
    description: str
    exchange_code: str
    exchange_name: str
    ticker_step: Number
    unit_value: Number


class Future(PlatformModel):
    instrument_type: Literal["Future"] = "Future"
    start_date: datetime
    maturity_date: datetime
    identifiers: Dict[str, str] = Field(default_factory=dict)
    contract_details: FuturesContractDetails
    contracts: Number = Decimal("1")
    ref_spot_price: Optional[Number] = None
    underlying: Optional[ExoticInstrument] = None


LusidInstrument = Annotated[
    Union[
        Equity,
        SimpleInstrument,
        Bond,
        TermDeposit,
        FxForward,
        FxOption,
        EquityOption,
        ForwardRateAgreement,
        ContractForDifference,
        ExoticInstrument,
        Future,
    ],
    Field(discriminator="instrument_type"),
]
