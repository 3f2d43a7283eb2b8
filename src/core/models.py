"""
FILE: src/core/models.py
"""

from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import Field, model_validator

from src.core.common.wire import Number, PlatformModel
from src.core.instruments import LusidInstrument

# Either an absolute timestamp or a cut label such as "2024-01-10NLDNOpen".
DateTimeOrCutLabel = Union[datetime, str]

InstrumentIdType = Literal[
    "LusidInstrumentId",
    "Figi",
    "RIC",
    "QuotePermId",
    "Isin",
    "CurrencyPair",
    "ClientInternal",
    "Sedol",
    "Cusip",
]

QuoteType = Literal[
    "Price",
    "Spread",
    "Rate",
    "LogNormalVol",
    "NormalVol",
    "ParSpread",
    "IsdaSpread",
    "Upfront",
    "Index",
    "Ratio",
    "Delta",
    "PoolFactor",
]

PricingModel = Literal[
    "SimpleStatic",
    "ConstantTimeValueOfMoney",
    "Discounting",
    "BlackScholes",
    "Bachelier",
    "BlackScholesDigital",
    "HullWhite",
    "BlackToFlat",
    "Black76",
]

AggregateOp = Literal[
    "Value",
    "Sum",
    "Proportion",
    "Average",
    "Count",
    "Min",
    "Max",
]

PropertyDomain = Literal[
    "Instrument",
    "Portfolio",
    "Transaction",
    "Holding",
    "Person",
    "LegalEntity",
]

PropertyLifeTime = Literal["Perpetual", "TimeVariant"]

HoldingType = Literal["P", "B", "A", "R", "F", "C", "D", "N", "U", "CF"]

T = TypeVar("T")


class ResourceId(PlatformModel):
    scope: str = Field(description="Scope of the referenced entity.", examples=["Testdemo"])
    code: str = Field(description="Code of the referenced entity.", examples=["recipe-01"])


class Link(PlatformModel):
    relation: str = Field(description="Link relation name.", examples=["EntitySchema"])
    href: str = Field(description="Absolute link target.")
    description: Optional[str] = None
    method: Optional[str] = None


class ErrorDetail(PlatformModel):
    id: Optional[str] = None
    type: Optional[str] = None
    detail: Optional[str] = None


class Version(PlatformModel):
    effective_from: Optional[datetime] = None
    as_at_date: Optional[datetime] = None


class ResourceList(PlatformModel, Generic[T]):
    values: List[T] = Field(
        default_factory=list,
        description="Page of resources returned by a list endpoint.",
    )
    next_page: Optional[str] = Field(default=None, description="Token for the next page.")
    previous_page: Optional[str] = Field(
        default=None, description="Token for the previous page."
    )
    links: List[Link] = Field(default_factory=list)


class DeletedEntityResponse(PlatformModel):
    as_at: Optional[datetime] = None
    effective_from: Optional[datetime] = None


class CurrencyAndAmount(PlatformModel):
    amount: Optional[Number] = Field(
        default=None, description="Amount in the given currency.", examples=[10100]
    )
    currency: Optional[str] = Field(
        default=None, description="ISO currency code.", examples=["GBP"]
    )


class TransactionPrice(PlatformModel):
    price: Optional[Number] = Field(default=None, description="Price per unit.", examples=[101])
    type: Optional[Literal["Price", "Yield", "Spread"]] = Field(
        default="Price", description="How the price is expressed."
    )


class MetricValue(PlatformModel):
    value: Optional[Number] = Field(default=None, description="Numeric value.", examples=[199.23])
    unit: Optional[str] = Field(
        default=None, description="Unit, usually a currency.", examples=["USD"]
    )


class PropertyValue(PlatformModel):
    label_value: Optional[str] = Field(
        default=None, description="Text value of a label property.", examples=["Construction"]
    )
    metric_value: Optional[MetricValue] = Field(
        default=None, description="Numeric value of a metric property."
    )


class Property(PlatformModel):
    key: str = Field(
        description="Property key in the form {domain}/{scope}/{code}.",
        examples=["Instrument/Testdemo/CustomSector"],
    )
    value: PropertyValue
    effective_from: Optional[datetime] = None


class PerpetualProperty(PlatformModel):
    key: str
    value: PropertyValue


# Portfolios


class CreateTransactionPortfolioRequest(PlatformModel):
    display_name: str = Field(
        description="Human readable portfolio name.", examples=["Portfolio-1"]
    )
    code: str = Field(description="Portfolio code, unique within its scope.")
    base_currency: str = Field(description="Portfolio base currency.", examples=["GBP"])
    description: Optional[str] = None
    created: Optional[datetime] = Field(
        default=None,
        description="Effective date from which the portfolio exists.",
        examples=["2018-01-01T00:00:00Z"],
    )
    corporate_action_source_id: Optional[ResourceId] = Field(
        default=None,
        description="Corporate action source applied to holdings of this portfolio.",
    )
    properties: Optional[Dict[str, Property]] = None


class Portfolio(PlatformModel):
    href: Optional[str] = None
    id: ResourceId
    type: Optional[str] = Field(default=None, examples=["Transaction", "Reference"])
    display_name: Optional[str] = None
    description: Optional[str] = None
    created: Optional[datetime] = None
    parent_portfolio_id: Optional[ResourceId] = None
    version: Optional[Version] = None
    is_derived: Optional[bool] = None
    base_currency: Optional[str] = None
    properties: Dict[str, Property] = Field(default_factory=dict)
    relationships: List[Dict[str, Any]] = Field(default_factory=list)
    instrument_scopes: List[str] = Field(default_factory=list)
    accounting_method: Optional[str] = None
    amortisation_method: Optional[str] = None
    transaction_type_scope: Optional[str] = None
    cash_gain_loss_calculation_date: Optional[str] = None
    links: List[Link] = Field(default_factory=list)


class PortfolioProperties(PlatformModel):
    properties: Dict[str, Property] = Field(default_factory=dict)
    version: Optional[Version] = None


# Transactions


class TransactionRequest(PlatformModel):
    transaction_id: str = Field(description="Unique transaction identifier.")
    type: str = Field(description="Transaction type configured on the platform.", examples=["Buy"])
    instrument_identifiers: Dict[str, str] = Field(
        description="Instrument identifiers keyed by identifier property key.",
        examples=[{"Instrument/default/LusidInstrumentId": "LUID_00003D4X"}],
    )
    transaction_date: DateTimeOrCutLabel
    settlement_date: DateTimeOrCutLabel
    units: Number
    transaction_price: Optional[TransactionPrice] = None
    total_consideration: CurrencyAndAmount
    exchange_rate: Optional[Number] = None
    transaction_currency: Optional[str] = None
    properties: Optional[Dict[str, PerpetualProperty]] = None
    counterparty_id: Optional[str] = None
    source: Optional[str] = Field(default=None, examples=["Broker"])


class Transaction(PlatformModel):
    transaction_id: str
    type: str
    instrument_identifiers: Dict[str, str] = Field(default_factory=dict)
    instrument_scope: Optional[str] = None
    instrument_uid: Optional[str] = None
    transaction_date: Optional[datetime] = None
    settlement_date: Optional[datetime] = None
    units: Optional[Decimal] = None
    transaction_price: Optional[TransactionPrice] = None
    total_consideration: Optional[CurrencyAndAmount] = None
    exchange_rate: Optional[Decimal] = None
    transaction_currency: Optional[str] = None
    properties: Dict[str, PerpetualProperty] = Field(default_factory=dict)
    counterparty_id: Optional[str] = None
    source: Optional[str] = None


class UpsertPortfolioTransactionsResponse(PlatformModel):
    version: Optional[Version] = None
    href: Optional[str] = None


# Holdings


class TargetTaxLotRequest(PlatformModel):
    units: Number = Field(description="Units held in the tax lot.", examples=[100])
    cost: Optional[CurrencyAndAmount] = None
    portfolio_cost: Optional[Number] = None
    price: Optional[Number] = None
    purchase_date: Optional[datetime] = None
    settlement_date: Optional[datetime] = None


class AdjustHoldingRequest(PlatformModel):
    instrument_identifiers: Dict[str, str]
    sub_holding_keys: Optional[Dict[str, PerpetualProperty]] = None
    properties: Optional[Dict[str, PerpetualProperty]] = None
    tax_lots: List[TargetTaxLotRequest]
    currency: Optional[str] = None


class AdjustHoldingsResponse(PlatformModel):
    version: Optional[Version] = None
    href: Optional[str] = None


class HoldingAdjustment(PlatformModel):
    effective_at: datetime
    version: Optional[Version] = None
    unmatched_holding_method: Optional[str] = None


class PortfolioHolding(PlatformModel):
    instrument_uid: str = Field(
        description="Resolved platform instrument id.", examples=["CCY_GBP"]
    )
    holding_type: str = Field(
        description="P = position, B = cash balance, A = accrual.", examples=["B"]
    )
    units: Decimal
    settled_units: Decimal
    cost: CurrencyAndAmount
    cost_portfolio_ccy: Optional[CurrencyAndAmount] = None
    currency: Optional[str] = None
    properties: Dict[str, Property] = Field(default_factory=dict)
    sub_holding_keys: Dict[str, PerpetualProperty] = Field(default_factory=dict)


class InstrumentCashFlow(PlatformModel):
    payment_date: Optional[datetime] = None
    amount: Optional[Decimal] = None
    currency: Optional[str] = None
    source_portfolio_id: Optional[ResourceId] = None
    source_transaction_id: Optional[str] = None
    source_instrument_id: Optional[str] = None
    diagnostics: Dict[str, str] = Field(default_factory=dict)


# Instruments


class InstrumentIdValue(PlatformModel):
    value: str = Field(description="Identifier value.", examples=["BBG000C6K6G9"])
    effective_at: Optional[datetime] = None


class InstrumentDefinition(PlatformModel):
    name: str = Field(description="Instrument display name.", examples=["VODAFONE GROUP PLC"])
    identifiers: Dict[str, InstrumentIdValue] = Field(
        description="Identifiers keyed by identifier scheme.",
        examples=[{"Figi": {"value": "BBG000C6K6G9"}}],
    )
    properties: Optional[List[Property]] = None
    look_through_portfolio_id: Optional[ResourceId] = None
    definition: Optional[LusidInstrument] = Field(
        default=None, description="Economic definition used for valuation."
    )


class Instrument(PlatformModel):
    lusid_instrument_id: str = Field(
        description="Platform instrument id.", examples=["LUID_00003D4X"]
    )
    name: Optional[str] = None
    identifiers: Dict[str, str] = Field(default_factory=dict)
    properties: List[Property] = Field(default_factory=list)
    version: Optional[Version] = None
    state: Optional[str] = None
    instrument_definition: Optional[Union[LusidInstrument, Dict[str, Any]]] = Field(
        default=None, union_mode="left_to_right"
    )


class UpsertInstrumentsResponse(PlatformModel):
    values: Dict[str, Instrument] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


class GetInstrumentsResponse(PlatformModel):
    values: Dict[str, Instrument] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


class DeleteInstrumentResponse(PlatformModel):
    as_at: Optional[datetime] = None


class UpsertInstrumentPropertyRequest(PlatformModel):
    identifier_type: str = Field(examples=["Figi"])
    identifier: str = Field(examples=["BBG000BF4KL1"])
    properties: List[Property] = Field(default_factory=list)


class UpsertInstrumentPropertiesResponse(PlatformModel):
    as_at_date: Optional[datetime] = None


class InstrumentIdTypeDescriptor(PlatformModel):
    identifier_type: str
    property_key: Optional[str] = None
    is_unique_identifier_type: Optional[bool] = None


# Quotes


class QuoteSeriesId(PlatformModel):
    provider: str = Field(description="Market data provider.", examples=["DataScope"])
    price_source: Optional[str] = Field(default=None, examples=["BankA"])
    instrument_id: str = Field(
        description="Instrument the quote is for.", examples=["BBG000B9XRY4"]
    )
    instrument_id_type: InstrumentIdType
    quote_type: QuoteType
    field: str = Field(default="mid", description="Quote field.", examples=["mid"])


class QuoteId(PlatformModel):
    quote_series_id: QuoteSeriesId
    effective_at: datetime


class UpsertQuoteRequest(PlatformModel):
    quote_id: QuoteId
    metric_value: MetricValue
    lineage: Optional[str] = Field(default=None, examples=["InternalSystem"])


class Quote(PlatformModel):
    quote_id: QuoteId
    metric_value: Optional[MetricValue] = None
    lineage: Optional[str] = None
    uploaded_by: Optional[str] = None
    as_at: Optional[datetime] = None


class UpsertQuotesResponse(PlatformModel):
    values: Dict[str, Quote] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


class GetQuotesResponse(PlatformModel):
    values: Dict[str, Quote] = Field(default_factory=dict)
    not_found: Dict[str, ErrorDetail] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


# Complex market data


class ComplexMarketDataId(PlatformModel):
    provider: str = Field(examples=["Lusid"])
    price_source: Optional[str] = None
    lineage: Optional[str] = None
    effective_at: datetime
    market_asset: str = Field(
        description="Name the valuation engine resolves market data by.",
        examples=["USD/USDOIS", "ACME/USD/LN"],
    )


class MarketQuote(PlatformModel):
    quote_type: QuoteType
    value: Number


class DiscountFactorCurveData(PlatformModel):
    market_data_type: Literal["DiscountFactorCurveData"] = "DiscountFactorCurveData"
    base_date: datetime
    dates: List[datetime]
    discount_factors: List[Number]

    @model_validator(mode="after")
    def validate_dates_match_discount_factors(self) -> "DiscountFactorCurveData":
        if len(self.dates) != len(self.discount_factors):
            raise ValueError("number of discount factors must match number of dates")
        return self


class EquityVolSurfaceData(PlatformModel):
    market_data_type: Literal["EquityVolSurfaceData"] = "EquityVolSurfaceData"
    base_date: datetime
    instruments: List[LusidInstrument]
    quotes: List[MarketQuote]


class FxVolSurfaceData(PlatformModel):
    market_data_type: Literal["FxVolSurfaceData"] = "FxVolSurfaceData"
    base_date: datetime
    instruments: List[LusidInstrument]
    quotes: List[MarketQuote]


class OpaqueMarketData(PlatformModel):
    market_data_type: Literal["OpaqueMarketData"] = "OpaqueMarketData"
    document: str
    format: str = "Json"
    name: str


ComplexMarketData = Annotated[
    Union[DiscountFactorCurveData, EquityVolSurfaceData, FxVolSurfaceData, OpaqueMarketData],
    Field(discriminator="market_data_type"),
]


class UpsertComplexMarketDataRequest(PlatformModel):
    market_data_id: ComplexMarketDataId
    market_data: ComplexMarketData


class UpsertStructuredDataResponse(PlatformModel):
    values: Dict[str, Any] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


class UpsertSingleStructuredDataResponse(PlatformModel):
    value: Optional[Any] = None
    href: Optional[str] = None


# Corporate actions


class CreateCorporateActionSourceRequest(PlatformModel):
    scope: str
    code: str
    display_name: str = Field(examples=["Test Source"])
    description: Optional[str] = None


class CorporateActionSource(PlatformModel):
    id: ResourceId
    display_name: Optional[str] = None
    description: Optional[str] = None


class CorporateActionTransitionComponentRequest(PlatformModel):
    instrument_identifiers: Dict[str, str]
    units_factor: Number = Field(description="Units multiplier applied by the transition.")
    cost_factor: Number = Field(description="Cost multiplier applied by the transition.")


class CorporateActionTransitionRequest(PlatformModel):
    input_transition: CorporateActionTransitionComponentRequest
    output_transitions: List[CorporateActionTransitionComponentRequest]


class UpsertCorporateActionRequest(PlatformModel):
    corporate_action_code: str
    description: Optional[str] = None
    announcement_date: datetime
    ex_date: datetime
    record_date: datetime
    payment_date: datetime
    transitions: List[CorporateActionTransitionRequest]


class CorporateAction(PlatformModel):
    corporate_action_code: str
    description: Optional[str] = None
    announcement_date: Optional[datetime] = None
    ex_date: Optional[datetime] = None
    record_date: Optional[datetime] = None
    payment_date: Optional[datetime] = None


class UpsertCorporateActionsResponse(PlatformModel):
    values: Dict[str, CorporateAction] = Field(default_factory=dict)
    failed: Dict[str, ErrorDetail] = Field(default_factory=dict)


# Recipes


class MarketDataKeyRule(PlatformModel):
    key: str = Field(description="Market data key pattern.", examples=["Quote.RIC.*"])
    supplier: str = Field(examples=["Lusid"])
    data_scope: str = Field(description="Scope the rule resolves data from.")
    quote_type: QuoteType
    field: str = "mid"
    quote_interval: Optional[str] = Field(
        default=None,
        description="Look-back window within which a quote remains usable.",
        examples=["1M", "10Y"],
    )
    as_at: Optional[datetime] = None
    price_source: Optional[str] = None


class DependencySourceFilter(PlatformModel):
    instrument_type: Optional[str] = None
    asset_class: Optional[str] = None
    dom_ccy: Optional[str] = None


class MarketDataSpecificRule(PlatformModel):
    key: str
    supplier: str
    data_scope: str
    quote_type: QuoteType
    field: str = "mid"
    quote_interval: Optional[str] = None
    as_at: Optional[datetime] = None
    price_source: Optional[str] = None
    dependency_source_filter: DependencySourceFilter


class MarketOptions(PlatformModel):
    default_supplier: Optional[str] = None
    default_instrument_code_type: Optional[str] = None
    default_scope: Optional[str] = None
    attempt_to_infer_missing_fx: Optional[bool] = None


class MarketContextSuppliers(PlatformModel):
    commodity: Optional[str] = None
    credit: Optional[str] = None
    equity: Optional[str] = None
    fx: Optional[str] = None
    rates: Optional[str] = None


class MarketContext(PlatformModel):
    market_rules: Optional[List[MarketDataKeyRule]] = None
    suppliers: Optional[MarketContextSuppliers] = None
    options: Optional[MarketOptions] = None
    specific_rules: Optional[List[MarketDataSpecificRule]] = None


class ModelSelection(PlatformModel):
    library: Literal["Lusid", "RefinitivQps", "RefinitivTracsWeb", "VolMaster", "IsdaCds"] = "Lusid"
    model: PricingModel


class PricingOptions(PlatformModel):
    model_selection: Optional[ModelSelection] = None
    use_instrument_type_to_determine_pricer: Optional[bool] = None
    allow_any_instruments_with_sec_uid_to_price_off_lookup: Optional[bool] = None
    window_valuation_on_instrument_start_end: Optional[bool] = None


class VendorModelRule(PlatformModel):
    supplier: str = "Lusid"
    model_name: str
    instrument_type: str
    parameters: str = "{}"


class PricingContext(PlatformModel):
    model_rules: Optional[List[VendorModelRule]] = None
    options: Optional[PricingOptions] = None


class ConfigurationRecipe(PlatformModel):
    scope: str
    code: str
    market: Optional[MarketContext] = None
    pricing: Optional[PricingContext] = None
    description: Optional[str] = None


class UpsertRecipeRequest(PlatformModel):
    configuration_recipe: ConfigurationRecipe


class GetRecipeResponse(PlatformModel):
    value: Optional[ConfigurationRecipe] = None
    href: Optional[str] = None


# Valuation


class AggregateSpec(PlatformModel):
    key: str = Field(description="Result key to aggregate.", examples=["Valuation/PV/Amount"])
    op: AggregateOp


class OrderBySpec(PlatformModel):
    key: str
    sort_order: Literal["Ascending", "Descending"] = "Ascending"


class ValuationSchedule(PlatformModel):
    effective_from: Optional[datetime] = None
    effective_at: datetime
    tenor: Optional[str] = None


class PortfolioEntityId(PlatformModel):
    scope: str
    code: str
    portfolio_entity_type: Optional[str] = None


class ValuationRequest(PlatformModel):
    recipe_id: ResourceId
    metrics: List[AggregateSpec]
    group_by: Optional[List[str]] = None
    sort: Optional[List[OrderBySpec]] = None
    report_currency: Optional[str] = None
    valuation_schedule: ValuationSchedule
    portfolio_entity_ids: List[PortfolioEntityId]


class WeightedInstrument(PlatformModel):
    quantity: Number
    holding_identifier: str
    instrument: LusidInstrument


class InlineValuationRequest(PlatformModel):
    recipe_id: ResourceId
    metrics: List[AggregateSpec]
    group_by: Optional[List[str]] = None
    sort: Optional[List[OrderBySpec]] = None
    report_currency: Optional[str] = None
    valuation_schedule: ValuationSchedule
    instruments: List[WeightedInstrument]


class ResultDataSchema(PlatformModel):
    properties_list: List[Dict[str, Any]] = Field(default_factory=list)


class ListAggregationResponse(PlatformModel):
    aggregation_effective_at: Optional[datetime] = None
    aggregation_as_at: Optional[datetime] = None
    data: List[Dict[str, Any]] = Field(
        default_factory=list,
        description="One row per group with metric keys mapped to their values.",
    )
    aggregation_currency: Optional[str] = None
    data_schema: Optional[ResultDataSchema] = None
    aggregation_failures: List[Dict[str, Any]] = Field(default_factory=list)


# Configuration and metadata


class CreatePropertyDefinitionRequest(PlatformModel):
    domain: PropertyDomain
    scope: str
    code: str
    value_required: Optional[bool] = None
    display_name: str
    data_type_id: ResourceId
    life_time: Optional[PropertyLifeTime] = None
    description: Optional[str] = None


class PropertyDefinition(PlatformModel):
    key: str
    value_type: Optional[str] = None
    display_name: Optional[str] = None
    data_type_id: Optional[ResourceId] = None
    life_time: Optional[str] = None
    domain: Optional[str] = None
    scope: Optional[str] = None
    code: Optional[str] = None


class CutLocalTime(PlatformModel):
    hours: int = Field(ge=0, le=23)
    minutes: int = Field(ge=0, le=59)


class CreateCutLabelDefinitionRequest(PlatformModel):
    code: str = Field(max_length=20)
    display_name: str
    description: Optional[str] = None
    cut_local_time: CutLocalTime
    time_zone: str = Field(examples=["GB", "Singapore", "America/New_York"])


class CutLabelDefinition(PlatformModel):
    code: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    cut_local_time: Optional[CutLocalTime] = None
    time_zone: Optional[str] = None


class Scope(PlatformModel):
    scope: str


class FieldSchema(PlatformModel):
    scope: Optional[str] = None
    display_name: str
    type: Optional[str] = None
    description: Optional[str] = None


class Schema(PlatformModel):
    entity: Optional[str] = None
    href: Optional[str] = None
    values: Dict[str, FieldSchema] = Field(default_factory=dict)
