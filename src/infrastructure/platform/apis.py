"""
FILE: src/infrastructure/platform/apis.py

API groups exposed by the platform. Each group is a thin, typed view over `ApiClient`:
one method per endpoint, request models in, response models out.
"""

from datetime import datetime
from typing import Dict, List, Optional, Union
from urllib.parse import quote

from src.core.models import (
    AdjustHoldingRequest,
    AdjustHoldingsResponse,
    CorporateAction,
    CorporateActionSource,
    CreateCorporateActionSourceRequest,
    CreateCutLabelDefinitionRequest,
    CreatePropertyDefinitionRequest,
    CreateTransactionPortfolioRequest,
    CutLabelDefinition,
    DateTimeOrCutLabel,
    DeletedEntityResponse,
    DeleteInstrumentResponse,
    GetInstrumentsResponse,
    GetQuotesResponse,
    GetRecipeResponse,
    HoldingAdjustment,
    InlineValuationRequest,
    Instrument,
    InstrumentCashFlow,
    InstrumentDefinition,
    InstrumentIdTypeDescriptor,
    ListAggregationResponse,
    Portfolio,
    PortfolioHolding,
    PortfolioProperties,
    PropertyDefinition,
    QuoteSeriesId,
    ResourceList,
    Schema,
    Scope,
    Transaction,
    TransactionRequest,
    UpsertComplexMarketDataRequest,
    UpsertCorporateActionRequest,
    UpsertCorporateActionsResponse,
    UpsertInstrumentPropertiesResponse,
    UpsertInstrumentPropertyRequest,
    UpsertInstrumentsResponse,
    UpsertPortfolioTransactionsResponse,
    UpsertQuoteRequest,
    UpsertQuotesResponse,
    UpsertRecipeRequest,
    UpsertSingleStructuredDataResponse,
    UpsertStructuredDataResponse,
    ValuationRequest,
)
from src.infrastructure.platform.client import ApiClient


def _segment(value: Union[str, datetime]) -> str:
    if isinstance(value, datetime):
        value = value.isoformat()
    return quote(value, safe="")


class _ApiGroup:
    def __init__(self, client: ApiClient) -> None:
        self.client = client


class InstrumentsApi(_ApiGroup):
    def upsert_instruments(
        self, request_body: Dict[str, InstrumentDefinition]
    ) -> UpsertInstrumentsResponse:
        return self.client.call("POST", "instruments", UpsertInstrumentsResponse, body=request_body)

    def get_instruments(
        self,
        identifier_type: str,
        request_body: List[str],
        *,
        as_at: Optional[datetime] = None,
        property_keys: Optional[List[str]] = None,
    ) -> GetInstrumentsResponse:
        return self.client.call(
            "POST",
            "instruments/$get",
            GetInstrumentsResponse,
            params={
                "identifierType": identifier_type,
                "asAt": as_at,
                "propertyKeys": property_keys,
            },
            body=request_body,
        )

    def get_instrument(
        self,
        identifier_type: str,
        identifier: str,
        *,
        property_keys: Optional[List[str]] = None,
    ) -> Instrument:
        return self.client.call(
            "GET",
            f"instruments/{_segment(identifier_type)}/{_segment(identifier)}",
            Instrument,
            params={"propertyKeys": property_keys},
        )

    def delete_instrument(self, identifier_type: str, identifier: str) -> DeleteInstrumentResponse:
        return self.client.call(
            "DELETE",
            f"instruments/{_segment(identifier_type)}/{_segment(identifier)}",
            DeleteInstrumentResponse,
        )

    def list_instruments(
        self, *, limit: Optional[int] = None, filter: Optional[str] = None
    ) -> ResourceList[Instrument]:
        return self.client.call(
            "GET",
            "instruments",
            ResourceList[Instrument],
            params={"limit": limit, "filter": filter},
        )

    def get_instrument_identifier_types(self) -> ResourceList[InstrumentIdTypeDescriptor]:
        return self.client.call(
            "GET", "instruments/identifierTypes", ResourceList[InstrumentIdTypeDescriptor]
        )

    def upsert_instruments_properties(
        self, request_body: List[UpsertInstrumentPropertyRequest]
    ) -> UpsertInstrumentPropertiesResponse:
        return self.client.call(
            "POST",
            "instruments/$upsertproperties",
            UpsertInstrumentPropertiesResponse,
            body=request_body,
        )


class TransactionPortfoliosApi(_ApiGroup):
    def _path(self, scope: str, code: Optional[str] = None) -> str:
        path = f"transactionportfolios/{_segment(scope)}"
        if code is not None:
            path = f"{path}/{_segment(code)}"
        return path

    def create_portfolio(
        self, scope: str, request: CreateTransactionPortfolioRequest
    ) -> Portfolio:
        return self.client.call("POST", self._path(scope), Portfolio, body=request)

    def upsert_transactions(
        self, scope: str, code: str, transactions: List[TransactionRequest]
    ) -> UpsertPortfolioTransactionsResponse:
        return self.client.call(
            "POST",
            f"{self._path(scope, code)}/transactions",
            UpsertPortfolioTransactionsResponse,
            body=transactions,
        )

    def get_transactions(
        self,
        scope: str,
        code: str,
        *,
        from_transaction_date: Optional[DateTimeOrCutLabel] = None,
        to_transaction_date: Optional[DateTimeOrCutLabel] = None,
        property_keys: Optional[List[str]] = None,
        as_at: Optional[datetime] = None,
    ) -> ResourceList[Transaction]:
        return self.client.call(
            "GET",
            f"{self._path(scope, code)}/transactions",
            ResourceList[Transaction],
            params={
                "fromTransactionDate": from_transaction_date,
                "toTransactionDate": to_transaction_date,
                "propertyKeys": property_keys,
                "asAt": as_at,
            },
        )

    def cancel_transactions(
        self, scope: str, code: str, transaction_ids: List[str]
    ) -> DeletedEntityResponse:
        return self.client.call(
            "DELETE",
            f"{self._path(scope, code)}/transactions",
            DeletedEntityResponse,
            params={"transactionIds": transaction_ids},
        )

    def get_holdings(
        self,
        scope: str,
        code: str,
        *,
        effective_at: Optional[DateTimeOrCutLabel] = None,
        property_keys: Optional[List[str]] = None,
        as_at: Optional[datetime] = None,
    ) -> ResourceList[PortfolioHolding]:
        return self.client.call(
            "GET",
            f"{self._path(scope, code)}/holdings",
            ResourceList[PortfolioHolding],
            params={
                "effectiveAt": effective_at,
                "asAt": as_at,
                "propertyKeys": property_keys,
            },
        )

    def set_holdings(
        self,
        scope: str,
        code: str,
        effective_at: DateTimeOrCutLabel,
        adjust_holding_requests: List[AdjustHoldingRequest],
    ) -> AdjustHoldingsResponse:
        return self.client.call(
            "PUT",
            f"{self._path(scope, code)}/holdings/{_segment(effective_at)}",
            AdjustHoldingsResponse,
            body=adjust_holding_requests,
        )

    def list_holdings_adjustments(
        self,
        scope: str,
        code: str,
        *,
        from_effective_at: Optional[DateTimeOrCutLabel] = None,
        to_effective_at: Optional[DateTimeOrCutLabel] = None,
    ) -> ResourceList[HoldingAdjustment]:
        return self.client.call(
            "GET",
            f"{self._path(scope, code)}/holdingsadjustments",
            ResourceList[HoldingAdjustment],
            params={"fromEffectiveAt": from_effective_at, "toEffectiveAt": to_effective_at},
        )

    def get_portfolio_cash_flows(
        self,
        scope: str,
        code: str,
        *,
        effective_at: Optional[DateTimeOrCutLabel] = None,
        window_start: Optional[DateTimeOrCutLabel] = None,
        window_end: Optional[DateTimeOrCutLabel] = None,
        recipe_id_scope: Optional[str] = None,
        recipe_id_code: Optional[str] = None,
    ) -> ResourceList[InstrumentCashFlow]:
        return self.client.call(
            "GET",
            f"{self._path(scope, code)}/cashflows",
            ResourceList[InstrumentCashFlow],
            params={
                "effectiveAt": effective_at,
                "windowStart": window_start,
                "windowEnd": window_end,
                "recipeIdScope": recipe_id_scope,
                "recipeIdCode": recipe_id_code,
            },
        )

    def get_upsertable_portfolio_cash_flows(
        self,
        scope: str,
        code: str,
        *,
        effective_at: Optional[DateTimeOrCutLabel] = None,
        window_start: Optional[DateTimeOrCutLabel] = None,
        window_end: Optional[DateTimeOrCutLabel] = None,
        recipe_id_scope: Optional[str] = None,
        recipe_id_code: Optional[str] = None,
    ) -> ResourceList[Transaction]:
        """Cash flows in the window, shaped as transactions that can be booked back."""
        return self.client.call(
            "GET",
            f"{self._path(scope, code)}/upsertablecashflows",
            ResourceList[Transaction],
            params={
                "effectiveAt": effective_at,
                "windowStart": window_start,
                "windowEnd": window_end,
                "recipeIdScope": recipe_id_scope,
                "recipeIdCode": recipe_id_code,
            },
        )


class PortfoliosApi(_ApiGroup):
    def get_portfolio(
        self, scope: str, code: str, *, effective_at: Optional[DateTimeOrCutLabel] = None
    ) -> Portfolio:
        return self.client.call(
            "GET",
            f"portfolios/{_segment(scope)}/{_segment(code)}",
            Portfolio,
            params={"effectiveAt": effective_at},
        )

    def list_portfolios_for_scope(self, scope: str) -> ResourceList[Portfolio]:
        return self.client.call("GET", f"portfolios/{_segment(scope)}", ResourceList[Portfolio])

    def get_portfolio_properties(self, scope: str, code: str) -> PortfolioProperties:
        return self.client.call(
            "GET",
            f"portfolios/{_segment(scope)}/{_segment(code)}/properties",
            PortfolioProperties,
        )

    def delete_portfolio(self, scope: str, code: str) -> DeletedEntityResponse:
        return self.client.call(
            "DELETE", f"portfolios/{_segment(scope)}/{_segment(code)}", DeletedEntityResponse
        )


class QuotesApi(_ApiGroup):
    def upsert_quotes(
        self, scope: str, request_body: Dict[str, UpsertQuoteRequest]
    ) -> UpsertQuotesResponse:
        return self.client.call(
            "POST", f"quotes/{_segment(scope)}", UpsertQuotesResponse, body=request_body
        )

    def get_quotes(
        self,
        scope: str,
        request_body: Dict[str, QuoteSeriesId],
        *,
        effective_at: Optional[DateTimeOrCutLabel] = None,
        as_at: Optional[datetime] = None,
        max_age: Optional[str] = None,
    ) -> GetQuotesResponse:
        return self.client.call(
            "POST",
            f"quotes/{_segment(scope)}/$get",
            GetQuotesResponse,
            params={"effectiveAt": effective_at, "asAt": as_at, "maxAge": max_age},
            body=request_body,
        )


class ComplexMarketDataApi(_ApiGroup):
    def upsert_complex_market_data(
        self, scope: str, request_body: Dict[str, UpsertComplexMarketDataRequest]
    ) -> UpsertStructuredDataResponse:
        return self.client.call(
            "POST",
            f"complexmarketdata/{_segment(scope)}",
            UpsertStructuredDataResponse,
            body=request_body,
        )


class CorporateActionSourcesApi(_ApiGroup):
    def create_corporate_action_source(
        self, request: CreateCorporateActionSourceRequest
    ) -> CorporateActionSource:
        return self.client.call(
            "POST", "corporateactionsources", CorporateActionSource, body=request
        )

    def list_corporate_action_sources(self) -> ResourceList[CorporateActionSource]:
        return self.client.call(
            "GET", "corporateactionsources", ResourceList[CorporateActionSource]
        )

    def delete_corporate_action_source(self, scope: str, code: str) -> DeletedEntityResponse:
        return self.client.call(
            "DELETE",
            f"corporateactionsources/{_segment(scope)}/{_segment(code)}",
            DeletedEntityResponse,
        )

    def batch_upsert_corporate_actions(
        self, scope: str, code: str, actions: List[UpsertCorporateActionRequest]
    ) -> UpsertCorporateActionsResponse:
        return self.client.call(
            "POST",
            f"corporateactionsources/{_segment(scope)}/{_segment(code)}/corporateactions",
            UpsertCorporateActionsResponse,
            body=actions,
        )

    def get_corporate_actions(self, scope: str, code: str) -> ResourceList[CorporateAction]:
        return self.client.call(
            "GET",
            f"corporateactionsources/{_segment(scope)}/{_segment(code)}/corporateactions",
            ResourceList[CorporateAction],
        )


class ConfigurationRecipeApi(_ApiGroup):
    def upsert_configuration_recipe(
        self, request: UpsertRecipeRequest
    ) -> UpsertSingleStructuredDataResponse:
        return self.client.call(
            "POST", "recipes", UpsertSingleStructuredDataResponse, body=request
        )

    def get_configuration_recipe(self, scope: str, code: str) -> GetRecipeResponse:
        return self.client.call(
            "GET", f"recipes/{_segment(scope)}/{_segment(code)}", GetRecipeResponse
        )

    def delete_configuration_recipe(self, scope: str, code: str) -> DeletedEntityResponse:
        return self.client.call(
            "DELETE", f"recipes/{_segment(scope)}/{_segment(code)}", DeletedEntityResponse
        )


class AggregationApi(_ApiGroup):
    def get_valuation(self, request: ValuationRequest) -> ListAggregationResponse:
        return self.client.call(
            "POST", "aggregation/$valuation", ListAggregationResponse, body=request
        )

    def get_valuation_of_weighted_instruments(
        self, request: InlineValuationRequest
    ) -> ListAggregationResponse:
        return self.client.call(
            "POST", "aggregation/$valuationinlined", ListAggregationResponse, body=request
        )


class PropertyDefinitionsApi(_ApiGroup):
    def create_property_definition(
        self, request: CreatePropertyDefinitionRequest
    ) -> PropertyDefinition:
        return self.client.call("POST", "propertydefinitions", PropertyDefinition, body=request)

    def get_property_definition(self, domain: str, scope: str, code: str) -> PropertyDefinition:
        return self.client.call(
            "GET",
            f"propertydefinitions/{_segment(domain)}/{_segment(scope)}/{_segment(code)}",
            PropertyDefinition,
        )

    def delete_property_definition(
        self, domain: str, scope: str, code: str
    ) -> DeletedEntityResponse:
        return self.client.call(
            "DELETE",
            f"propertydefinitions/{_segment(domain)}/{_segment(scope)}/{_segment(code)}",
            DeletedEntityResponse,
        )


class CutLabelDefinitionsApi(_ApiGroup):
    def create_cut_label_definition(
        self, request: CreateCutLabelDefinitionRequest
    ) -> CutLabelDefinition:
        return self.client.call("POST", "cutlabels", CutLabelDefinition, body=request)

    def get_cut_label_definition(self, code: str) -> CutLabelDefinition:
        return self.client.call("GET", f"cutlabels/{_segment(code)}", CutLabelDefinition)

    def delete_cut_label_definition(self, code: str) -> DeletedEntityResponse:
        return self.client.call("DELETE", f"cutlabels/{_segment(code)}", DeletedEntityResponse)


class ScopesApi(_ApiGroup):
    def list_scopes(self) -> ResourceList[Scope]:
        return self.client.call("GET", "scopes", ResourceList[Scope])


class SchemasApi(_ApiGroup):
    def get_entity_schema(self, entity: str) -> Schema:
        return self.client.call("GET", f"schemas/entities/{_segment(entity)}", Schema)
