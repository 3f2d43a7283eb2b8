from datetime import datetime
from typing import Optional

from src.core.test_data import build_transaction_portfolio_request
from src.infrastructure.platform import (
    AggregationApi,
    ApiFactory,
    ComplexMarketDataApi,
    ConfigurationRecipeApi,
    CorporateActionSourcesApi,
    CutLabelDefinitionsApi,
    InstrumentsApi,
    PortfoliosApi,
    PropertyDefinitionsApi,
    QuotesApi,
    SchemasApi,
    ScopesApi,
    TransactionPortfoliosApi,
)


class TutorialBase:
    """API groups shared by every tutorial, all backed by one factory."""

    def __init__(self, api_factory: ApiFactory) -> None:
        self.api_factory = api_factory
        self.portfolios_api = api_factory.api(PortfoliosApi)
        self.transaction_portfolios_api = api_factory.api(TransactionPortfoliosApi)
        self.instruments_api = api_factory.api(InstrumentsApi)
        self.quotes_api = api_factory.api(QuotesApi)
        self.complex_market_data_api = api_factory.api(ComplexMarketDataApi)
        self.recipe_api = api_factory.api(ConfigurationRecipeApi)
        self.aggregation_api = api_factory.api(AggregationApi)
        self.cut_label_definitions_api = api_factory.api(CutLabelDefinitionsApi)
        self.corporate_action_sources_api = api_factory.api(CorporateActionSourcesApi)
        self.property_definitions_api = api_factory.api(PropertyDefinitionsApi)
        self.scopes_api = api_factory.api(ScopesApi)
        self.schemas_api = api_factory.api(SchemasApi)

    def create_transaction_portfolio(self, scope: str, created: Optional[datetime] = None) -> str:
        """Create a GBP transaction portfolio with a random code and return the code."""
        request = build_transaction_portfolio_request(created)
        portfolio = self.transaction_portfolios_api.create_portfolio(scope, request)
        if portfolio.id.code != request.code:
            raise AssertionError(f"created portfolio code {portfolio.id.code} != {request.code}")
        return request.code
