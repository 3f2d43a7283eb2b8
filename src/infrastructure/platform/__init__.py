"""Typed HTTP client for the platform API."""

from src.infrastructure.platform.apis import (
    AggregationApi,
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
from src.infrastructure.platform.client import ApiClient
from src.infrastructure.platform.config import platform_configured
from src.infrastructure.platform.errors import ApiException
from src.infrastructure.platform.factory import ApiFactory

__all__ = [
    "AggregationApi",
    "ApiClient",
    "ApiException",
    "ApiFactory",
    "ComplexMarketDataApi",
    "ConfigurationRecipeApi",
    "CorporateActionSourcesApi",
    "CutLabelDefinitionsApi",
    "InstrumentsApi",
    "PortfoliosApi",
    "PropertyDefinitionsApi",
    "QuotesApi",
    "SchemasApi",
    "ScopesApi",
    "TransactionPortfoliosApi",
    "platform_configured",
]
