import re
from typing import FrozenSet, Optional
from uuid import uuid4

from pydantic.alias_generators import to_pascal

from src.core.models import CreateTransactionPortfolioRequest, Portfolio, Schema
from src.core.tutorials.base import TutorialBase

SCHEMA_SCOPE = "finbourne"
ENTITY_SCHEMA_RELATION = "EntitySchema"
ENTITY_TYPE_PATTERN = re.compile(r".+/(\w+)")


def portfolio_field_names() -> FrozenSet[str]:
    """Portfolio attributes as the schema endpoint names them (PascalCase)."""
    return frozenset(to_pascal(name) for name in Portfolio.model_fields)


def entity_type_from_schema_url(schema_url: str) -> str:
    match = ENTITY_TYPE_PATTERN.match(schema_url)
    if match is None:
        raise ValueError(f"cannot read an entity type from {schema_url}")
    return match.group(1)


class SchemaTutorial(TutorialBase):
    def get_schema_for_portfolio(self, scope: str = SCHEMA_SCOPE) -> Schema:
        """Follow the EntitySchema link of a new portfolio and check the schema's field names."""
        code = f"id-{uuid4()}"
        self.transaction_portfolios_api.create_portfolio(
            scope,
            CreateTransactionPortfolioRequest(
                code=code, display_name=f"Portfolio-{code}", base_currency="GBP"
            ),
        )
        portfolio = self.portfolios_api.get_portfolio(scope, code)

        schema_url: Optional[str] = next(
            (link.href for link in portfolio.links if link.relation == ENTITY_SCHEMA_RELATION),
            None,
        )
        if schema_url is None:
            raise AssertionError(f"portfolio {scope}/{code} has no {ENTITY_SCHEMA_RELATION} link")

        schema = self.schemas_api.get_entity_schema(entity_type_from_schema_url(schema_url))
        if not schema.values:
            raise AssertionError("entity schema has no fields")

        fields = portfolio_field_names()
        unknown = sorted(
            field.display_name
            for field in schema.values.values()
            if field.display_name not in fields
        )
        if unknown:
            raise AssertionError(f"schema fields missing from Portfolio: {unknown}")
        return schema
