"""
FILE: src/core/tutorials/setup.py

Idempotent setup and teardown helpers. Each helper tolerates exactly the platform errors
that mean "already done" for its own operation and re-raises everything else.
"""

import logging
from typing import Optional

from src.core.models import (
    CorporateActionSource,
    CreateCorporateActionSourceRequest,
    CreatePropertyDefinitionRequest,
    PropertyDefinition,
    PropertyDomain,
    ResourceId,
)
from src.infrastructure.platform import (
    ApiException,
    CorporateActionSourcesApi,
    CutLabelDefinitionsApi,
    PropertyDefinitionsApi,
)

logger = logging.getLogger(__name__)

CORPORATE_ACTION_SOURCE_ALREADY_EXISTS = "173"
CORPORATE_ACTION_SOURCE_NOT_FOUND = "391"
HTTP_NOT_FOUND = 404


def create_corporate_action_source_if_absent(
    api: CorporateActionSourcesApi, request: CreateCorporateActionSourceRequest
) -> Optional[CorporateActionSource]:
    try:
        return api.create_corporate_action_source(request)
    except ApiException as exc:
        if exc.error_code != CORPORATE_ACTION_SOURCE_ALREADY_EXISTS:
            raise
        logger.info(
            "corporate_action_source.already_exists",
            extra={"extra_fields": {"scope": request.scope, "code": request.code}},
        )
        return None


def delete_corporate_action_source_if_present(
    api: CorporateActionSourcesApi, scope: str, code: str
) -> None:
    try:
        api.delete_corporate_action_source(scope, code)
    except ApiException as exc:
        if exc.error_code != CORPORATE_ACTION_SOURCE_NOT_FOUND:
            raise
        logger.info(
            "corporate_action_source.not_found",
            extra={"extra_fields": {"scope": scope, "code": code}},
        )


def ensure_property_definition(
    api: PropertyDefinitionsApi,
    domain: PropertyDomain,
    scope: str,
    code: str,
    *,
    display_name: Optional[str] = None,
    data_type_id: Optional[ResourceId] = None,
) -> PropertyDefinition:
    """Fetch the property definition, creating it when the platform answers 404."""
    try:
        return api.get_property_definition(domain, scope, code)
    except ApiException as exc:
        if exc.status_code != HTTP_NOT_FOUND:
            raise
    logger.info(
        "property_definition.created",
        extra={"extra_fields": {"domain": domain, "scope": scope, "code": code}},
    )
    return api.create_property_definition(
        CreatePropertyDefinitionRequest(
            domain=domain,
            scope=scope,
            code=code,
            value_required=False,
            display_name=display_name or code,
            data_type_id=data_type_id or ResourceId(scope="system", code="string"),
            life_time="Perpetual",
        )
    )


def delete_cut_label_if_present(api: CutLabelDefinitionsApi, code: str) -> None:
    try:
        api.delete_cut_label_definition(code)
    except ApiException as exc:
        if exc.status_code != HTTP_NOT_FOUND:
            raise
