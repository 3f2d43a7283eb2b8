import json
import logging
import time
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from src.core.common.wire import to_wire
from src.infrastructure.observability import current_correlation_id
from src.infrastructure.platform.config import (
    platform_access_token,
    platform_api_url,
    platform_application_name,
    platform_timeout_seconds,
)
from src.infrastructure.platform.errors import ApiException

logger = logging.getLogger("platform.client")

M = TypeVar("M")


def _query_value(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_query(params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """Flatten query parameters; lists become repeated keys and `None` values are dropped."""
    encoded: List[Tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            encoded.extend((key, _query_value(item)) for item in value)
            continue
        encoded.append((key, _query_value(value)))
    return encoded


def decode_json(text: str) -> Any:
    if not text:
        return None
    return json.loads(text, parse_float=Decimal)


class ApiClient:
    """Synchronous transport shared by every API group.

    Request bodies are serialised by alias with `None` fields omitted. Every call carries the
    current correlation id and is logged once it completes.
    """

    def __init__(self, http_client: httpx.Client, *, access_token: str = "") -> None:
        self._http = http_client
        self._access_token = access_token

    @classmethod
    def from_env(cls) -> "ApiClient":
        http_client = httpx.Client(
            base_url=platform_api_url(),
            timeout=httpx.Timeout(float(platform_timeout_seconds())),
            headers={"User-Agent": platform_application_name()},
        )
        return cls(http_client, access_token=platform_access_token())

    def close(self) -> None:
        self._http.close()

    def _headers(self, has_body: bool) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Correlation-Id": current_correlation_id(),
        }
        if has_body:
            headers["Content-Type"] = "application/json"
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> Any:
        content = None if body is None else json.dumps(to_wire(body))
        started = time.perf_counter()
        response = self._http.request(
            method,
            path,
            params=encode_query(params),
            content=content,
            headers=self._headers(content is not None),
        )
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "platform.request.completed",
            extra={
                "extra_fields": {
                    "http_method": method,
                    "endpoint": path,
                    "status_code": response.status_code,
                    "latency_ms": latency_ms,
                }
            },
        )
        if not response.is_success:
            raise ApiException(
                status_code=response.status_code,
                reason=response.reason_phrase,
                error_content=response.text,
            )
        return decode_json(response.text)

    def call(
        self,
        method: str,
        path: str,
        response_type: Type[M],
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Any = None,
    ) -> M:
        data = self.request(method, path, params=params, body=body)
        if isinstance(response_type, type) and issubclass(response_type, BaseModel):
            return response_type.model_validate(data or {})
        return TypeAdapter(response_type).validate_python(data)
