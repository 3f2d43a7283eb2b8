from typing import Dict, Optional, Type, TypeVar

import httpx

from src.infrastructure.platform.apis import _ApiGroup
from src.infrastructure.platform.client import ApiClient
from src.infrastructure.platform.config import platform_access_token

A = TypeVar("A", bound=_ApiGroup)


class ApiFactory:
    """Hands out API groups that share one `ApiClient`.

    With no arguments the client is built from the `PLATFORM_*` environment. Tests inject an
    `httpx.Client` (for example a FastAPI `TestClient`) instead.
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        *,
        access_token: Optional[str] = None,
    ) -> None:
        if http_client is None:
            self._client = ApiClient.from_env()
        else:
            token = platform_access_token() if access_token is None else access_token
            self._client = ApiClient(http_client, access_token=token)
        self._apis: Dict[type, _ApiGroup] = {}

    @property
    def client(self) -> ApiClient:
        return self._client

    def api(self, api_type: Type[A]) -> A:
        if api_type not in self._apis:
            self._apis[api_type] = api_type(self._client)
        return self._apis[api_type]  # type: ignore[return-value]

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ApiFactory":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
