import json
from typing import Any, Dict, Optional


class ApiException(Exception):
    """Non-2xx response from the platform.

    `status_code` is the HTTP status. `error_code` is the platform business code carried in
    the JSON error body (for example "173" when a corporate action source already exists).
    """

    def __init__(self, status_code: int, reason: str = "", error_content: str = "") -> None:
        super().__init__(f"({status_code}) {reason}".strip())
        self.status_code = status_code
        self.reason = reason
        self.error_content = error_content

    @property
    def body(self) -> Dict[str, Any]:
        if not self.error_content:
            return {}
        try:
            parsed = json.loads(self.error_content)
        except ValueError:
            return {}
        return parsed if isinstance(parsed, dict) else {}

    @property
    def error_code(self) -> Optional[str]:
        code = self.body.get("code")
        if code is None:
            return None
        return str(code)

    def __str__(self) -> str:
        message = f"({self.status_code}) {self.reason}".strip()
        if self.error_content:
            message = f"{message}\nbody={self.error_content}"
        return message
