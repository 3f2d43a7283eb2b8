import os


def env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed >= 1 else default


def platform_api_url() -> str:
    url = os.getenv("PLATFORM_API_URL", "").strip()
    if not url:
        raise RuntimeError("PLATFORM_API_URL_REQUIRED")
    return url.rstrip("/") + "/"


def platform_access_token() -> str:
    return os.getenv("PLATFORM_ACCESS_TOKEN", "").strip()


def platform_timeout_seconds() -> int:
    return env_int("PLATFORM_TIMEOUT_SECONDS", 30)


def platform_application_name() -> str:
    return os.getenv("PLATFORM_APPLICATION_NAME", "").strip() or "platform-tutorials"


def platform_configured() -> bool:
    return bool(os.getenv("PLATFORM_API_URL", "").strip())
