"""
API authentication using X-API-KEY header.
"""

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from src.config.settings import get_settings

api_key_header = APIKeyHeader(name="X-API-KEY", auto_error=False)


def _configured_keys() -> list[str]:
    raw = get_settings().api_keys or ""
    return [k.strip() for k in raw.split(",") if k.strip()]


async def verify_api_key(api_key: str | None = Security(api_key_header)) -> str:
    """
    Verify API key from X-API-KEY header.

    Admin operations (threshold changes, manual alerts, pruning) are
    protected; with no keys configured every request is allowed.

    Args:
        api_key: API key from header

    Returns:
        The validated API key, or "dev-mode"

    Raises:
        HTTPException: If API key is missing or invalid
    """
    valid_keys = _configured_keys()
    if not valid_keys:
        return "dev-mode"

    if api_key is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing API key. Provide X-API-KEY header.",
        )

    if api_key not in valid_keys:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )

    return api_key
