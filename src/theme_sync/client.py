"""HTTP adapter for the remote theme asset API."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any, Self

import httpx

from theme_sync.exceptions import RemoteError, RemoteErrorKind
from theme_sync.log import get_logger
from theme_sync.models import RateBudgetSnapshot, ThemeDescriptor


if TYPE_CHECKING:
    from theme_sync.config import SyncConfig


logger = get_logger(__name__)

CALL_LIMIT_HEADER = "X-Shopify-Shop-Api-Call-Limit"
TOO_MANY_REQUESTS = 429


def encode_asset_payload(payload: bytes) -> dict[str, str]:
    """Encode file contents for the asset `value` or `attachment` field.

    UTF-8 text without NUL bytes is sent as-is, anything else base64-encoded.
    """
    if b"\x00" not in payload:
        try:
            return {"value": payload.decode("utf-8")}
        except UnicodeDecodeError:
            pass
    return {"attachment": base64.b64encode(payload).decode("ascii")}


def _error_message(response: httpx.Response) -> str:
    """Extract a readable message from an error response body."""
    try:
        data = response.json()
    except ValueError:
        data = None
    errors = data.get("errors") if isinstance(data, dict) else None
    match errors:
        case str():
            detail = errors
        case dict():
            detail = "; ".join(
                f"{field}: {', '.join(map(str, msgs)) if isinstance(msgs, list) else msgs}"
                for field, msgs in errors.items()
            )
        case list():
            detail = "; ".join(map(str, errors))
        case _:
            detail = response.reason_phrase or response.text
    return f"{response.status_code} {detail}".strip()


class ThemeAssetClient:
    """Remote theme asset store client.

    Wraps asset update/delete and theme listing, translating every failure into
    a `RemoteError`. Never retries. After each call that got a response, the
    call budget header is kept as the current budget snapshot.

    Example:
        ```python
        async with ThemeAssetClient("shop.myshopify.com", key, password) as client:
            await client.update_asset("123", "templates/index.liquid", b"...")
            print(client.current_budget())
        ```
    """

    def __init__(
        self,
        host: str,
        api_key: str,
        password: str,
        *,
        api_version: str = "2024-01",
        timeout: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            host: Store host, e.g. `my-store.myshopify.com`
            api_key: Private app API key
            password: Private app password or access token
            api_version: Admin API version segment
            timeout: Network timeout per call in seconds
            transport: Optional transport override (used by tests)
        """
        self.host = host
        self.api_version = api_version
        self.timeout = timeout
        self._budget: RateBudgetSnapshot | None = None
        self._client = httpx.AsyncClient(
            base_url=f"https://{host}/admin/api/{api_version}",
            auth=(api_key, password),
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_config(
        cls,
        config: SyncConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Self:
        """Create a client from validated settings.

        Raises:
            ConfigurationError: If API key, password or host is missing
        """
        config.validate_credentials()
        api_key = config.api_key.get_secret_value() if config.api_key else ""
        password = config.password.get_secret_value() if config.password else ""
        return cls(
            config.resolved_host or "",
            api_key,
            password,
            api_version=config.api_version,
            timeout=config.timeout,
            transport=transport,
        )

    def current_budget(self) -> RateBudgetSnapshot | None:
        """Budget telemetry from the most recent completed call."""
        return self._budget

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            msg = f"{method} {url} timed out after {self.timeout}s"
            raise RemoteError(RemoteErrorKind.TIMEOUT, msg) from e
        except httpx.HTTPError as e:
            msg = f"{method} {url} failed: {e}"
            raise RemoteError(RemoteErrorKind.UNKNOWN, msg) from e

        if budget := RateBudgetSnapshot.parse(response.headers.get(CALL_LIMIT_HEADER)):
            self._budget = budget
        if response.is_success:
            return response

        status = response.status_code
        kind = (
            RemoteErrorKind.INVALID_REQUEST
            if 400 <= status < 500 and status != TOO_MANY_REQUESTS  # noqa: PLR2004
            else RemoteErrorKind.UNKNOWN
        )
        raise RemoteError(kind, _error_message(response), status_code=status)

    async def update_asset(
        self, theme_id: str, key: str, payload: bytes
    ) -> RateBudgetSnapshot | None:
        """Create or overwrite an asset.

        Returns:
            The budget snapshot reported with the response, if any

        Raises:
            RemoteError: If the call failed
        """
        asset = {"key": key, **encode_asset_payload(payload)}
        url = f"/themes/{theme_id}/assets.json"
        response = await self._request("PUT", url, json={"asset": asset})
        return RateBudgetSnapshot.parse(response.headers.get(CALL_LIMIT_HEADER))

    async def delete_asset(self, theme_id: str, key: str) -> RateBudgetSnapshot | None:
        """Remove an asset.

        Returns:
            The budget snapshot reported with the response, if any

        Raises:
            RemoteError: If the call failed
        """
        params = {"asset[key]": key}
        url = f"/themes/{theme_id}/assets.json"
        response = await self._request("DELETE", url, params=params)
        return RateBudgetSnapshot.parse(response.headers.get(CALL_LIMIT_HEADER))

    async def list_themes(self) -> list[ThemeDescriptor]:
        """Fetch all themes of the store."""
        response = await self._request("GET", "/themes.json")
        try:
            data = response.json()
            return [ThemeDescriptor.from_api(theme) for theme in data.get("themes", [])]
        except (ValueError, KeyError, AttributeError, TypeError) as e:
            msg = f"Malformed theme list: {e}"
            raise RemoteError(RemoteErrorKind.UNKNOWN, msg) from e

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
