"""
Notion API Client
================

Minimal async client for the Notion REST API: database queries and page
creation over a shared aiohttp session.
"""

import asyncio
import ssl
from typing import Any, Dict, Optional

import aiohttp
import certifi
from pydantic import ValidationError as PydanticValidationError

from .models import DatabaseQuery, Page, PageList, Parent, PropertyValue, serialize_properties
from ..utils.logging import get_logger_for_component
from ..utils.exceptions import RecordStoreError, ErrorCode

BASE_API = "https://api.notion.com/v1"
VERSION = "2022-02-22"

_STATUS_ERROR_CODES = {
    401: ErrorCode.NOTION_UNAUTHORIZED,
    403: ErrorCode.NOTION_UNAUTHORIZED,
    404: ErrorCode.NOTION_NOT_FOUND,
    429: ErrorCode.NOTION_RATE_LIMITED,
}


class NotionClient:
    """Async Notion API client.

    Use as an async context manager; the aiohttp session lives for the
    duration of the ``async with`` block::

        async with NotionClient(token) as client:
            pages = await client.query_database(database_id)
    """

    def __init__(
        self,
        api_token: str,
        timeout: int = 30,
        base_url: str = BASE_API,
        notion_version: str = VERSION,
    ):
        """Initialize Notion client.

        Args:
            api_token: Notion integration token
            timeout: Request timeout in seconds
            base_url: API base URL
            notion_version: Value of the Notion-Version header
        """
        self.api_token = api_token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.notion_version = notion_version
        self.logger = get_logger_for_component("notion_client")

        self.ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._session: Optional[aiohttp.ClientSession] = None

    @classmethod
    def from_settings(cls, settings) -> "NotionClient":
        """Build a client from application settings."""
        return cls(
            api_token=settings.notion.api_token,
            timeout=settings.limits.request_timeout,
            base_url=settings.notion.api_base_url,
            notion_version=settings.notion.api_version,
        )

    async def __aenter__(self) -> "NotionClient":
        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Notion-Version": self.notion_version,
            "Content-Type": "application/json",
        }
        self._session = aiohttp.ClientSession(
            connector=aiohttp.TCPConnector(ssl=self.ssl_context),
            timeout=aiohttp.ClientTimeout(total=self.timeout),
            headers=headers,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        database_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Send a request and return the decoded JSON body.

        Raises:
            RecordStoreError: On transport failure, timeout or non-2xx status
        """
        if self._session is None:
            raise RecordStoreError(
                "NotionClient used outside of its 'async with' block",
                database_id=database_id,
            )

        url = f"{self.base_url}{path}"
        self.logger.debug(f"{method} {url}")

        try:
            async with self._session.request(method, url, json=payload) as response:
                if response.status >= 400:
                    detail = await self._error_detail(response)
                    raise RecordStoreError(
                        f"Notion API {method} {path} failed with HTTP {response.status}: {detail}",
                        database_id=database_id,
                        status_code=response.status,
                        error_code=_STATUS_ERROR_CODES.get(
                            response.status, ErrorCode.NOTION_REQUEST_FAILED
                        ),
                        recoverable=response.status == 429 or response.status >= 500,
                    )
                return await response.json()

        except asyncio.TimeoutError as e:
            raise RecordStoreError(
                f"Notion API {method} {path} timed out after {self.timeout}s",
                database_id=database_id,
                error_code=ErrorCode.NOTION_TIMEOUT,
                recoverable=True,
            ) from e

        except aiohttp.ContentTypeError as e:
            raise RecordStoreError(
                f"Notion API {method} {path} returned a non-JSON body",
                database_id=database_id,
                error_code=ErrorCode.NOTION_INVALID_RESPONSE,
            ) from e

        except aiohttp.ClientError as e:
            raise RecordStoreError(
                f"Notion API {method} {path} network error: {e}",
                database_id=database_id,
                error_code=ErrorCode.NOTION_NETWORK_ERROR,
                recoverable=True,
            ) from e

    @staticmethod
    async def _error_detail(response: aiohttp.ClientResponse) -> str:
        """Extract Notion's ``code: message`` from an error response."""
        try:
            body = await response.json(content_type=None)
        except (aiohttp.ClientError, ValueError):
            return response.reason or "unknown error"

        if isinstance(body, dict) and body.get("message"):
            code = body.get("code")
            return f"{code}: {body['message']}" if code else body["message"]
        return response.reason or "unknown error"

    async def query_database(
        self, database_id: str, query: Optional[DatabaseQuery] = None
    ) -> PageList:
        """Query one page of a database.

        Args:
            database_id: Target database
            query: Filter, sorts, page size and start cursor

        Returns:
            The page of results with its pagination cursor
        """
        payload = query.to_payload() if query is not None else None
        body = await self._request(
            "POST", f"/databases/{database_id}/query", payload, database_id=database_id
        )

        try:
            return PageList.model_validate(body)
        except PydanticValidationError as e:
            raise RecordStoreError(
                f"Unexpected query response from database {database_id}: {e}",
                database_id=database_id,
                error_code=ErrorCode.NOTION_INVALID_RESPONSE,
            ) from e

    async def create_page(
        self, database_id: str, properties: Dict[str, PropertyValue]
    ) -> Page:
        """Create a page (record) in a database.

        Args:
            database_id: Parent database
            properties: Property values keyed by property name

        Returns:
            The created page
        """
        payload = {
            "parent": Parent(database_id=database_id).model_dump(),
            "properties": serialize_properties(properties),
        }
        body = await self._request("POST", "/pages", payload, database_id=database_id)

        try:
            return Page.model_validate(body)
        except PydanticValidationError as e:
            raise RecordStoreError(
                f"Unexpected create response from database {database_id}: {e}",
                database_id=database_id,
                error_code=ErrorCode.NOTION_INVALID_RESPONSE,
            ) from e
