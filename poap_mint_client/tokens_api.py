from typing import Any, Optional, Protocol

import aiohttp
from loguru import logger
from poap_mint_client.errors import (
    CodeAlreadyMintedError,
    CodeExpiredError,
    TokensApiError,
)
from poap_mint_client.models import MintCodeResponse, Poap, Transaction
from pydantic import ValidationError

DEFAULT_TOKENS_API_URL = "https://api.poap.tech"


class StatusProvider(Protocol):
    """Read side of the Tokens API used by the pollers"""

    async def get_mint_transaction(self, mint_code: str) -> Optional[Transaction]:
        ...

    async def get_mint_code(self, mint_code: str) -> MintCodeResponse:
        ...


class TokensApiProvider(StatusProvider, Protocol):
    async def check_mint_code(self, mint_code: str) -> None:
        ...

    async def post_mint_code(
        self, address: str, mint_code: str, send_email: bool = False
    ) -> dict:
        ...


class PoapLookup(Protocol):
    async def get(self, poap_id: int) -> Optional[Poap]:
        ...


class TokensApiClient:
    """aiohttp client for the Tokens API.

    Use it as an async context manager, or call ``close()`` when done. The
    underlying session is created on first use.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_TOKENS_API_URL,
        api_key: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.logger = logger
        self._session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "TokensApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["X-API-Key"] = self.api_key
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def _request(
        self,
        method: str,
        path: str,
        allow_not_found: bool = False,
        **kwargs,
    ) -> Optional[Any]:
        url = f"{self.base_url}{path}"
        try:
            async with self._get_session().request(method, url, **kwargs) as response:
                if allow_not_found and response.status == 404:
                    return None
                response.raise_for_status()

                if response.content_length == 0:
                    return None
                return await response.json()
        except aiohttp.ClientResponseError as e:
            self.logger.error(f"HTTP error {e.status} at {url}: {e.message}")
            raise TokensApiError(f"{method} {url} failed: {e.message}", e.status) from e
        except aiohttp.ClientError as e:
            self.logger.error(f"Request to {url} failed: {e}")
            raise TokensApiError(f"{method} {url} failed: {e}") from e

    async def get_mint_code(self, mint_code: str) -> MintCodeResponse:
        data = await self._request(
            "GET", "/actions/claim-qr", params={"qr_hash": mint_code}
        )
        try:
            return MintCodeResponse.model_validate(data)
        except ValidationError as e:
            raise TokensApiError(f"Invalid mint code response: {e}") from e

    async def get_mint_transaction(self, mint_code: str) -> Optional[Transaction]:
        data = await self._request(
            "GET", f"/actions/claim-qr/{mint_code}/transaction", allow_not_found=True
        )
        if not data:
            return None
        try:
            return Transaction.model_validate(data)
        except ValidationError as e:
            raise TokensApiError(f"Invalid transaction response: {e}") from e

    async def check_mint_code(self, mint_code: str) -> None:
        """Raise if the mint code can no longer be used"""
        response = await self.get_mint_code(mint_code)
        if response.claimed:
            raise CodeAlreadyMintedError(mint_code)
        if not response.is_active:
            raise CodeExpiredError(mint_code)

    async def post_mint_code(
        self, address: str, mint_code: str, send_email: bool = False
    ) -> dict:
        data = await self._request(
            "POST",
            "/actions/claim-qr",
            json={"address": address, "qr_hash": mint_code, "sendEmail": send_email},
        )
        return data or {}
