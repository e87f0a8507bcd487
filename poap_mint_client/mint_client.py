from typing import Optional

from loguru import logger
from poap_mint_client.backoff import BackoffEngine
from poap_mint_client.errors import MintFinishedWithError
from poap_mint_client.mint_checker import MintChecker
from poap_mint_client.models import (
    MintStatus,
    MintTransactionResult,
    Poap,
    PoapReservation,
    PollingConfig,
)
from poap_mint_client.poap_indexed import PoapIndexed
from poap_mint_client.tokens_api import PoapLookup, TokensApiProvider

TOKEN_NOT_AVAILABLE_REASON = "Token is not yet available"


class MintClient:
    def __init__(
        self,
        tokens_provider: TokensApiProvider,
        poap_lookup: Optional[PoapLookup] = None,
        config: Optional[PollingConfig] = None,
    ):
        self.tokens_provider = tokens_provider
        self.poap_lookup = poap_lookup
        self.config = config or PollingConfig()
        self.logger = logger

    def _new_backoff(self) -> BackoffEngine:
        return BackoffEngine.from_config(self.config)

    async def get_mint_code(self, mint_code: str) -> MintStatus:
        """Current mint status of a mint code, without waiting"""
        response = await self.tokens_provider.get_mint_code(mint_code)
        return MintStatus.from_response(response)

    async def wait_mint_status(self, mint_code: str) -> MintTransactionResult:
        """Wait until the mint transaction of a mint code passes or fails"""
        checker = MintChecker(self.tokens_provider, mint_code, self._new_backoff())
        return await checker.check_mint_status()

    async def wait_poap_indexed(self, mint_code: str) -> MintStatus:
        """Wait until the POAP minted with a mint code is indexed"""
        indexed = PoapIndexed(self.tokens_provider, mint_code, self._new_backoff())
        return await indexed.wait_poap_indexed()

    async def mint_async(self, mint_code: str, address: str) -> None:
        """Submit a mint and return without waiting for it to finish"""
        await self.tokens_provider.check_mint_code(mint_code)
        await self.tokens_provider.post_mint_code(address, mint_code, send_email=False)
        self.logger.info(f"Mint '{mint_code}' submitted for {address}")

    async def mint_sync(self, mint_code: str, address: str) -> Poap:
        """Mint and wait for the resulting POAP.

        Confirms the transaction, then waits for indexing, then fetches the
        POAP by id.

        Raises:
            MintFinishedWithError: the transaction failed, or the POAP is not
                available right after indexing.
            RetryBudgetExhausted: a stage gave up waiting.
        """
        if self.poap_lookup is None:
            raise ValueError("mint_sync requires a poap_lookup")

        await self.mint_async(mint_code, address)
        await self.wait_mint_status(mint_code)
        mint_status = await self.wait_poap_indexed(mint_code)

        poap = await self.poap_lookup.get(mint_status.poap_id)
        if poap is None:
            self.logger.error(
                f"POAP {mint_status.poap_id} for mint '{mint_code}' "
                "not found after indexing"
            )
            raise MintFinishedWithError(TOKEN_NOT_AVAILABLE_REASON, mint_code)

        return poap

    async def email_reservation(
        self, mint_code: str, email: str, send_email: bool = True
    ) -> PoapReservation:
        """Reserve the POAP of a mint code for an email address"""
        await self.tokens_provider.check_mint_code(mint_code)

        response = await self.tokens_provider.post_mint_code(
            email, mint_code, send_email=send_email
        )
        self.logger.info(f"Mint '{mint_code}' reserved for {email}")
        return PoapReservation.from_event(email, response["event"])
