from typing import Optional

from loguru import logger
from poap_mint_client.backoff import BackoffEngine
from poap_mint_client.models import MintCodeResponse, MintStatus
from poap_mint_client.tokens_api import StatusProvider


class PoapIndexed:
    """Waits until the POAP minted with a mint code is indexed.

    Not being indexed yet is the only retry condition, so this stage ends with
    a ``MintStatus`` or with the backoff engine running out of retries.
    """

    def __init__(
        self,
        provider: StatusProvider,
        mint_code: str,
        backoff: Optional[BackoffEngine] = None,
    ):
        self.provider = provider
        self.mint_code = mint_code
        self.backoff = backoff or BackoffEngine()
        self.logger = logger

    async def _get_mint_code(self) -> MintCodeResponse:
        return await self.provider.get_mint_code(self.mint_code)

    async def wait_poap_indexed(self) -> MintStatus:
        response = await self._get_mint_code()
        while response.result is None:
            self.logger.debug(f"POAP for mint '{self.mint_code}' not indexed yet")
            response = await self.backoff.schedule_retry(self._get_mint_code)

        self.logger.info(
            f"POAP {response.result.token} indexed for mint '{self.mint_code}'"
        )
        return MintStatus.from_response(response)
