from typing import Any, Callable, Optional

from loguru import logger
from poap_mint_client.backoff import BackoffEngine
from poap_mint_client.errors import MintFinishedWithError, MintPendingError
from poap_mint_client.models import (
    MintTransactionResult,
    PollOutcome,
    Retry,
    Success,
    TerminalFailure,
    Transaction,
    TransactionStatus,
)
from poap_mint_client.tokens_api import StatusProvider

TRANSACTION_FAILED_REASON = "The Transaction associated with this mint failed"


class MintChecker:
    """Polls the transaction of a mint code until it passes or fails.

    Missing or pending transactions, unknown statuses and provider errors are
    all retried through the backoff engine. A failed transaction raises
    ``MintFinishedWithError`` without further retries.
    """

    def __init__(
        self,
        provider: StatusProvider,
        mint_code: str,
        backoff: Optional[BackoffEngine] = None,
        on_status_change: Optional[Callable[[Optional[Transaction]], Any]] = None,
    ):
        self.provider = provider
        self.mint_code = mint_code
        self.backoff = backoff or BackoffEngine()
        self.on_status_change = on_status_change
        self.logger = logger
        self._last_status: Optional[TransactionStatus] = None

    def _evaluate(
        self, transaction: Optional[Transaction]
    ) -> PollOutcome[MintTransactionResult]:
        """Decide what to do with one transaction snapshot"""
        if transaction is None:
            return Retry("transaction not yet created")
        if transaction.status == TransactionStatus.pending:
            return Retry("transaction pending")
        if transaction.status == TransactionStatus.passed:
            return Success(MintTransactionResult(tx_hash=transaction.tx_hash))
        if transaction.status == TransactionStatus.failed:
            return TerminalFailure(TRANSACTION_FAILED_REASON)

        raise MintPendingError(self.mint_code)

    async def _handle_status_change(self, transaction: Optional[Transaction]) -> None:
        status = transaction.status if transaction else None
        if status != self._last_status:
            self.logger.debug(f"Mint '{self.mint_code}' transaction status is {status}")
            self._last_status = status
            if self.on_status_change is not None:
                await self.on_status_change(transaction)

    async def _check_once(self) -> PollOutcome[MintTransactionResult]:
        try:
            transaction = await self.provider.get_mint_transaction(self.mint_code)
        except MintFinishedWithError:
            raise
        except Exception as e:
            self.logger.warning(
                f"Error checking transaction for mint '{self.mint_code}': {e}"
            )
            return Retry(str(e))

        await self._handle_status_change(transaction)

        try:
            return self._evaluate(transaction)
        except MintPendingError as e:
            self.logger.warning(f"Unexpected transaction status: {e}")
            return Retry(str(e))

    async def check_mint_status(self) -> MintTransactionResult:
        """Wait until the mint transaction reaches a final status"""
        outcome = await self._check_once()
        while isinstance(outcome, Retry):
            outcome = await self.backoff.schedule_retry(self._check_once)

        if isinstance(outcome, TerminalFailure):
            self.logger.error(f"Mint '{self.mint_code}' failed: {outcome.reason}")
            raise MintFinishedWithError(outcome.reason, self.mint_code)

        self.logger.info(
            f"Mint '{self.mint_code}' transaction passed: {outcome.value.tx_hash}"
        )
        return outcome.value
