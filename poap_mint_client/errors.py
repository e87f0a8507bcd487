from typing import Optional


class PoapMintError(Exception):
    """Base class for errors raised while minting or polling a mint code"""


class RetryBudgetExhausted(PoapMintError):
    """Raised when a poll chain used all of its retries without a terminal state"""

    def __init__(self, max_retries: int):
        self.max_retries = max_retries
        super().__init__(f"Max retries reached ({max_retries})")


class MintFinishedWithError(PoapMintError):
    def __init__(self, reason: str, mint_code: str):
        self.reason = reason
        self.mint_code = mint_code
        super().__init__(
            f"Code: '{mint_code}', finished with error: '{reason}', "
            "please try again later"
        )


class MintPendingError(PoapMintError):
    def __init__(self, mint_code: str):
        self.mint_code = mint_code
        super().__init__(f"Mint code '{mint_code}' is still pending")


class CodeAlreadyMintedError(PoapMintError):
    def __init__(self, mint_code: str):
        self.mint_code = mint_code
        super().__init__(f"Code: '{mint_code}' already minted")


class CodeExpiredError(PoapMintError):
    def __init__(self, mint_code: str):
        self.mint_code = mint_code
        super().__init__(f"Code: '{mint_code}', has been expired")


class TokensApiError(PoapMintError):
    """Transport or protocol failure talking to the Tokens API"""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(message)
