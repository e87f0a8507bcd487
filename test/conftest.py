from typing import List, Optional

import pytest
from poap_mint_client.errors import CodeAlreadyMintedError
from poap_mint_client.models import MintCodeResponse, Poap, Transaction


class FakeTokensProvider:
    """Replays scripted responses; the last one repeats once the script runs out.

    A scripted item that is an exception instance is raised instead of returned.
    """

    def __init__(
        self, transactions: Optional[list] = None, mint_codes: Optional[list] = None
    ):
        self.transactions = list(transactions or [None])
        self.mint_codes = list(
            mint_codes or [MintCodeResponse(claimed=False, is_active=True)]
        )
        self.transaction_calls = 0
        self.mint_code_calls = 0
        self.posted: List[dict] = []

    @staticmethod
    def _replay(script: list, call: int):
        item = script[min(call, len(script) - 1)]
        if isinstance(item, Exception):
            raise item
        return item

    async def get_mint_transaction(self, mint_code: str) -> Optional[Transaction]:
        self.transaction_calls += 1
        return self._replay(self.transactions, self.transaction_calls - 1)

    async def get_mint_code(self, mint_code: str) -> MintCodeResponse:
        self.mint_code_calls += 1
        return self._replay(self.mint_codes, self.mint_code_calls - 1)

    async def check_mint_code(self, mint_code: str) -> None:
        if any(p["qr_hash"] == mint_code for p in self.posted):
            raise CodeAlreadyMintedError(mint_code)

    async def post_mint_code(
        self, address: str, mint_code: str, send_email: bool = False
    ) -> dict:
        self.posted.append(
            {"address": address, "qr_hash": mint_code, "sendEmail": send_email}
        )
        return {
            "qr_hash": mint_code,
            "event": {
                "id": 99,
                "name": "Test drop",
                "image_url": "https://assets.poap.xyz/test.png",
                "city": "Buenos Aires",
                "country": "Argentina",
                "description": "A drop for tests",
                "start_date": "2024-05-01",
                "end_date": "2024-05-02",
            },
        }


class FakePoapLookup:
    def __init__(self, poaps: Optional[dict] = None):
        self.poaps = poaps or {}
        self.requested: List[int] = []

    async def get(self, poap_id: int) -> Optional[Poap]:
        self.requested.append(poap_id)
        return self.poaps.get(poap_id)


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep() -> RecordingSleep:
    """Stand-in for asyncio.sleep that records the requested delays."""
    return RecordingSleep()


@pytest.fixture
def make_provider():
    return FakeTokensProvider


@pytest.fixture
def make_lookup():
    return FakePoapLookup
