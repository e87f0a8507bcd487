from datetime import datetime

from aiohttp import web
from loguru import logger


class TokensServer:
    """Fake Tokens API that mints, confirms and indexes after fixed delays"""

    def __init__(
        self,
        transaction_time: float = 2.0,
        indexing_time: float = 1.0,
        fail_transaction: bool = False,
    ):
        self.transaction_time = transaction_time
        self.indexing_time = indexing_time
        self.fail_transaction = fail_transaction
        self.mints = {}
        self.inactive_codes = set()
        self.next_token = 1
        self.runner = None
        self.event = {
            "id": 1,
            "name": "Test drop",
            "image_url": "https://assets.poap.xyz/test-drop.png",
            "city": "Lisbon",
            "country": "Portugal",
            "description": "Drop served by the fake Tokens API",
            "start_date": "2024-05-01",
            "end_date": "2024-05-02",
        }
        self.app = web.Application()
        self.app.router.add_get("/actions/claim-qr", self.handle_get_mint_code)
        self.app.router.add_post("/actions/claim-qr", self.handle_post_mint_code)
        self.app.router.add_get(
            "/actions/claim-qr/{qr_hash}/transaction", self.handle_transaction
        )
        self.logger = logger

    def _elapsed(self, qr_hash: str) -> float:
        return (datetime.now() - self.mints[qr_hash]["started"]).total_seconds()

    def _transaction_status(self, qr_hash: str) -> str:
        if self._elapsed(qr_hash) < self.transaction_time:
            return "pending"
        return "failed" if self.fail_transaction else "passed"

    async def handle_get_mint_code(self, request):
        qr_hash = request.query.get("qr_hash", "")
        if qr_hash not in self.mints:
            return web.json_response(
                {
                    "claimed": False,
                    "is_active": qr_hash not in self.inactive_codes,
                    "result": None,
                }
            )

        mint = self.mints[qr_hash]
        indexed = (
            self._transaction_status(qr_hash) == "passed"
            and self._elapsed(qr_hash) >= self.transaction_time + self.indexing_time
        )
        self.logger.info(f"Returning mint code {qr_hash} (indexed: {indexed})")
        return web.json_response(
            {
                "claimed": True,
                "is_active": True,
                "result": {"token": mint["token"]} if indexed else None,
            }
        )

    async def handle_post_mint_code(self, request):
        body = await request.json()
        qr_hash = body["qr_hash"]
        if qr_hash in self.mints:
            return web.json_response({"message": "Code already minted"}, status=400)

        self.mints[qr_hash] = {
            "started": datetime.now(),
            "address": body["address"],
            "send_email": body.get("sendEmail", False),
            "token": self.next_token,
        }
        self.next_token += 1
        self.logger.info(f"Mint started for {qr_hash}")
        return web.json_response(
            {
                "qr_hash": qr_hash,
                "beneficiary": body["address"],
                "event": self.event,
            }
        )

    async def handle_transaction(self, request):
        qr_hash = request.match_info["qr_hash"]
        if qr_hash not in self.mints:
            return web.json_response({"message": "Not found"}, status=404)

        status = self._transaction_status(qr_hash)
        self.logger.info(
            f"Returning {status} transaction (elapsed: {self._elapsed(qr_hash):.1f}s)"
        )
        tx_hash = None
        if status == "passed":
            tx_hash = f"0x{self.mints[qr_hash]['token']:064x}"
        return web.json_response({"status": status, "tx_hash": tx_hash})

    async def start(self, port: int = 8080):
        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        site = web.TCPSite(self.runner, "localhost", port)
        await site.start()
        self.logger.info(f"Server started on port {port}")
        return site

    async def stop(self):
        if self.runner is not None:
            await self.runner.cleanup()
            self.runner = None
