import asyncio

from poap_mint_client.mint_client import MintClient
from poap_mint_client.models import Poap, PollingConfig
from poap_mint_client.tokens_api import TokensApiClient
from tokens_server import TokensServer

ADDRESS = "0xf6b6f07862a02c85628b3a9688beae07fea9c863"


class DemoPoapLookup:
    async def get(self, poap_id: int):
        return Poap(id=poap_id, drop_id=1, collector_address=ADDRESS)


async def main():
    PORT = 8000
    server = TokensServer(transaction_time=5.0, indexing_time=2.0)
    await server.start(port=PORT)
    print(f"Server started on http://localhost:{PORT}")

    config = PollingConfig(max_retries=20, initial_delay=500, backoff_factor=1.5)

    async with TokensApiClient(f"http://localhost:{PORT}") as tokens_api:
        client = MintClient(tokens_api, DemoPoapLookup(), config)

        try:
            await client.mint_async("demo-code", ADDRESS)
            transaction = await client.wait_mint_status("demo-code")
            print(f"Transaction passed: {transaction.tx_hash}")

            status = await client.wait_poap_indexed("demo-code")
            print(f"POAP {status.poap_id} indexed")
        except Exception as e:
            print(f"Error occurred: {e}")

    await server.stop()


if __name__ == "__main__":
    asyncio.run(main())
