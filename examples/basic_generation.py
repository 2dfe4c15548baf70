"""
basic_generation.py — Minimal genrelay example.

Generates text twice for the same prompt (the second call is a cache hit),
then streams a reply chunk by chunk.

Usage:
    export GENRELAY_API_KEY=...
    python examples/basic_generation.py
"""

import logging

from genrelay import ClientBuilder, LoggingObserver


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)

    async with ClientBuilder().profile("production").with_observers([LoggingObserver()]).build() as client:
        text = await client.generate_text("Explain exponential backoff in one sentence.")
        print(text)

        again = await client.generate_text("Explain exponential backoff in one sentence.")
        print(f"cached: {again == text}")

        async for chunk in client.generate_stream("Write a haiku about queues."):
            if chunk.is_complete:
                print(f"\n[finish={chunk.metadata.finish_reason} tokens={chunk.metadata.token_count}]")
            elif chunk.text:
                print(chunk.text, end="", flush=True)

        print(client.get_stats())


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
