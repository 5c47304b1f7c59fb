"""Terminal client for the chat panel WebSocket, for manual testing."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time

import websockets

DEFAULT_URL = "ws://127.0.0.1:8000/ws"


async def run_client(url: str, prompt: str, timeout: float) -> str:
    """Send one prompt, echo streamed text to stdout and return the final text."""

    logger = logging.getLogger("chat_client")
    start = time.perf_counter()
    shown = 0

    async with websockets.connect(url, ping_interval=None) as websocket:
        await websocket.send(json.dumps({"command": "chat", "text": prompt}))
        logger.info("Sent prompt (%d chars)", len(prompt))

        while True:
            frame = json.loads(await asyncio.wait_for(websocket.recv(), timeout=timeout))

            if "error" in frame:
                logger.error("Received error frame: %s", frame)
                raise SystemExit(1)

            text = frame["text"]
            if frame.get("incremental"):
                sys.stdout.write(text)
                shown += len(text)
            else:
                sys.stdout.write(text[shown:])
                shown = len(text)
            sys.stdout.flush()

            if frame["done"]:
                sys.stdout.write("\n")
                logger.info(
                    "Response finished (%d chars) in %.2fs",
                    len(text),
                    time.perf_counter() - start,
                )
                return text


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Test client for the chat panel WebSocket.")
    parser.add_argument("--url", default=DEFAULT_URL, help="WebSocket URL (default: %(default)s)")
    parser.add_argument("--prompt", required=True, help="Prompt to send.")
    parser.add_argument(
        "--timeout", type=float, default=120.0, help="Seconds to wait between frames."
    )
    parser.add_argument("--log-level", default="WARNING", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO))
    try:
        asyncio.run(run_client(args.url, args.prompt, args.timeout))
    except KeyboardInterrupt:  # pragma: no cover - manual usage only
        pass


if __name__ == "__main__":  # pragma: no cover
    main()
