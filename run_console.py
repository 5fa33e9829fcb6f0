"""Run one realtime voice session from a terminal.

The console negotiates a session through the local server's `/token`
route, streams microphone audio when `AUDIO_DEVICE` is set, and reads
text lines from stdin. Optionally it captions an image file every
`CAPTURE_INTERVAL` seconds and folds the captions into the conversation.

Run: start the server (`uvicorn main:app`), then
      `python run_console.py [--image snapshot.jpg]`.

Commands: `/events [n]` prints the newest events, `/quit` stops the session.
Any other line is sent to the model as a user message.
"""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

from services.realtime.caption_feed import CaptionFeed, StillImageSource
from services.realtime.errors import SessionStartFailure
from services.realtime.function_table import GET_LOGS
from services.realtime.session_controller import SessionController
from services.realtime.signaling import SignalingClient
from services.realtime.transport import peer_transport_factory
from utils.logging_setup import setup_logging
from utils.settings import ClientSettings

logger = logging.getLogger("run_console")


def build_controller(settings: ClientSettings) -> SessionController:
    """Wire a session controller from client settings."""
    signaling = SignalingClient(
        settings.token_url,
        settings.realtime_base_url,
        settings.realtime_model,
        timeout=settings.signaling_timeout,
    )
    return SessionController(
        signaling,
        peer_transport_factory(settings.ice_servers, settings.audio_device, settings.audio_format),
        signaling_timeout=settings.signaling_timeout,
        restart_max_attempts=settings.restart_max_attempts,
        restart_backoff=settings.restart_backoff,
    )


async def _print_events(controller: SessionController, count: int) -> None:
    events = await controller.functions.invoke(GET_LOGS, json.dumps({"count": count}))
    for event in events:
        print(f"[{event['timestamp']}] {event['type']}: {json.dumps(event['content'])[:200]}")


async def _read_commands(controller: SessionController) -> None:
    while True:
        line = await asyncio.to_thread(sys.stdin.readline)
        if not line:
            break
        text = line.strip()
        if not text:
            continue
        if text == "/quit":
            break
        if text.startswith("/events"):
            parts = text.split()
            count = int(parts[1]) if len(parts) > 1 and parts[1].isdigit() else 5
            await _print_events(controller, count)
            continue
        controller.send_text_message(text)


async def main(argv: Optional[List[str]] = None) -> int:
    """Start a session, run the optional caption feed, and read commands."""
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--image", help="Image file captioned periodically as the camera view.")
    args = parser.parse_args(argv)

    settings = ClientSettings.from_env()
    setup_logging(settings.log_level)
    controller = build_controller(settings)

    try:
        await controller.start()
    except SessionStartFailure as exc:
        logger.error("%s", exc)
        return 1

    feed = None
    if args.image:
        feed = CaptionFeed(
            StillImageSource(args.image),
            settings.analyze_frame_url,
            controller.inject_log_update,
            interval=settings.capture_interval,
        )
        feed.start()

    try:
        await _read_commands(controller)
    finally:
        if feed is not None:
            await feed.stop()
        await controller.stop()
    return 0


if __name__ == "__main__":
    load_dotenv()
    sys.exit(asyncio.run(main()))
