"""
Garden inventory engine entry point.

With NATS enabled the engine listens for host commands on the configured
inbound subject and publishes notifications to the outbound subject until
interrupted. Otherwise it reads one JSON command per line from stdin and
writes each outbound event to stdout as a JSON line.

Usage:
    python -m garden_inventory.main [--stdin | --nats]
"""

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence
from typing import Any, TextIO

from .config import get_config
from .config.models import AppConfig
from .engine import InventoryEngine, build_storage
from .infrastructure.host_transport import LocalHostTransport, NATSHostTransport
from .infrastructure.message_broker import MessageBrokerError
from .infrastructure.nats_broker import NATSMessageBroker
from .logging.enhanced_logging_config import get_logger, setup_enhanced_logging

logger = get_logger(__name__)


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the garden inventory engine.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--nats", dest="nats", action="store_true", default=None, help="Talk to the host over NATS.")
    mode.add_argument("--stdin", dest="nats", action="store_false", help="Read JSON commands from stdin.")
    return parser.parse_args(argv)


def run_stdin(config: AppConfig, stream: TextIO | None = None, out: TextIO | None = None) -> int:
    """
    Drive the engine from JSON lines on ``stream`` (stdin by default).

    Returns:
        Number of lines handed to the engine
    """
    stream = sys.stdin if stream is None else stream
    sink = sys.stdout if out is None else out

    def write_event(wire: dict[str, Any]) -> None:
        sink.write(json.dumps(wire) + "\n")
        sink.flush()

    transport = LocalHostTransport(sink=write_event)
    InventoryEngine(config.inventory, storage=build_storage(config.storage), transport=transport)

    handled = 0
    for line in stream:
        line = line.strip()
        if not line:
            continue
        transport.deliver(line)
        handled += 1

    logger.info("Input exhausted; shutting down", handled=handled)
    return handled


async def run_nats(config: AppConfig, stop_event: asyncio.Event | None = None) -> None:
    """Serve host commands over NATS until ``stop_event`` is set or the task is cancelled."""
    broker = NATSMessageBroker(config.nats)
    await broker.connect()

    transport = NATSHostTransport(
        broker,
        inbound_subject=config.nats.inbound_subject,
        outbound_subject=config.nats.outbound_subject,
        queue_group=config.nats.queue_group,
    )
    InventoryEngine(config.inventory, storage=build_storage(config.storage), transport=transport)

    stop_event = stop_event or asyncio.Event()
    try:
        await transport.start()
        await stop_event.wait()
    finally:
        await transport.stop()
        await broker.disconnect()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_arguments(argv)
    config = get_config()
    setup_enhanced_logging(config.to_logging_dict())

    use_nats = config.nats.enabled if args.nats is None else args.nats
    if not use_nats:
        run_stdin(config)
        return 0

    try:
        asyncio.run(run_nats(config))
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    except MessageBrokerError as e:
        logger.error("Message broker failure", error=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
