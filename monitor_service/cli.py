"""CLI entry point for the synchronization loop."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import Optional

from prometheus_client import start_http_server

from common.config import get_settings

from .classifier import ClassifierThresholds
from .gateway import HttpSensorGateway
from .sync_loop import MonitorSnapshot, SyncLoop, SyncLoopConfig

logger = logging.getLogger(__name__)


def _log_snapshot(snap: MonitorSnapshot) -> None:
    latest = snap.latest
    logger.info(
        "state=%s connectivity=%s pH=%s orp=%s conductivity=%s failures=%d",
        snap.system_state.value,
        snap.connectivity.value,
        latest.ph if latest else None,
        latest.orp if latest else None,
        latest.conductivity if latest else None,
        snap.consecutive_failures,
    )


async def _run(loop: SyncLoop, gateway: HttpSensorGateway, once: bool) -> None:
    try:
        if once:
            await loop.run_cycle()
            return
        await loop.start()
        # Hasta Ctrl+C / cancelación.
        await asyncio.Event().wait()
    finally:
        await loop.stop()
        await gateway.aclose()


def main(argv: Optional[list[str]] = None) -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    settings = get_settings()

    p = argparse.ArgumentParser(description="Chemical safety monitor (poll + classify + log transitions)")
    p.add_argument("--api-url", default=settings.sync_api_url)
    p.add_argument("--token", default=settings.api_token)
    p.add_argument("--interval", type=float, default=settings.sync_interval_seconds)
    p.add_argument("--timeout", type=float, default=settings.sync_timeout_seconds)
    p.add_argument("--metrics-port", type=int, default=None, help="expose Prometheus metrics on this port")
    p.add_argument("--once", action="store_true", help="run a single cycle and exit")
    args = p.parse_args(argv)

    thresholds = ClassifierThresholds.from_settings(settings)
    config = SyncLoopConfig(interval_seconds=args.interval, window_size=settings.window_size)

    if args.metrics_port:
        start_http_server(args.metrics_port)
        logger.info("Prometheus metrics on :%d", args.metrics_port)

    gateway = HttpSensorGateway(args.api_url, token=args.token, timeout=args.timeout)
    loop = SyncLoop(gateway, thresholds=thresholds, config=config)
    loop.add_observer(_log_snapshot)

    logger.info("Chemical monitor started api=%s interval=%.1fs", args.api_url, args.interval)
    try:
        asyncio.run(_run(loop, gateway, args.once))
    except KeyboardInterrupt:
        logger.info("Chemical monitor interrupted")


if __name__ == "__main__":
    main()
