#!/usr/bin/env python3
"""
Terminal front end for the request-pipeline player.

Prints stage transitions and trace entries as a run progresses, then the
fetched products. In manual mode, press Enter to advance each wait.
"""

import argparse
import asyncio
import logging
import sys
import threading
from typing import Dict, Optional

from product_catalog.shared import load_config, setup_logging

from .config import PlayerConfig
from .controller import SPEED_CHOICES, PlaybackController, PlaybackMode, PlaybackState
from .orchestrator import NetworkOrchestrator
from .stages import StageStatus

logger = logging.getLogger(__name__)

STATUS_MARKERS = {
    StageStatus.PENDING: "·",
    StageStatus.ACTIVE: "▶",
    StageStatus.COMPLETE: "✓",
    StageStatus.ERROR: "✗",
}


class TerminalRenderer:
    """State listener that prints only what changed since the last call."""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self._statuses: Dict[int, StageStatus] = {}
        self._log_length = 0

    def __call__(self, state: PlaybackState):
        # reset() shrinks the log
        if len(state.log) < self._log_length:
            self._log_length = 0

        for entry in state.log[self._log_length:]:
            print(f"    {entry.message}", file=self.out)
        self._log_length = len(state.log)

        for stage in state.stages:
            if self._statuses.get(stage.id) != stage.status:
                self._statuses[stage.id] = stage.status
                if stage.status != StageStatus.PENDING:
                    marker = STATUS_MARKERS[stage.status]
                    print(f"{marker} {stage.icon}  {stage.label}: {stage.status.value}", file=self.out)


def _start_stepper(loop: asyncio.AbstractEventLoop, controller: PlaybackController) -> threading.Thread:
    """Read Enter presses on a daemon thread and forward them as step()."""

    def read_lines():
        for _ in sys.stdin:
            loop.call_soon_threadsafe(controller.step)

    thread = threading.Thread(target=read_lines, daemon=True)
    thread.start()
    return thread


async def play(config: PlayerConfig, renderer: Optional[TerminalRenderer] = None) -> int:
    renderer = renderer or TerminalRenderer()

    async with NetworkOrchestrator(config.base_url, timeout=config.timeout) as orchestrator:
        controller = PlaybackController(
            orchestrator,
            mode=PlaybackMode(config.mode),
            speed=config.speed,
        )
        controller.add_listener(renderer)

        if controller.state.mode == PlaybackMode.MANUAL:
            print("Manual mode: press Enter to advance", file=renderer.out)
            _start_stepper(asyncio.get_running_loop(), controller)

        products = await controller.run()

    state = controller.state
    print(state.status_message, file=renderer.out)
    if products is None:
        return 1

    for product in products:
        print(f"  {product.sku}  {product.name:<30} ${product.price:.2f}", file=renderer.out)
    return 0


def main():
    parser = argparse.ArgumentParser(description="Product Catalog request-pipeline player")
    parser.add_argument(
        "-c", "--config",
        default="config/config.yaml",
        help="Path to configuration file",
    )
    parser.add_argument("--url", help="Base URL of the product service")
    parser.add_argument("--mode", choices=[m.value for m in PlaybackMode])
    parser.add_argument("--speed", type=float, choices=SPEED_CHOICES)

    args = parser.parse_args()

    raw_config = load_config(args.config)
    setup_logging(raw_config)

    try:
        config = PlayerConfig.from_dict(raw_config.get("player", {}))
    except ValueError as e:
        parser.error(f"invalid player config in {args.config}: {e}")

    if args.url:
        config.base_url = args.url
    if args.mode:
        config.mode = args.mode
    if args.speed is not None:
        config.speed = args.speed

    modes = [m.value for m in PlaybackMode]
    if config.mode not in modes:
        parser.error(f"invalid player mode {config.mode!r} (choose from {', '.join(modes)})")
    if config.speed not in SPEED_CHOICES:
        speeds = ", ".join(f"{s:g}" for s in SPEED_CHOICES)
        parser.error(f"invalid player speed {config.speed:g} (choose from {speeds})")

    sys.exit(asyncio.run(play(config)))


if __name__ == "__main__":
    main()
