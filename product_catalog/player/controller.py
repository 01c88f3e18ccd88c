"""
Playback controller for the request-pipeline player.

Animates a request travelling through four stages while the real product
fetch runs underneath. Two scheduling modes are supported:

- auto: simulated delays elapse on (speed-scaled) timers
- manual: every simulated delay waits for step()

Only the service stage is gated on the real response arriving, and the
store stage is not marked complete until both its simulated delay and the
response body are in.
"""

import asyncio
import logging
import math
import time
from contextlib import suppress
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from product_catalog.shared import Product

from . import trace_log
from .gate import SuspensionGate
from .orchestrator import FetchError, NetworkOrchestrator
from .stages import StageStatus, Stages, initial_stages, mark_all, set_status
from .trace_log import TraceLog

logger = logging.getLogger(__name__)


class PlaybackMode(Enum):
    """How simulated delays are resolved."""
    AUTO = "auto"
    MANUAL = "manual"


SPEED_MIN = 0.5
SPEED_MAX = 3.0
SPEED_STEP = 0.5
SPEED_CHOICES = tuple(
    SPEED_MIN + i * SPEED_STEP
    for i in range(int((SPEED_MAX - SPEED_MIN) / SPEED_STEP) + 1)
)

MIN_WAIT_MS = 50

# Nominal simulated delays per stage
FRONTEND_DELAY_MS = 700
PROXY_DELAY_MS = 500
STORE_DELAY_MS = 400

CONNECTING_MESSAGE = "Connecting..."


class PlaybackError(RuntimeError):
    """Base class for playback control errors."""


class PlaybackInProgressError(PlaybackError):
    """run() was called while another run is in flight."""


class InvalidSpeedError(PlaybackError, ValueError):
    """Speed outside the supported multiplier grid."""


class _RunSuperseded(Exception):
    """The run was abandoned by reset() and must stop writing state."""


def effective_wait_ms(nominal_ms: float, speed: float) -> int:
    """Scale a nominal delay by the speed multiplier, rounded half-up, floor of 50ms."""
    return max(MIN_WAIT_MS, int(math.floor(nominal_ms * speed + 0.5)))


@dataclass
class PlaybackState:
    """State of one player instance, observed by the rendering layer."""
    mode: PlaybackMode = PlaybackMode.AUTO
    speed: float = 1.0
    playing: bool = False
    stages: Stages = field(default_factory=initial_stages)
    log: TraceLog = ()
    response_time_ms: Optional[int] = None
    last_fetched: Optional[float] = None
    status_message: str = CONNECTING_MESSAGE
    error: Optional[str] = None
    generation: int = 0

    def to_dict(self) -> dict:
        return {
            "mode": self.mode.value,
            "speed": self.speed,
            "playing": self.playing,
            "stages": [s.to_dict() for s in self.stages],
            "log": [e.to_dict() for e in self.log],
            "response_time_ms": self.response_time_ms,
            "last_fetched": self.last_fetched,
            "status_message": self.status_message,
            "error": self.error,
        }


StateListener = Callable[[PlaybackState], None]


class PlaybackController:
    """
    Drives one playback run at a time over a PlaybackState.

    mode and speed may be changed at any point; both are read when a wait
    begins, so a change only affects waits that start afterwards.
    """

    def __init__(
        self,
        orchestrator: NetworkOrchestrator,
        mode: PlaybackMode = PlaybackMode.AUTO,
        speed: float = 1.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ):
        self.orchestrator = orchestrator
        self.state = PlaybackState(mode=mode, speed=self._validate_speed(speed))
        self._gate = SuspensionGate()
        self._sleep = sleep
        self._clock = clock
        self._wall_clock = wall_clock
        self._listeners: List[StateListener] = []

    @property
    def gate(self) -> SuspensionGate:
        return self._gate

    def add_listener(self, listener: StateListener):
        """Register a callable invoked with the state after every change."""
        self._listeners.append(listener)

    def _notify(self):
        for listener in self._listeners:
            try:
                listener(self.state)
            except Exception as e:
                logger.error(f"Listener error: {e}")

    # ==================== Configuration ====================

    @staticmethod
    def _validate_speed(value: float) -> float:
        speed = float(value)
        if speed not in SPEED_CHOICES:
            raise InvalidSpeedError(
                f"Speed must be between {SPEED_MIN} and {SPEED_MAX} in steps of {SPEED_STEP}, got {value}"
            )
        return speed

    def set_speed(self, value: float):
        self.state.speed = self._validate_speed(value)
        logger.info(f"Playback speed set to {self.state.speed}x")
        self._notify()

    def set_mode(self, mode: PlaybackMode):
        self.state.mode = mode
        logger.info(f"Playback mode set to {mode.value}")
        self._notify()

    def toggle_mode(self) -> PlaybackMode:
        if self.state.mode == PlaybackMode.AUTO:
            self.set_mode(PlaybackMode.MANUAL)
        else:
            self.set_mode(PlaybackMode.AUTO)
        return self.state.mode

    def pause(self):
        """Hold the run at its next wait until step() or resume()."""
        self.set_mode(PlaybackMode.MANUAL)

    def resume(self):
        """Switch back to timed playback and release a wait held by manual mode."""
        self.set_mode(PlaybackMode.AUTO)
        self._gate.release()

    def step(self) -> bool:
        """Release the pending manual wait. Returns False when nothing was waiting."""
        released = self._gate.release()
        if released:
            logger.debug("Manual step released pending wait")
        return released

    # ==================== Lifecycle ====================

    def reset(self):
        """Return every stage to pending and clear the log; abandons any run in flight."""
        self.state.generation += 1
        self._gate.discard()
        self.state.playing = False
        self.state.stages = initial_stages()
        self.state.log = trace_log.clear()
        self.state.response_time_ms = None
        self.state.error = None
        self.state.status_message = CONNECTING_MESSAGE
        logger.info("Playback reset")
        self._notify()

    async def run(self) -> Optional[List[Product]]:
        """
        Play one pass of the pipeline while fetching the product list.

        Returns:
            The fetched products, or None if the fetch failed or the run
            was abandoned by reset().

        Raises:
            PlaybackInProgressError: a run is already in flight
        """
        if self.state.playing:
            raise PlaybackInProgressError("A playback run is already in flight")

        self.state.generation += 1
        generation = self.state.generation

        self.state.playing = True
        self.state.stages = initial_stages()
        self.state.response_time_ms = None
        self.state.error = None
        self.state.status_message = CONNECTING_MESSAGE
        self._notify()

        logger.info(
            f"Starting playback run {generation} "
            f"(mode={self.state.mode.value}, speed={self.state.speed}x)"
        )

        try:
            return await self._play(generation)
        except _RunSuperseded:
            logger.info(f"Playback run {generation} abandoned by reset")
            return None
        except FetchError as e:
            if self._is_current(generation):
                self._fail(e)
            return None
        except BaseException:
            # Includes cancellation of the task running this pass
            if self._is_current(generation):
                self._gate.discard()
                self.state.playing = False
                self._notify()
            raise

    async def _play(self, generation: int) -> List[Product]:
        started_at = self._clock()

        # Frontend
        self._set_stage(generation, 0, StageStatus.ACTIVE)
        self._log(generation, "Frontend initialized")
        await self._wait(generation, FRONTEND_DELAY_MS)
        self._set_stage(generation, 0, StageStatus.COMPLETE)
        self._log(generation, "Request passed to proxy")

        # Proxy
        self._set_stage(generation, 1, StageStatus.ACTIVE)
        self._log(generation, "Proxy received request")
        await self._wait(generation, PROXY_DELAY_MS)
        self._set_stage(generation, 1, StageStatus.COMPLETE)
        self._log(generation, "Proxy forwarded request to service")

        # Service: gated on the real response
        self._set_stage(generation, 2, StageStatus.ACTIVE)
        self._log(generation, "Service received request; calling store")
        pending = await self.orchestrator.begin_fetch()
        if not self._is_current(generation):
            pending.discard()
        self._set_stage(generation, 2, StageStatus.COMPLETE)
        self._log(generation, f"Service responded with HTTP {pending.status}")

        # Store: simulated delay joined with the response body
        self._set_stage(generation, 3, StageStatus.ACTIVE)
        self._log(generation, "Store querying products")
        wait_task = asyncio.create_task(self._wait(generation, STORE_DELAY_MS))
        try:
            products = await pending.products()
            await wait_task
        finally:
            if not wait_task.done():
                wait_task.cancel()
                with suppress(asyncio.CancelledError):
                    await wait_task
        self._check_current(generation)
        self._set_stage(generation, 3, StageStatus.COMPLETE)
        self._log(generation, f"Store returned {len(products)} rows")

        elapsed_ms = int(round((self._clock() - started_at) * 1000))
        self.state.response_time_ms = elapsed_ms
        self.state.last_fetched = self._wall_clock()
        self.state.status_message = f"Loaded {len(products)} products in {elapsed_ms}ms"
        self.state.playing = False
        self._notify()

        logger.info(f"Playback run {generation} complete: {len(products)} products in {elapsed_ms}ms")
        return products

    async def _wait(self, generation: int, nominal_ms: float):
        """
        One simulated delay. Mode and speed are read here, at the start of the wait.

        Does not raise when abandoned; callers check the generation afterwards.
        """
        mode = self.state.mode
        wait_ms = effective_wait_ms(nominal_ms, self.state.speed)

        if mode == PlaybackMode.AUTO:
            await self._sleep(wait_ms / 1000)
        else:
            self._log(generation, f"Waiting {wait_ms}ms for manual step")
            await self._gate.arm()

        if self._is_current(generation):
            logger.debug(f"Wait of {wait_ms}ms ({mode.value}) finished")

    def _fail(self, error: FetchError):
        self._gate.discard()
        self.state.stages = mark_all(self.state.stages, StageStatus.ERROR)
        self.state.log = trace_log.append(
            self.state.log, f"Request failed: {error.message}", clock=self._wall_clock
        )
        self.state.error = f"Failed to load products: {error.message}"
        self.state.status_message = self.state.error
        self.state.playing = False
        logger.error(f"Playback run {self.state.generation} failed: {error.message}")
        self._notify()

    # ==================== State helpers ====================

    def _is_current(self, generation: int) -> bool:
        return generation == self.state.generation

    def _check_current(self, generation: int):
        if not self._is_current(generation):
            raise _RunSuperseded()

    def _set_stage(self, generation: int, index: int, status: StageStatus):
        self._check_current(generation)
        self.state.stages = set_status(self.state.stages, index, status)
        self._notify()

    def _log(self, generation: int, message: str):
        self._check_current(generation)
        self.state.log = trace_log.append(self.state.log, message, clock=self._wall_clock)
        self._notify()
