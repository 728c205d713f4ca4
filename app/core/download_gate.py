"""
Countdown-gated download links.

Each quality tier runs its own ``idle -> counting(n) -> revealed`` machine.
Tiers never block or cancel one another, and there is no user-facing abort:
a countdown only stops when its runner is torn down.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

logger = logging.getLogger(__name__)

IDLE = "idle"
COUNTING = "counting"
REVEALED = "revealed"

DEFAULT_DELAY = 10

# (quality, url) -> None
RevealCallback = Callable[[str, str], None]


@dataclass
class TierState:
    quality: str
    url: str = ""
    status: str = IDLE
    remaining: int = 0

    def as_dict(self, include_url: bool = False) -> dict:
        row = {"quality": self.quality, "status": self.status, "remaining": self.remaining}
        if include_url and self.status == REVEALED:
            row["url"] = self.url
        return row


class DownloadGate:
    def __init__(self, delay: int = DEFAULT_DELAY, on_reveal: Optional[RevealCallback] = None):
        self.delay = max(0, int(delay))
        self.on_reveal = on_reveal
        self._tiers: dict[str, TierState] = {}

    def state(self, quality: str) -> TierState:
        return self._tiers.get(quality) or TierState(quality=quality)

    def states(self) -> list[TierState]:
        return list(self._tiers.values())

    def start(self, quality: str, url: str) -> TierState:
        tier = self._tiers.get(quality)
        if tier and tier.status != IDLE:
            return tier
        tier = TierState(quality=quality, url=url, status=COUNTING, remaining=self.delay)
        self._tiers[quality] = tier
        if self.delay == 0:
            self._reveal(tier)
        return tier

    def tick(self, quality: str) -> TierState:
        tier = self._tiers.get(quality)
        if not tier or tier.status != COUNTING:
            return self.state(quality)
        tier.remaining = max(0, tier.remaining - 1)
        if tier.remaining == 0:
            self._reveal(tier)
        return tier

    def download_url(self, quality: str) -> Optional[str]:
        tier = self._tiers.get(quality)
        if tier and tier.status == REVEALED:
            return tier.url
        return None

    def _reveal(self, tier: TierState) -> None:
        tier.status = REVEALED
        tier.remaining = 0
        if self.on_reveal:
            try:
                self.on_reveal(tier.quality, tier.url)
            except Exception:
                logger.exception("Reveal hook failed for %s", tier.quality)


class GateRunner:
    """Ticks a DownloadGate from the event loop, one task per tier."""

    def __init__(self, gate: DownloadGate, interval: float = 1.0):
        self.gate = gate
        self.interval = interval
        self._tasks: dict[str, asyncio.Task] = {}
        self.last_used = time.monotonic()

    def start(self, quality: str, url: str) -> TierState:
        self.last_used = time.monotonic()
        tier = self.gate.start(quality, url)
        if tier.status == COUNTING and quality not in self._tasks:
            self._tasks[quality] = asyncio.create_task(self._countdown(quality))
        return tier

    async def _countdown(self, quality: str) -> None:
        try:
            while self.gate.state(quality).status == COUNTING:
                await asyncio.sleep(self.interval)
                self.gate.tick(quality)
        finally:
            self._tasks.pop(quality, None)

    def snapshot(self) -> list[dict]:
        self.last_used = time.monotonic()
        return [tier.as_dict(include_url=True) for tier in self.gate.states()]

    @property
    def active(self) -> bool:
        return bool(self._tasks)

    async def close(self) -> None:
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()


class GateRegistry:
    """One runner per (visitor, entry); idle runners expire after ``ttl_sec``."""

    def __init__(self, delay: int = DEFAULT_DELAY, ttl_sec: float = 900.0, interval: float = 1.0):
        self.delay = delay
        self.ttl_sec = ttl_sec
        self.interval = interval
        self._runners: dict[tuple[str, str], GateRunner] = {}

    def get(self, visitor_id: str, entry_id: str) -> Optional[GateRunner]:
        return self._runners.get((visitor_id, entry_id))

    def get_or_create(self, visitor_id: str, entry_id: str, on_reveal: Optional[RevealCallback] = None) -> GateRunner:
        key = (visitor_id, entry_id)
        runner = self._runners.get(key)
        if runner is None:
            runner = GateRunner(DownloadGate(self.delay, on_reveal=on_reveal), interval=self.interval)
            self._runners[key] = runner
        return runner

    async def prune(self) -> int:
        cutoff = time.monotonic() - self.ttl_sec
        stale = [key for key, runner in self._runners.items() if runner.last_used < cutoff and not runner.active]
        for key in stale:
            runner = self._runners.pop(key)
            await runner.close()
        return len(stale)

    async def close_all(self) -> None:
        runners = list(self._runners.values())
        self._runners.clear()
        for runner in runners:
            await runner.close()
        if runners:
            logger.info("Closed %s download gate(s)", len(runners))

    def __len__(self) -> int:
        return len(self._runners)
