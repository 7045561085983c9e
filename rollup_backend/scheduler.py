"""
Frame scheduler - plays a renderer transition on the event loop.

Frames are sampled from the renderer and handed to an async sink until
the transition completes or a newer render supersedes it. Between frames
the loop yields with asyncio.sleep, so commands keep being served.
"""
import asyncio
import logging
from typing import Awaitable, Callable, Optional

from rollup_core import Frame, Transition, TreeDiffRenderer

logger = logging.getLogger(__name__)


class FrameScheduler:
    """Drives at most one transition at a time; the newest render wins."""

    def __init__(
        self,
        renderer: TreeDiffRenderer,
        on_frame: Callable[[Frame], Awaitable[None]],
        interval: float = 1 / 60,
    ):
        self.renderer = renderer
        self.on_frame = on_frame
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, transition: Transition) -> asyncio.Task:
        """Start playing `transition` in the background."""
        self._task = asyncio.create_task(self.play(transition))
        return self._task

    async def play(self, transition: Transition) -> int:
        """Send frames until done or superseded. Returns frames sent."""
        sent = 0
        while self.renderer.transition is transition:
            frame = self.renderer.frame()
            await self.on_frame(frame)
            sent += 1
            if frame.done:
                break
            await asyncio.sleep(self.interval)
        logger.debug("Transition played in %d frames", sent)
        return sent

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
