from __future__ import annotations
import asyncio
from typing import Awaitable, Callable, ClassVar
from uuid import UUID
import structlog
from hunt_api.client.api import HuntClient
from hunt_api.schemas.progress import TeamProgress

log = structlog.get_logger(__name__)

OnUpdate = Callable[[TeamProgress], Awaitable[None] | None]


class ProgressPoller:
    """
    Keeps a team's progress projection fresh while reviews are pending.

    Fetches once on start, then every `interval` seconds for as long as the
    last projection reports in-flight work. Only one fetch per hunt and team
    runs at a time, across every poller in the process; a refresh requested
    while one is running is skipped. Errors that survive the client's retries
    end the poll and are re-raised from `wait()`.
    """

    _fetching: ClassVar[set[tuple[UUID, UUID]]] = set()

    def __init__(
        self,
        client: HuntClient,
        hunt_id: UUID,
        team_id: UUID,
        *,
        interval: float = 10.0,
        on_update: OnUpdate | None = None,
    ):
        self.client = client
        self.hunt_id = hunt_id
        self.team_id = team_id
        self.interval = interval
        self.on_update = on_update
        self.latest: TeamProgress | None = None
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())

    def stop(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def wait(self) -> TeamProgress | None:
        if self._task is not None:
            await asyncio.wait([self._task])
            if not self._task.cancelled() and self._task.exception() is not None:
                raise self._task.exception()
        return self.latest

    async def refresh(self) -> TeamProgress | None:
        """Fetch now unless a fetch is already running; returns None when skipped."""
        key = (self.hunt_id, self.team_id)
        if key in ProgressPoller._fetching:
            log.debug("progress.poll_skipped", hunt_id=str(self.hunt_id), team_id=str(self.team_id))
            return None
        ProgressPoller._fetching.add(key)
        try:
            progress = await self.client.get_progress(self.hunt_id, self.team_id)
        finally:
            ProgressPoller._fetching.discard(key)
        self.latest = progress
        if self.on_update is not None:
            res = self.on_update(progress)
            if asyncio.iscoroutine(res):
                await res
        return progress

    async def _loop(self) -> None:
        while True:
            try:
                progress = await self.refresh()
            except Exception as e:
                log.warning("progress.poll_failed", hunt_id=str(self.hunt_id), team_id=str(self.team_id), error=str(e))
                raise
            if progress is not None and not progress.in_flight:
                return
            await asyncio.sleep(self.interval)
