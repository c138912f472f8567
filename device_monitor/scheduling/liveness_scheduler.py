"""Timer de conectividad.

Ejecuta ``MonitoringService.run_liveness_check`` a intervalo fijo como
tarea asyncio en el event loop de la aplicación.

Uso:
    scheduler = LivenessScheduler(service, interval_seconds=60)
    await scheduler.start()
    ...
    await scheduler.stop()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..service import MonitoringService

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
ERROR_BACKOFF_SECONDS = 5.0


class LivenessScheduler:
    def __init__(
        self,
        service: MonitoringService,
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
        run_on_start: bool = True,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._service = service
        self._interval = float(interval_seconds)
        self._run_on_start = run_on_start
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Inicia el timer en background."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("[LIVENESS] Scheduler started interval=%.1fs", self._interval)

    async def stop(self) -> None:
        """Detiene el timer."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("[LIVENESS] Scheduler stopped ticks=%d", self.ticks)

    def tick(self) -> None:
        self.ticks += 1
        transitions = self._service.run_liveness_check()
        if transitions:
            logger.info("[LIVENESS] Tick %d: %d transitions", self.ticks, len(transitions))

    async def _run_loop(self) -> None:
        if not self._run_on_start:
            await asyncio.sleep(self._interval)

        while self._running:
            try:
                self.tick()
                await asyncio.sleep(self._interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.exception("[LIVENESS] Scheduler error: %s", e)
                await asyncio.sleep(ERROR_BACKOFF_SECONDS)
