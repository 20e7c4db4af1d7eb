# mediagate/workers/base_worker.py
"""
Base class for MediaGate background workers.

Workers never schedule themselves: the runtime's APScheduler instance calls
their entry points (``execute_drain``, ``execute_cleanup``). ``start()`` and
``stop()`` only flip the ``running`` flag around ``initialize()`` and
``cleanup()``.
"""

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..enums import LoggerName, WorkerType
from ..services.logger import get_service_logger
from ..utils.time_utils import utc_now


class BaseWorker(ABC):
    def __init__(self, worker_type: WorkerType, logger_name: LoggerName):
        """
        Args:
            worker_type: Identifies the worker in logs and status reports
            logger_name: Component the worker's log records are bound to
        """
        self.worker_type = worker_type
        self.name = worker_type.value
        self.running = False
        self.started_at: Optional[datetime] = None
        self._logger = get_service_logger(logger_name)

    async def start(self) -> None:
        self._logger.info(f"Starting {self.name}")
        self.running = True
        self.started_at = utc_now()
        await self.initialize()

    async def stop(self) -> None:
        self._logger.info(f"Stopping {self.name}")
        self.running = False
        await self.cleanup()

    @abstractmethod
    async def initialize(self) -> None:
        """Acquire worker resources; called by ``start()``."""

    @abstractmethod
    async def cleanup(self) -> None:
        """Release worker resources; called by ``stop()``."""

    def _log(self, level: str, message: str) -> None:
        self._logger.log(level, f"[{self.name}] {message}")

    def log_info(self, message: str) -> None:
        self._log("INFO", message)

    def log_warning(self, message: str) -> None:
        self._log("WARNING", message)

    def log_debug(self, message: str) -> None:
        self._log("DEBUG", message)

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        self._log("ERROR", f"{message}: {error}" if error else message)

    async def run_in_executor(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run blocking database/storage work off the event loop."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    def get_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "running": self.running,
            "worker_type": self.__class__.__name__,
            "started_at": self.started_at.isoformat() if self.started_at else None,
        }
