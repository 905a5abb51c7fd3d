"""
Trace dispatcher.

Cursor moves and saves can fire traces faster than they finish. Each
dispatch gets a sequence number. A finished trace is applied only if no
higher-numbered trace has been applied already, so a slow stale trace can
never replace the answer to a newer request.
"""
import asyncio
import logging
from typing import Optional, Set

from PyQt6.QtCore import QObject, pyqtSignal as Signal

from .constants import TraceRequest, TraceResult
from .tracer import PlaceholderTracer


class TraceDispatcher(QObject):
    """Runs traces and publishes only the freshest result."""

    trace_applied = Signal(int, object)   # sequence, TraceResult
    trace_discarded = Signal(int)         # sequence

    def __init__(self, tracer: PlaceholderTracer):
        super().__init__()
        self.tracer = tracer
        self.logger = logging.getLogger(self.__class__.__name__)
        self._sequence = 0
        self._applied_sequence = 0
        self.latest: Optional[TraceResult] = None
        self._pending: Set[asyncio.Task] = set()

    @property
    def sequence(self) -> int:
        """Sequence number of the most recent dispatch."""
        return self._sequence

    @property
    def pending(self) -> int:
        """Number of dispatched traces still running."""
        return len(self._pending)

    @property
    def applied_sequence(self) -> int:
        return self._applied_sequence

    def dispatch(self, request: TraceRequest) -> "asyncio.Task":
        """Start a trace on the running loop. The task resolves to its (sequence, result)."""
        self._sequence += 1
        task = asyncio.get_running_loop().create_task(self._run(self._sequence, request))
        # The loop only holds weak references to tasks
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def run(self, request: TraceRequest):
        """Dispatch and wait for this trace; returns (sequence, result)."""
        return await self.dispatch(request)

    async def _run(self, sequence: int, request: TraceRequest):
        result = await self.tracer.trace(request)
        self._apply(sequence, result)
        return sequence, result

    def _apply(self, sequence: int, result: TraceResult) -> bool:
        if sequence <= self._applied_sequence:
            self.logger.debug(f"Discarding stale trace #{sequence} "
                              f"(already applied #{self._applied_sequence})")
            self.trace_discarded.emit(sequence)
            return False
        self._applied_sequence = sequence
        self.latest = result
        self.trace_applied.emit(sequence, result)
        return True
