"""
Watch Loop

Observes the watch roots and routes every settled change through
classify -> gate -> dispatch. Changes that arrive while a task is in flight
are dropped, not queued. Admitted tasks run as asyncio tasks so the loop keeps
receiving (and dropping) changes while a build is running.

Debouncing is delegated to watchfiles: a file must stay quiet for
`stability_threshold_ms` before its change is yielded, and each yielded batch
is coalesced to one change per path.
"""

import asyncio
import time
from collections import defaultdict
from pathlib import Path
from typing import Any, Awaitable, Iterable, List, Optional, Sequence, Set, Tuple

from watchfiles import Change, awatch

from relaxed.contexts.orchestration.classifier import Classification, classify
from relaxed.contexts.orchestration.dispatcher import TaskDispatcher
from relaxed.contexts.orchestration.gate import SingleFlightGate
from relaxed.contexts.orchestration.logger import (
    _log_error,
    log_change_dropped,
    log_change_processing,
    log_task_done,
    log_task_failed,
    log_watch_started,
)
from relaxed.contexts.orchestration.paths import short_path
from relaxed.utils.event_logging import log_build_event


def coalesce_changes(changes: Iterable[Tuple[Change, str]]) -> List[Path]:
    """
    Collapse a batch of raw changes to one entry per path.

    Paths that were only deleted are dropped; the rest come back once each, sorted.

    Examples:
        >>> coalesce_changes([(Change.modified, "/d/a.pug"), (Change.modified, "/d/a.pug")])
        [PosixPath('/d/a.pug')]
    """
    kinds = defaultdict(set)
    for change, path in changes:
        kinds[path].add(change)
    return [Path(path) for path in sorted(kinds) if kinds[path] != {Change.deleted}]


class WatchLoop:
    """
    Continuous rebuild loop over a fixed set of watch roots.

    Args:
        dispatcher: Starts the converter call for an admitted change
        watch_roots: Directories to observe (fixed for the loop's lifetime)
        gate: Single-flight gate; a fresh one when not given
        stability_threshold_ms: Quiet period before a change is reported
        debounce_ms: Longest a burst of changes is grouped before yielding
        force_polling: Poll instead of using native notifications (None = auto)
        poll_delay_ms: Polling interval when polling
    """

    def __init__(
        self,
        dispatcher: TaskDispatcher,
        watch_roots: Sequence[Path],
        gate: Optional[SingleFlightGate] = None,
        stability_threshold_ms: int = 50,
        debounce_ms: int = 1600,
        force_polling: Optional[bool] = None,
        poll_delay_ms: int = 100,
    ):
        self.dispatcher = dispatcher
        self.watch_roots = tuple(Path(root) for root in watch_roots)
        self.gate = gate if gate is not None else SingleFlightGate()
        self.stability_threshold_ms = stability_threshold_ms
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling
        self.poll_delay_ms = poll_delay_ms
        self._in_flight: Set[asyncio.Task] = set()

    def handle_change(self, path: Path) -> Optional[asyncio.Task]:
        """
        Process one settled change. Must be called from the running event loop.

        Returns:
            The asyncio task tracking an admitted asynchronous conversion, or
            None if the change was ignored, dropped, or settled synchronously
        """
        classification = classify(path)
        if classification.ignored:
            return None

        short_name = short_path(classification.changed_path, self.watch_roots)
        if not self.gate.try_acquire():
            log_change_dropped(short_name)
            log_build_event("change_dropped", classification.changed_path, source="watch")
            return None

        # Every path out of here releases the gate, except the handoff to _settle
        handed_off = False
        try:
            log_change_processing(short_name, classification.kind.value)
            log_build_event(
                "build_started",
                classification.changed_path,
                source="watch",
                task_kind=classification.kind.value,
            )
            start_time = time.perf_counter()

            try:
                pending = self.dispatcher.dispatch(classification)
            except Exception as e:
                self._report(classification, short_name, start_time, error=e)
                return None

            if pending is None:
                # Settled synchronously
                self._report(classification, short_name, start_time)
                return None

            task = asyncio.ensure_future(
                self._settle(pending, classification, short_name, start_time)
            )
            handed_off = True
        finally:
            if not handed_off:
                self.gate.release()

        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _settle(
        self,
        pending: Awaitable[Any],
        classification: Classification,
        short_name: str,
        start_time: float,
    ) -> None:
        try:
            await pending
        except Exception as e:
            self._report(classification, short_name, start_time, error=e)
        else:
            self._report(classification, short_name, start_time)
        finally:
            self.gate.release()

    def _report(
        self,
        classification: Classification,
        short_name: str,
        start_time: float,
        error: Optional[BaseException] = None,
    ) -> None:
        elapsed_time = time.perf_counter() - start_time
        fields = {
            "task_kind": classification.kind.value,
            "duration_s": round(elapsed_time, 2),
        }
        if error is None:
            log_task_done(elapsed_time)
            log_build_event("build_completed", classification.changed_path, source="watch", **fields)
        else:
            log_task_failed(short_name, error, elapsed_time)
            log_build_event(
                "build_failed",
                classification.changed_path,
                source="watch",
                error=str(error),
                **fields,
            )

    async def drain(self) -> None:
        """Wait for the in-flight task, if any, to settle."""
        if self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Watch until stop_event is set (or forever, until interrupted).

        Args:
            stop_event: Ends the loop when set
        """
        log_watch_started(self.dispatcher.paths.input_path.name, self.watch_roots)
        try:
            async for changes in awatch(
                *self.watch_roots,
                step=self.stability_threshold_ms,
                debounce=self.debounce_ms,
                stop_event=stop_event,
                force_polling=self.force_polling,
                poll_delay_ms=self.poll_delay_ms,
            ):
                for path in coalesce_changes(changes):
                    try:
                        self.handle_change(path)
                    except Exception as e:
                        _log_error(f"Could not handle change in {path}: {e}")
        finally:
            await self.drain()
