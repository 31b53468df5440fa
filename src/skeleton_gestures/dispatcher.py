"""Fire-and-forget gesture dispatch.

Every dispatched gesture starts its own daemon thread that hands the
action request to the sink. The caller never waits. There is no
cancellation and, unless ``coalesce`` is set, no deduplication: a pose
held for five frames dispatches five overlapping actions.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from typing import Optional

from skeleton_gestures.actions import ActionMapper, ActionName, ActionRequest, ActionSink, LogSink
from skeleton_gestures.gestures import GestureKind

logger = logging.getLogger("skeleton_gestures.dispatcher")


class GestureDispatcher:
    """Starts one independent action unit per gesture event.

    Usage:
        dispatcher = GestureDispatcher(KeyboardSink())
        dispatcher.dispatch(GestureKind.JUMP)   # returns immediately
        ...
        dispatcher.join(timeout=10)             # on shutdown
    """

    def __init__(
        self,
        sink: Optional[ActionSink] = None,
        mapper: Optional[ActionMapper] = None,
        coalesce: bool = False,
    ):
        self.sink = sink if sink is not None else LogSink()
        # An empty mapper is falsy but means "no bindings"
        self.mapper = mapper if mapper is not None else ActionMapper.with_defaults()
        self.coalesce = coalesce

        self._lock = threading.Lock()
        self._threads: set[threading.Thread] = set()
        self._active: Counter = Counter()
        self._dispatched = 0
        self._dropped = 0
        self._failed = 0

    def dispatch(self, gesture: GestureKind) -> Optional[threading.Thread]:
        """Start the action for a gesture. Returns the worker thread, or None."""
        request = self.mapper.request_for(gesture)
        if request is None:
            logger.debug("No binding for %s", gesture.value)
            return None

        with self._lock:
            if self.coalesce and self._active[request.action] > 0:
                self._dropped += 1
                logger.debug("Coalesced %s: already in flight", request.action.value)
                return None

            thread = threading.Thread(
                target=self._run,
                args=(request,),
                name=f"action-{request.action.value}",
                daemon=True,
            )
            self._threads.add(thread)
            self._active[request.action] += 1
            self._dispatched += 1

        try:
            thread.start()
        except RuntimeError as e:
            with self._lock:
                self._threads.discard(thread)
                self._active[request.action] -= 1
                self._failed += 1
            logger.error("Could not start action %s: %s", request.action.value, e)
            return None
        return thread

    def _run(self, request: ActionRequest):
        ok = False
        try:
            ok = self.sink.execute(request)
            if not ok:
                logger.warning("Action %s was not performed", request.action.value)
        except Exception as e:
            logger.error("Action %s failed: %s", request.action.value, e)
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())
                self._active[request.action] -= 1
                if not ok:
                    self._failed += 1

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for in-flight actions. Returns True if all finished."""
        with self._lock:
            pending = list(self._threads)
        for thread in pending:
            thread.join(timeout)
        return self.in_flight == 0

    @property
    def in_flight(self) -> int:
        with self._lock:
            return len(self._threads)

    def active_count(self, action: ActionName) -> int:
        with self._lock:
            return self._active[action]

    @property
    def stats(self) -> dict[str, int]:
        with self._lock:
            return {
                "dispatched": self._dispatched,
                "dropped": self._dropped,
                "failed": self._failed,
                "in_flight": len(self._threads),
            }
