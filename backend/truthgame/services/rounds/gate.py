import logging
import threading
from typing import Optional

from .types import CompletionTrigger

logger = logging.getLogger(__name__)


class SubmissionGate:
    """Single-use completion guard for one round.

    The first ``try_complete`` wins; every later call returns False until
    ``rearm()``. Check and set happen under one lock, since clock workers
    and request handlers may run on different threads.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._completed = False
        self._winner: Optional[CompletionTrigger] = None

    @property
    def completed(self) -> bool:
        return self._completed

    @property
    def winner(self) -> Optional[CompletionTrigger]:
        return self._winner

    def try_complete(self, trigger: CompletionTrigger) -> bool:
        with self._lock:
            if self._completed:
                logger.debug(f"[gate-reject] trigger={trigger.value} winner={self._winner.value}")
                return False
            self._completed = True
            self._winner = trigger
        return True

    def rearm(self) -> None:
        with self._lock:
            self._completed = False
            self._winner = None
