"""Focus-loss tracking for the active round.

The host forwards every detected tab switch / window blur as
``focus_lost()``. Each violation is warned about; reaching the threshold
forces a forfeit once, after which the monitor ignores further signals
until ``reset()``.
"""

import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class IntegrityMonitor:
    def __init__(self,
                 on_warn: Optional[Callable[[int], None]] = None,
                 on_forfeit: Optional[Callable[[], None]] = None,
                 threshold: int = 1,
                 forfeit_penalty: int = -10,
                 violation_penalty: int = 0):
        self._on_warn = on_warn
        self._on_forfeit = on_forfeit
        self.threshold = max(1, int(threshold))
        self.forfeit_penalty = min(int(forfeit_penalty), 0)
        self.violation_penalty = min(int(violation_penalty), 0)
        self.active = False
        self.violation_count = 0
        self.forfeited = False

    @property
    def penalty(self) -> int:
        if self.forfeited:
            return self.forfeit_penalty
        return self.violation_penalty * self.violation_count

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def reset(self) -> None:
        self.active = False
        self.violation_count = 0
        self.forfeited = False

    def focus_lost(self) -> bool:
        """Record one violation. Returns False when the signal was ignored."""
        if not self.active or self.forfeited:
            return False
        self.violation_count += 1
        logger.info(f"[integrity-warn] violations={self.violation_count} threshold={self.threshold}")
        if self._on_warn:
            self._on_warn(self.violation_count)
        if self.violation_count >= self.threshold:
            self.forfeited = True
            logger.warning(f"[integrity-forfeit] violations={self.violation_count}")
            if self._on_forfeit:
                self._on_forfeit()
        return True
