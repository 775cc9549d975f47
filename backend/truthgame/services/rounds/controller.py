"""Round lifecycle: Idle -> Active -> Completing -> Terminal -> Idle.

Three triggers can end a round: a manual submit, clock expiry and a
forced forfeit from the integrity monitor. They may arrive from request
handlers and from the clock worker at nearly the same moment. Every public
operation serializes on one re-entrant lock, and inside it the submission
gate admits exactly one trigger. Trigger, gate, transition, scoring and
outcome therefore happen as one step, and a second trigger only ever sees
a finished round.

Clock signals carry the generation the clock was started with. A signal
whose generation does not match the current round's token is dropped.
"""

import logging
import math
import threading
import time
from typing import Any, Callable, Dict, Optional

from .clock import RoundClock
from .errors import InvalidRoundInput, RoundStateError
from .gate import SubmissionGate
from .integrity import IntegrityMonitor
from .scoring import calibration_label, forfeit_score, score
from .types import (
    CONFIDENCE_LEVELS,
    ClaimRef,
    CompletionTrigger,
    DifficultySettings,
    ForfeitReason,
    RoundOutcome,
    RoundState,
    Verdict,
)

logger = logging.getLogger(__name__)


def parse_verdict(value) -> Optional[Verdict]:
    """Coerce a verdict from user input; None clears it."""
    if value is None or isinstance(value, Verdict):
        return value
    if isinstance(value, str):
        try:
            return Verdict(value.strip().upper())
        except ValueError:
            pass
    raise InvalidRoundInput(f"Invalid verdict: {value!r}. Must be one of TRUE, FALSE, MIXED.")


def parse_confidence(value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value not in CONFIDENCE_LEVELS:
        raise InvalidRoundInput(f"Invalid confidence value: {value!r}. Must be 1, 2, or 3.")
    return value


class RoundController:
    """Runs one round at a time and reports its outcome exactly once.

    Host callbacks:
      on_tick(remaining_seconds)   timer display
      on_warn(violation_count)     anti-cheat feedback
      on_outcome(RoundOutcome)     terminal event for the round

    Callbacks run while the round lock is held. Whatever on_outcome stores
    is in place before another caller can observe the Terminal state, and
    acknowledge() or snapshot() from other threads wait until it returns.
    Callbacks must not block on other threads that use this controller.

    ``spawn``/``sleep``/``now`` are handed to the RoundClock. ``spawn`` must
    run the worker in the background, not inline.
    """

    def __init__(self,
                 on_tick: Optional[Callable[[int], None]] = None,
                 on_warn: Optional[Callable[[int], None]] = None,
                 on_outcome: Optional[Callable[[RoundOutcome], None]] = None,
                 *,
                 forfeit_penalty: int = -10,
                 violation_threshold: int = 1,
                 violation_penalty: int = 0,
                 default_confidence: int = 2,
                 speed_bonus_enabled: bool = True,
                 tick_interval: float = 1.0,
                 spawn: Optional[Callable] = None,
                 sleep: Optional[Callable[[float], None]] = None,
                 now: Optional[Callable[[], float]] = None):
        self.on_tick = on_tick
        self.on_warn = on_warn
        self.on_outcome = on_outcome
        self.default_confidence = parse_confidence(default_confidence)
        self.speed_bonus_enabled = speed_bonus_enabled
        self._now = now or time.monotonic
        self._lock = threading.RLock()
        self._clock = RoundClock(
            on_tick=self._clock_tick,
            on_expired=self._clock_expired,
            spawn=spawn,
            sleep=sleep,
            now=self._now,
            tick_interval=tick_interval,
        )
        self._monitor = IntegrityMonitor(
            on_warn=self._integrity_warn,
            on_forfeit=self._integrity_forfeit,
            threshold=violation_threshold,
            forfeit_penalty=forfeit_penalty,
            violation_penalty=violation_penalty,
        )
        self._gate = SubmissionGate()
        self._state = RoundState.IDLE
        self._round_id = 0
        self._clock_token: Optional[int] = None
        self._claim: Optional[ClaimRef] = None
        self._settings: Optional[DifficultySettings] = None
        self._verdict: Optional[Verdict] = None
        self._confidence = self.default_confidence
        self._started_at: Optional[float] = None
        self._outcome: Optional[RoundOutcome] = None

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def round_id(self) -> int:
        return self._round_id

    @property
    def claim(self) -> Optional[ClaimRef]:
        return self._claim

    @property
    def verdict(self) -> Optional[Verdict]:
        return self._verdict

    @property
    def confidence(self) -> int:
        return self._confidence

    @property
    def outcome(self) -> Optional[RoundOutcome]:
        return self._outcome

    @property
    def violation_count(self) -> int:
        return self._monitor.violation_count

    def remaining(self) -> int:
        return self._clock.remaining()

    # ---- lifecycle ----

    def present_claim(self, claim: ClaimRef, settings: DifficultySettings) -> int:
        """Start a round for ``claim``. Returns the new round id."""
        if settings.discuss_time_sec < 0 or settings.multiplier <= 0:
            raise InvalidRoundInput(f"Invalid difficulty settings: {settings!r}")
        with self._lock:
            if self._state in (RoundState.ACTIVE, RoundState.COMPLETING):
                raise RoundStateError(f"Round {self._round_id} is still {self._state.value}")
            self._clear()
            self._round_id += 1
            self._claim = claim
            self._settings = settings
            self._started_at = self._now()
            self._state = RoundState.ACTIVE
            self._monitor.activate()
            self._clock_token = self._clock.start(settings.discuss_time_sec)
            logger.info(
                f"[round-start] round={self._round_id} claim={claim.id} duration={settings.discuss_time_sec}s "
                f"multiplier={settings.multiplier}"
            )
            return self._round_id

    def acknowledge(self) -> bool:
        """Host has consumed the outcome; return to Idle."""
        with self._lock:
            if self._state != RoundState.TERMINAL:
                return False
            self._clear()
            self._state = RoundState.IDLE
            return True

    def reset(self) -> None:
        """Abandon whatever is in progress without producing an outcome."""
        with self._lock:
            if self._state == RoundState.ACTIVE:
                logger.info(f"[round-abort] round={self._round_id}")
            self._clear()
            self._state = RoundState.IDLE

    def _clear(self) -> None:
        self._clock.cancel()
        self._clock_token = None
        self._monitor.reset()
        self._gate.rearm()
        self._claim = None
        self._settings = None
        self._verdict = None
        self._confidence = self.default_confidence
        self._started_at = None
        self._outcome = None

    # ---- player input ----

    def set_verdict(self, value) -> bool:
        verdict = parse_verdict(value)
        with self._lock:
            if self._state != RoundState.ACTIVE:
                return False
            self._verdict = verdict
            return True

    def set_confidence(self, value) -> bool:
        confidence = parse_confidence(value)
        with self._lock:
            if self._state != RoundState.ACTIVE:
                return False
            self._confidence = confidence
            return True

    # ---- completion triggers ----

    def submit(self, round_id: Optional[int] = None) -> bool:
        with self._lock:
            if not self._accepts(round_id, 'submit'):
                return False
            if self._verdict is None:
                logger.debug(f"[submit-ignored] round={self._round_id} no verdict")
                return False
            return self._complete(CompletionTrigger.MANUAL_SUBMIT)

    def focus_lost(self, round_id: Optional[int] = None) -> bool:
        with self._lock:
            if not self._accepts(round_id, 'focus-lost'):
                return False
            return self._monitor.focus_lost()

    def _accepts(self, round_id: Optional[int], source: str) -> bool:
        if round_id is not None and round_id != self._round_id:
            logger.info(f"[{source}-stale] round={round_id} current={self._round_id}")
            return False
        return self._state == RoundState.ACTIVE

    def _clock_tick(self, generation: int, remaining: int) -> None:
        with self._lock:
            if generation != self._clock_token or self._state != RoundState.ACTIVE:
                return
            if self.on_tick:
                self.on_tick(max(0, remaining))

    def _clock_expired(self, generation: int) -> None:
        with self._lock:
            if generation != self._clock_token or self._state != RoundState.ACTIVE:
                logger.info(f"[timer-stale] generation={generation} token={self._clock_token} state={self._state.value}")
                return
            logger.info(f"[timer-expired] round={self._round_id} verdict={self._verdict.value if self._verdict else None}")
            if self._verdict is None:
                self._complete(CompletionTrigger.CLOCK_EXPIRED, ForfeitReason.TIME_OUT)
            else:
                self._complete(CompletionTrigger.CLOCK_EXPIRED)

    def _integrity_warn(self, violation_count: int) -> None:
        if self.on_warn:
            self.on_warn(violation_count)

    def _integrity_forfeit(self) -> None:
        with self._lock:
            if self._state == RoundState.ACTIVE:
                self._complete(CompletionTrigger.FORCED_FORFEIT, ForfeitReason.TAB_SWITCH)

    def _elapsed_seconds(self, trigger: CompletionTrigger) -> int:
        total = self._settings.discuss_time_sec
        if trigger == CompletionTrigger.CLOCK_EXPIRED:
            return total
        elapsed = math.floor(self._now() - self._started_at)
        return min(max(elapsed, 0), total)

    def _complete(self, trigger: CompletionTrigger, forfeit_reason: Optional[ForfeitReason] = None) -> bool:
        # caller holds self._lock
        if not self._gate.try_complete(trigger):
            return False
        assert self._outcome is None, f"round {self._round_id} already has an outcome"
        self._state = RoundState.COMPLETING
        self._clock.cancel()
        self._monitor.deactivate()

        elapsed = self._elapsed_seconds(trigger)
        if forfeit_reason is not None:
            correct = False
            verdict = None
            result = forfeit_score(self._monitor.forfeit_penalty)
        else:
            verdict = self._verdict
            correct = verdict == self._claim.correct_answer
            result = score(
                correct,
                self._confidence,
                self._settings.multiplier,
                elapsed,
                self._settings.discuss_time_sec,
                integrity_penalty=self._monitor.penalty,
                speed_bonus_enabled=self.speed_bonus_enabled,
            )

        outcome = RoundOutcome(
            round_id=self._round_id,
            claim_id=self._claim.id,
            correct=correct,
            points=result.points,
            confidence=self._confidence,
            verdict=verdict,
            trigger=trigger,
            time_elapsed_seconds=elapsed,
            speed_bonus=result.speed_bonus,
            forfeited=forfeit_reason is not None,
            forfeit_reason=forfeit_reason,
            calibration=None if forfeit_reason else calibration_label(correct, self._confidence),
        )
        self._outcome = outcome
        self._state = RoundState.TERMINAL
        logger.info(
            f"[round-outcome] round={outcome.round_id} trigger={trigger.value} correct={outcome.correct} "
            f"points={outcome.points} forfeit={forfeit_reason.value if forfeit_reason else None}"
        )
        if self.on_outcome:
            self.on_outcome(outcome)
        return True

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'state': self._state.value,
                'round_id': self._round_id,
                'claim_id': self._claim.id if self._claim else None,
                'verdict': self._verdict.value if self._verdict else None,
                'confidence': self._confidence,
                'remaining': self._clock.remaining() if self._state == RoundState.ACTIVE else 0,
                'duration': self._settings.discuss_time_sec if self._settings else None,
                'violation_count': self._monitor.violation_count,
                'outcome': self._outcome.to_dict() if self._outcome else None,
            }
