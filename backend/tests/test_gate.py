import threading

from truthgame.services.rounds.gate import SubmissionGate
from truthgame.services.rounds.types import CompletionTrigger


def test_first_trigger_wins():
    gate = SubmissionGate()
    assert gate.try_complete(CompletionTrigger.CLOCK_EXPIRED) is True
    assert gate.try_complete(CompletionTrigger.MANUAL_SUBMIT) is False
    assert gate.try_complete(CompletionTrigger.FORCED_FORFEIT) is False
    assert gate.completed
    assert gate.winner == CompletionTrigger.CLOCK_EXPIRED


def test_rearm_allows_next_round():
    gate = SubmissionGate()
    gate.try_complete(CompletionTrigger.MANUAL_SUBMIT)
    gate.rearm()
    assert not gate.completed
    assert gate.winner is None
    assert gate.try_complete(CompletionTrigger.FORCED_FORFEIT) is True


def test_concurrent_attempts_admit_exactly_one():
    gate = SubmissionGate()
    barrier = threading.Barrier(8)
    wins = []

    def attempt():
        barrier.wait()
        if gate.try_complete(CompletionTrigger.MANUAL_SUBMIT):
            wins.append(1)

    threads = [threading.Thread(target=attempt) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(wins) == 1
