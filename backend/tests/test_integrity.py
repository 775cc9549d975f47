from truthgame.services.rounds.integrity import IntegrityMonitor


def _monitor(**kwargs):
    events = []
    monitor = IntegrityMonitor(
        on_warn=lambda count: events.append(('warn', count)),
        on_forfeit=lambda: events.append(('forfeit',)),
        **kwargs,
    )
    return monitor, events


def test_zero_tolerance_forfeits_on_first_violation():
    monitor, events = _monitor(threshold=1)
    monitor.activate()
    assert monitor.focus_lost() is True
    assert events == [('warn', 1), ('forfeit',)]
    # terminal until reset
    assert monitor.focus_lost() is False
    assert events == [('warn', 1), ('forfeit',)]
    assert monitor.violation_count == 1


def test_inactive_monitor_ignores_signals():
    monitor, events = _monitor()
    assert monitor.focus_lost() is False
    monitor.activate()
    monitor.deactivate()
    assert monitor.focus_lost() is False
    assert events == []


def test_warns_up_to_threshold_then_forfeits():
    monitor, events = _monitor(threshold=3)
    monitor.activate()
    monitor.focus_lost()
    monitor.focus_lost()
    assert events == [('warn', 1), ('warn', 2)]
    assert not monitor.forfeited
    monitor.focus_lost()
    assert events[-2:] == [('warn', 3), ('forfeit',)]
    assert monitor.forfeited


def test_penalty_is_flat_once_forfeited():
    monitor, _ = _monitor(threshold=3, forfeit_penalty=-10, violation_penalty=-1)
    monitor.activate()
    assert monitor.penalty == 0
    monitor.focus_lost()
    monitor.focus_lost()
    assert monitor.penalty == -2
    monitor.focus_lost()
    assert monitor.penalty == -10


def test_default_has_no_per_violation_penalty():
    monitor, _ = _monitor(threshold=2)
    monitor.activate()
    monitor.focus_lost()
    assert monitor.penalty == 0


def test_reset_clears_state():
    monitor, events = _monitor(threshold=1)
    monitor.activate()
    monitor.focus_lost()
    monitor.reset()
    assert monitor.violation_count == 0
    assert not monitor.forfeited
    assert not monitor.active
    monitor.activate()
    assert monitor.focus_lost() is True
    assert events.count(('forfeit',)) == 2
