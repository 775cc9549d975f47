from truthgame.services.rounds.clock import RoundClock


def _clock(scheduler, ticks, expirations, **kwargs):
    return RoundClock(
        on_tick=lambda gen, remaining: ticks.append((gen, remaining)),
        on_expired=lambda gen: expirations.append((gen, scheduler.now())),
        spawn=scheduler.spawn,
        sleep=kwargs.pop('sleep', scheduler.sleep),
        now=scheduler.now,
        **kwargs,
    )


def test_ticks_down_and_expires_once(scheduler):
    ticks, expirations = [], []
    clock = _clock(scheduler, ticks, expirations)
    gen = clock.start(3)
    assert clock.running
    scheduler.run_pending()
    assert [r for _, r in ticks] == [3, 2, 1, 0]
    assert expirations == [(gen, 3.0)]
    assert not clock.running
    assert clock.remaining() == 0


def test_cancel_suppresses_expiry(scheduler):
    ticks, expirations = [], []
    clock = _clock(scheduler, ticks, expirations)
    clock.start(5)
    clock.cancel()
    scheduler.run_pending()
    assert ticks == []
    assert expirations == []


def test_cancel_mid_countdown(scheduler):
    ticks, expirations = [], []
    clock = None

    def on_tick(gen, remaining):
        ticks.append(remaining)
        if remaining == 2:
            clock.cancel()

    clock = RoundClock(on_tick=on_tick, on_expired=lambda gen: expirations.append(gen),
                       spawn=scheduler.spawn, sleep=scheduler.sleep, now=scheduler.now)
    clock.start(4)
    scheduler.run_pending()
    assert ticks == [4, 3, 2]
    assert expirations == []


def test_restart_supersedes_previous_run(scheduler):
    ticks, expirations = [], []
    clock = _clock(scheduler, ticks, expirations)
    first = clock.start(5)
    second = clock.start(2)
    assert second == first + 1
    scheduler.run_pending()
    assert {gen for gen, _ in ticks} == {second}
    assert [gen for gen, _ in expirations] == [second]


def test_remaining_rounds_up_and_clamps(scheduler):
    clock = _clock(scheduler, [], [])
    clock.start(10)
    scheduler.advance(2.5)
    assert clock.remaining() == 8
    scheduler.advance(100)
    assert clock.remaining() == 0


def test_short_sleeps_never_fire_early(scheduler):
    ticks, expirations = [], []

    def lazy_sleep(seconds):
        scheduler.t += max(seconds - 0.3, 0.05)

    clock = _clock(scheduler, ticks, expirations, sleep=lazy_sleep)
    clock.start(3)
    scheduler.run_pending()
    assert len(expirations) == 1
    assert expirations[0][1] >= 3.0
    assert all(r >= 0 for _, r in ticks)


def test_zero_duration_expires_immediately(scheduler):
    ticks, expirations = [], []
    clock = _clock(scheduler, ticks, expirations)
    clock.start(0)
    scheduler.run_pending()
    assert [r for _, r in ticks] == [0]
    assert len(expirations) == 1


def test_tick_interval(scheduler):
    ticks, expirations = [], []
    clock = _clock(scheduler, ticks, expirations, tick_interval=2.0)
    clock.start(5)
    scheduler.run_pending()
    assert [r for _, r in ticks] == [5, 3, 1, 0]
    assert len(expirations) == 1
