from orchestration.scheduler import ManualClock, PhaseScheduler, TimerBackend, TimerHandle


class RecordingBackend(TimerBackend):
    """Backend that never fires on its own and ignores cancellation."""

    class Handle(TimerHandle):
        def __init__(self):
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.calls = []

    def call_later(self, delay_ms, callback):
        handle = self.Handle()
        self.calls.append((delay_ms, callback, handle))
        return handle


def test_manual_clock_fires_in_due_order():
    clock = ManualClock()
    fired = []
    clock.call_later(300, lambda: fired.append("c"))
    clock.call_later(100, lambda: fired.append("a"))
    clock.call_later(100, lambda: fired.append("b"))

    assert clock.advance(99) == 0
    assert clock.advance(1) == 2
    assert fired == ["a", "b"]
    assert clock.now_ms == 100
    clock.advance(500)
    assert fired == ["a", "b", "c"]
    assert clock.now_ms == 600


def test_manual_clock_fires_timers_scheduled_while_advancing():
    clock = ManualClock()
    fired = []

    def first():
        fired.append(clock.now_ms)
        clock.call_later(50, lambda: fired.append(clock.now_ms))

    clock.call_later(50, first)
    clock.advance(100)
    assert fired == [50, 100]


def test_manual_clock_skips_cancelled_timers():
    clock = ManualClock()
    fired = []
    handle = clock.call_later(10, lambda: fired.append(1))
    handle.cancel()
    assert clock.pending() == 0
    clock.advance(20)
    assert fired == []


def test_run_until_idle():
    clock = ManualClock()
    fired = []
    clock.call_later(10, lambda: clock.call_later(10, lambda: fired.append(clock.now_ms)))
    assert clock.run_until_idle() == 2
    assert fired == [20]


def test_scheduler_runs_current_generation_tasks():
    clock = ManualClock()
    scheduler = PhaseScheduler(clock)
    ran = []
    assert scheduler.schedule(100, lambda: ran.append(True))
    assert scheduler.pending == 1
    clock.advance(100)
    assert ran == [True]
    assert scheduler.pending == 0


def test_invalidate_cancels_pending_tasks():
    clock = ManualClock()
    scheduler = PhaseScheduler(clock)
    ran = []
    scheduler.schedule(100, lambda: ran.append(True))

    generation = scheduler.invalidate()
    assert generation == 1
    assert scheduler.pending == 0
    assert clock.pending() == 0
    clock.advance(1000)
    assert ran == []


def test_stale_task_is_discarded_even_if_timer_fires():
    backend = RecordingBackend()
    scheduler = PhaseScheduler(backend)
    ran = []
    scheduler.schedule(100, lambda: ran.append("old"))
    scheduler.invalidate()
    scheduler.schedule(100, lambda: ran.append("new"))

    old_callback, old_handle = backend.calls[0][1], backend.calls[0][2]
    assert old_handle.cancelled
    old_callback()
    assert ran == []

    backend.calls[1][1]()
    assert ran == ["new"]


def test_schedule_refuses_stale_generation():
    scheduler = PhaseScheduler(ManualClock())
    old = scheduler.generation
    scheduler.invalidate()
    assert not scheduler.schedule(0, lambda: None, generation=old)
    assert scheduler.is_current(old + 1)
