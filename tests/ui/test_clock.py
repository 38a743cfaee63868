# tests/ui/test_clock.py
"""
QTimer駆動の自動実行クロックを検証するテスト。
"""
import pytest
from PySide6.QtCore import QEventLoop, QTimer

from nexus_core.debugger.debugger import Simulator
from nexus_core.ui.clock import AutoRunClock
from nexus_core.ui.micro_stepper import MicroStepper

PROGRAM = "LDI R1, 5\nLDI R2, 10\nADD R3, R1, R2"

def _run_event_loop(clock: AutoRunClock, timeout_ms: int = 5000) -> None:
    loop = QEventLoop()
    clock.halted.connect(loop.quit)
    QTimer.singleShot(timeout_ms, loop.quit)
    loop.exec()

class TestAutoRunClock:
    @pytest.fixture
    def simulator(self, qapp):
        sim = Simulator(clock_interval_ms=0)
        sim.load(PROGRAM)
        return sim

    # @intent:test_case プログラム終了までステップし、haltedシグナルで停止することを検証します。
    def test_runs_until_halted(self, simulator):
        clock = AutoRunClock(simulator)
        stepped = []
        halted = []
        clock.stepped.connect(stepped.append)
        clock.halted.connect(lambda: halted.append(True))

        clock.start()
        _run_event_loop(clock)

        assert halted == [True]
        assert len(stepped) == 12
        assert not clock.is_running()
        assert simulator.get_cpu().get_state().registers[3] == 15

    def test_pause_stops_between_steps(self, simulator):
        clock = AutoRunClock(simulator)
        loop = QEventLoop()

        def on_stepped(snapshot):
            if snapshot.step_count == 5:
                clock.pause()
                loop.quit()

        clock.stepped.connect(on_stepped)
        QTimer.singleShot(5000, loop.quit)
        clock.start(0)
        loop.exec()

        assert not clock.is_running()
        assert simulator.get_cpu().step_count == 5

    def test_micro_mode_reveals_every_micro_step(self, simulator):
        clock = AutoRunClock(simulator, MicroStepper(simulator, enabled=True))
        stepped = []
        clock.stepped.connect(stepped.append)

        clock.start()
        _run_event_loop(clock)

        assert len(stepped) == 39
        assert simulator.is_halted()

    def test_negative_interval_is_rejected(self, simulator):
        clock = AutoRunClock(simulator)
        with pytest.raises(ValueError):
            clock.start(-5)
        assert not clock.is_running()
