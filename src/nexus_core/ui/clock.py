# src/nexus_core/ui/clock.py
"""
自動実行クロック。
QTimerでシミュレータを一定間隔でステップさせます。タイマーは所有スレッドの
イベントループ上で発火するため、ステップ実行・一時停止・リセットは常に逐次化されます。
"""
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal, Slot

from nexus_core.core.snapshot import Snapshot
from nexus_core.debugger.debugger import Simulator
from nexus_core.ui.micro_stepper import MicroStepper

# @intent:responsibility シミュレータの連続実行（RUN/PAUSE）をタイマーで駆動します。
class AutoRunClock(QObject):
    """
    start() で連続実行を開始し、pause() でステップ間に停止します。
    プログラムが終了すると自動的に停止し、halted シグナルを発行します。
    """
    stepped = Signal(Snapshot)
    halted = Signal()

    def __init__(self, simulator: Simulator, stepper: Optional[MicroStepper] = None, parent=None):
        super().__init__(parent)
        self._simulator = simulator
        self._stepper = stepper or MicroStepper(simulator)
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._on_timeout)

    # @intent:responsibility 連続実行を開始します。
    # @intent:pre-condition interval_ms は0以上である必要があります。
    def start(self, interval_ms: Optional[int] = None) -> None:
        interval = self._simulator.clock_interval_ms if interval_ms is None else interval_ms
        if interval < 0:
            raise ValueError(f"Clock interval must not be negative: {interval}")
        self._timer.start(interval)

    def pause(self) -> None:
        self._timer.stop()

    def is_running(self) -> bool:
        return self._timer.isActive()

    @Slot()
    def _on_timeout(self):
        if self._simulator.is_halted() and self._stepper.is_stage_revealed():
            self._timer.stop()
            self._simulator.step()
            self.halted.emit()
            return
        snapshot = self._stepper.advance()
        self.stepped.emit(snapshot)
