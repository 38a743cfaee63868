# nexus_core/debugger/debugger.py
"""
シミュレータ（実行制御）モジュール。

1つのCPUエンジンを所有し、ソースのロード、リセット、ステップ実行、連続実行と一時停止、
およびユーザーが指定した条件（ブレークポイント）での中断を担います。
実行は単一スレッドで逐次的に行われ、各ステップは不可分です。
"""
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional, Tuple

from nexus_core.core.cpu import HarvardCpu
from nexus_core.core.snapshot import Snapshot
from nexus_core.core.state import CpuStage, CpuState
from nexus_core.loader.assembler import Assembler
from nexus_core.loader.loader import SourceLoader

logger = logging.getLogger(__name__)

DEFAULT_CLOCK_INTERVAL_MS = 1000
DEFAULT_HISTORY_LIMIT = 10000

SnapshotListener = Callable[[Snapshot], None]

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # 指定アドレスの命令をフェッチする直前
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のデータメモリアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用 (例: "R3")
    enabled: bool = True

# @intent:responsibility CPUエンジンの実行制御とブレークポイント管理を行います。
class Simulator:
    """
    シミュレーションセッションを表すクラス。
    CpuStateはこのインスタンスが所有するエンジンの中にのみ存在します。
    """
    def __init__(self, cpu: Optional[HarvardCpu] = None,
                 clock_interval_ms: int = DEFAULT_CLOCK_INTERVAL_MS,
                 history_limit: int = DEFAULT_HISTORY_LIMIT,
                 loader: Optional[SourceLoader] = None):
        self._cpu = cpu or HarvardCpu()
        self._assembler = Assembler()
        self._loader = loader or SourceLoader(self._assembler)
        self.clock_interval_ms = clock_interval_ms
        self._breakpoints: List[BreakpointCondition] = []
        self._listeners: List[SnapshotListener] = []
        self._running: bool = False
        self._source_text: str = ""
        self._last_snapshot: Optional[Snapshot] = None
        # @intent:responsibility 実行履歴を保持し、ステップバックをサポートします。
        self._history: Deque[Tuple[CpuState, int]] = deque(maxlen=history_limit)

    def get_cpu(self) -> HarvardCpu:
        return self._cpu

    @property
    def source_text(self) -> str:
        return self._source_text

    # --- ロードとリセット ---
    # @intent:responsibility ソーステキストをアセンブルして命令メモリを置き換え、状態をリセットします。
    # @intent:pre-condition 連続実行中でないこと（ステップ間でのみ呼び出されます）。
    def load(self, source_text: str) -> None:
        self.pause()
        self._source_text = source_text
        self._cpu.load_program(self._assembler.assemble(source_text))
        self._history.clear()
        self._last_snapshot = None
        logger.debug("Loaded %d instructions", len(self._cpu.get_state().instruction_memory))

    def load_file(self, file_path: str) -> None:
        self.load(self._loader.read_source(file_path))

    # @intent:responsibility 状態を初期化します。ロード済みのプログラムは保持されます。
    def reset(self) -> None:
        self.pause()
        self._cpu.reset()
        self._history.clear()
        self._last_snapshot = None

    def is_halted(self) -> bool:
        return self._cpu.is_halted()

    def is_running(self) -> bool:
        return self._running

    def snapshot(self) -> Snapshot:
        return self._last_snapshot or self._cpu.snapshot()

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    # --- リスナー ---
    def add_listener(self, listener: SnapshotListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- ブレークポイント ---
    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        """
        ブレークポイント条件を追加します。
        """
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def _pc_breakpoint_hit(self) -> bool:
        state = self._cpu.get_state()
        if state.current_stage != CpuStage.FETCH:
            return False
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == state.pc
            for bp in self._breakpoints
        )

    def _check_other_breakpoints(self, snapshot: Snapshot, previous_state: CpuState) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                if (snapshot.stage == CpuStage.WRITE_BACK and current_state.control_signals.MW
                        and current_state.alu_result == bp.address):
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                index = _register_index(bp.register_name)
                if index is not None and current_state.read_register(index) == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                index = _register_index(bp.register_name)
                if index is not None and current_state.read_register(index) != previous_state.read_register(index):
                    return True
        return False

    # --- 実行制御 ---
    # @intent:responsibility CPUを1ステージ進め、その結果のSnapshotを返します。
    def step(self) -> Snapshot:
        """
        停止状態でのステップは状態を変更せず、halted=TrueのSnapshotを返します（履歴にも積みません）。
        """
        previous_state = self._cpu.get_state().copy()
        previous_count = self._cpu.step_count
        snapshot = self._cpu.step()
        if not snapshot.halted:
            self._history.append((previous_state, previous_count))
        self._last_snapshot = snapshot
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    # @intent:responsibility 実行履歴を1つ戻り、CPUの状態を復元します。
    def step_back(self) -> Optional[Snapshot]:
        if not self._history:
            return None
        state, step_count = self._history.pop()
        self._cpu.restore_state(state, step_count)
        self._last_snapshot = None
        return self._cpu.snapshot()

    def get_history_depth(self) -> int:
        return len(self._history)

    # @intent:responsibility 停止、一時停止、またはブレークポイントまでステップを繰り返します。
    # @intent:rationale 各ステップの間で一時停止フラグを確認するため、状態が中途半端になることはありません。
    def run(self, interval_ms: Optional[int] = None, max_steps: Optional[int] = None) -> Optional[Snapshot]:
        """
        連続実行します。interval_ms はステップ間の待ち時間（省略時は clock_interval_ms）です。
        pause() はリスナーなどからステップ間で呼び出せます。
        """
        interval = self.clock_interval_ms if interval_ms is None else interval_ms
        if interval < 0:
            raise ValueError(f"Run interval must not be negative: {interval}")

        self._running = True
        steps = 0
        snapshot = self._last_snapshot
        first = True

        while self._running:
            if self.is_halted():
                snapshot = self.step()
                logger.info("Program complete after %d stage steps", self._cpu.step_count)
                break

            # 現在のPCのブレークポイントで停止中の場合、最初の1ステップは許可する
            if not first and self._pc_breakpoint_hit():
                logger.info("Breakpoint hit at PC: %d", self._cpu.get_state().pc)
                break

            previous_state = self._cpu.get_state().copy()
            snapshot = self.step()
            steps += 1
            first = False

            if self._check_other_breakpoints(snapshot, previous_state):
                logger.info("Breakpoint hit at PC: %d", snapshot.state.pc)
                break

            if max_steps is not None and steps >= max_steps:
                break

            if interval and self._running:
                time.sleep(interval / 1000.0)

        self._running = False
        return snapshot

    # @intent:responsibility 連続実行をステップ間で停止します。
    def pause(self) -> None:
        self._running = False

    # @intent:responsibility プログラムの終端まで待ち時間なしで実行します。
    def run_to_completion(self, max_steps: int = 100000) -> Optional[Snapshot]:
        return self.run(interval_ms=0, max_steps=max_steps)

def _register_index(register_name: Optional[str]) -> Optional[int]:
    if not register_name:
        return None
    name = register_name.strip().upper()
    if name.startswith("R") and name[1:].isdigit():
        return int(name[1:])
    return None
