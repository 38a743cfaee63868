# nexus_core/core/cpu.py
"""
Core Layer (CPUエンジン)

このモジュールは、ハーバード・アーキテクチャのシングルサイクルCPUを
FETCH → DECODE → EXECUTE → WRITE_BACK のステージ状態機械として駆動します。
1回の step() は1ステージ分の遷移を不可分に実行し、その結果のスナップショットを返します。
"""
import logging
from typing import Callable, Dict, List, Optional, Tuple

from nexus_core.common.types import RegisterInfo, RegisterLayoutInfo, RegisterMap
from nexus_core.core import alu
from nexus_core.core.control import MICRO_STEP_COUNTS, STAGE_WIRES, decode_control_signals
from nexus_core.core.disassembler import disassemble, format_instruction
from nexus_core.core.instruction import Instruction
from nexus_core.core.snapshot import Snapshot
from nexus_core.core.state import REGISTER_COUNT, ControlSignals, CpuStage, CpuState

logger = logging.getLogger(__name__)

# @intent:responsibility CPUの状態管理とステージ遷移を行います。
class HarvardCpu:
    """
    命令メモリとデータメモリを分離したシングルサイクルCPU。
    同時に処理中の命令は常に1つだけで、パイプラインの重なりはありません。
    """
    # @intent:responsibility CPUの状態を初期化します。
    # @intent:pre-condition `register_width`はNone（幅制限なし）または正の整数である必要があります。
    def __init__(self, register_width: Optional[int] = None):
        if register_width is not None and register_width <= 0:
            raise ValueError("register_width must be a positive integer or None.")
        self._register_width = register_width
        self._state: CpuState = self._create_initial_state()
        self._step_count: int = 0
        self._stage_handlers: Dict[CpuStage, Callable[[], None]] = {
            CpuStage.FETCH: self._fetch,
            CpuStage.DECODE: self._decode,
            CpuStage.EXECUTE: self._execute,
            CpuStage.WRITE_BACK: self._write_back,
        }
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`または`snapshot()`を介して行う。

    @property
    def register_width(self) -> Optional[int]:
        return self._register_width

    def _create_initial_state(self, instructions: Optional[List[Instruction]] = None) -> CpuState:
        return CpuState(instruction_memory=list(instructions or []))

    # @intent:responsibility 命令メモリを置き換え、CPUをリセットします。
    def load_program(self, instructions: List[Instruction]) -> None:
        self._state = self._create_initial_state(instructions)
        self._step_count = 0

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    # @intent:rationale レジスタ、データメモリ、PC、ステージは初期化し、命令メモリは保持して再実行できるようにします。
    def reset(self) -> None:
        """
        全レジスタを0、データメモリを空、PCを0、ステージをFETCHに戻します。
        """
        self._state = self._create_initial_state(self._state.instruction_memory)
        self._step_count = 0

    # @intent:responsibility 現在のCPUの状態を返します。
    def get_state(self) -> CpuState:
        """
        現在のCPUの状態を返します（コピーではありません）。
        表示層には snapshot() を使用してください。
        """
        return self._state

    # @intent:responsibility 保存されていた状態にCPUを復元します（ステップバック用）。
    def restore_state(self, state: CpuState, step_count: Optional[int] = None) -> None:
        self._state = state.copy()
        if step_count is not None:
            self._step_count = step_count

    @property
    def step_count(self) -> int:
        return self._step_count

    # @intent:responsibility プログラムの終端に達しているかを返します。
    def is_halted(self) -> bool:
        """
        FETCHステージでPCが命令メモリの終端以降を指している場合に停止状態です。
        """
        state = self._state
        return state.current_stage == CpuStage.FETCH and state.pc >= len(state.instruction_memory)

    # @intent:responsibility CPUを1ステージ進め、その結果のスナップショットを返します。
    # @intent:rationale ステージごとの処理はハンドラに委譲し、遷移とSnapshot生成は共通化します。
    def step(self) -> Snapshot:
        """
        現在のステージを実行して次のステージへ遷移します。
        停止状態の場合は状態を一切変更せず、halted=TrueのSnapshotを返します。
        """
        stage = self._state.current_stage
        if self.is_halted():
            logger.info("Program complete at PC=%d", self._state.pc)
            return self._create_snapshot(stage, halted=True)

        self._stage_handlers[stage]()
        self._state.current_stage = stage.next()
        self._step_count += 1
        return self._create_snapshot(stage)

    # @intent:responsibility 現在の命令インデックスを記録します。
    def _fetch(self) -> None:
        self._state.current_instruction_index = self._state.pc

    # @intent:responsibility 命令語から制御信号を導出します。
    def _decode(self) -> None:
        instruction = self._state.current_instruction()
        if instruction is None:
            self._state.control_signals = ControlSignals()
            return
        self._state.control_signals = decode_control_signals(instruction.binary)

    # @intent:responsibility ALU結果を計算します。レジスタとメモリは変更しません。
    def _execute(self) -> None:
        instruction = self._state.current_instruction()
        if instruction is None:
            self._state.alu_result = 0
            return
        self._state.alu_result = alu.compute(instruction, self._state, self._register_width)

    # @intent:responsibility メモリ書き込み、レジスタ書き込み、PC更新を行います。
    def _write_back(self) -> None:
        state = self._state
        signals = state.control_signals
        instruction = state.current_instruction()
        next_pc = state.pc + 1

        if instruction is None:
            state.pc = next_pc
            return

        # 1. メモリ書き込み (アドレス = ALU結果, データ = src2)
        if signals.MW:
            state.data_memory[state.alu_result] = state.read_register(instruction.src2)

        # 2. レジスタ書き込み
        if signals.RW:
            write_data = state.read_memory(state.alu_result) if signals.MD else state.alu_result
            if instruction.dest is not None:
                if 0 <= instruction.dest < len(state.registers):
                    state.registers[instruction.dest] = write_data
                else:
                    logger.debug("Ignoring write to out-of-range register R%d", instruction.dest)

        # 3. PC更新
        if signals.PL:
            if signals.JB:
                next_pc = state.read_register(instruction.src1)
            elif state.alu_result == 0:
                # BCはデコードされるが判定には使用しない（ゼロ判定固定）
                next_pc = state.pc + (instruction.address or 0)

        state.pc = next_pc

    # @intent:responsibility 現在の状態のスナップショットを生成します（状態は変更しません）。
    def snapshot(self) -> Snapshot:
        return self._create_snapshot(self._state.current_stage, halted=self.is_halted())

    def _create_snapshot(self, stage: CpuStage, halted: bool = False) -> Snapshot:
        instruction = None if halted else self._state.current_instruction()
        return Snapshot(
            state=self._state.copy(),
            stage=stage,
            instruction=instruction,
            micro_step_count=0 if halted else MICRO_STEP_COUNTS[stage],
            active_wires=[] if halted else list(STAGE_WIRES[stage]),
            halted=halted,
            step_count=self._step_count,
            disassembly=format_instruction(instruction) if instruction else "",
        )

    # --- UI向けAPI ---
    def get_register_map(self) -> RegisterMap:
        """
        現在のレジスタ値を辞書形式で返す。
        UIがCPUの内部構造を知らなくても値を表示できるようにするために使用される。
        """
        registers = {f"R{i}": value for i, value in enumerate(self._state.registers)}
        registers["PC"] = self._state.pc
        registers["ALU"] = self._state.alu_result
        return registers

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        width = self._register_width or 0
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"R{i}", width) for i in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Control", [RegisterInfo("PC", 0), RegisterInfo("ALU", width)]),
        ]

    def get_control_signal_state(self) -> Dict[str, bool]:
        return self._state.control_signals.as_dict()

    def disassemble(self, start: int, length: int) -> List[Tuple[int, str, str]]:
        return disassemble(self._state.instruction_memory, start, length)
