# nexus_core/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、ハーバード・アーキテクチャCPUの状態（レジスタ群、メモリ、
ステージ、サイクル内の作業レジスタ）を保持するデータ構造を定義します。
"""
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from nexus_core.common.types import DataMemory
from nexus_core.core.instruction import Instruction

REGISTER_COUNT = 8

# @intent:responsibility 命令サイクルのステージを定義します。
class CpuStage(Enum):
    FETCH = "FETCH"
    DECODE = "DECODE"
    EXECUTE = "EXECUTE"
    WRITE_BACK = "WRITE_BACK"

    # @intent:responsibility 巡回順序で次のステージを返します。
    def next(self) -> "CpuStage":
        order = list(CpuStage)
        return order[(order.index(self) + 1) % len(order)]

# @intent:responsibility デコードされた制御信号を保持します。
@dataclass(frozen=True) # 不変データ構造
class ControlSignals:
    """
    データパスのマルチプレクサと書き込み許可を制御する1ビット信号群。
    """
    MB: bool = False  # Mux B (0=レジスタ, 1=即値)
    MD: bool = False  # Mux D (0=ALU結果, 1=データメモリ)
    RW: bool = False  # レジスタ書き込み
    MW: bool = False  # メモリ書き込み
    PL: bool = False  # PCロード (分岐/ジャンプ)
    JB: bool = False  # ジャンプ(1) / 分岐(0)
    BC: bool = False  # 分岐条件の極性 (デコードのみ、判定には未使用)

    def as_dict(self) -> dict:
        return {
            "MB": self.MB, "MD": self.MD, "RW": self.RW, "MW": self.MW,
            "PL": self.PL, "JB": self.JB, "BC": self.BC,
        }

# @intent:responsibility CPUのアーキテクチャ状態とサイクル内の作業レジスタを保持します。
@dataclass
class CpuState:
    """
    CPUの状態を保持するデータクラス。
    エンジンのステージ遷移関数だけがこれを変更します。
    """
    registers: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    pc: int = 0
    data_memory: DataMemory = field(default_factory=dict)
    instruction_memory: List[Instruction] = field(default_factory=list)
    current_stage: CpuStage = CpuStage.FETCH
    control_signals: ControlSignals = field(default_factory=ControlSignals)
    alu_result: int = 0
    current_instruction_index: int = 0
    # @intent:rationale 作業レジスタ(control_signals, alu_result, current_instruction_index)は
    #                  それを生成したサイクル内でのみ有効で、次のステージが読み出します。

    # @intent:responsibility 現在実行中の命令を返します。範囲外の場合はNone。
    def current_instruction(self) -> Optional[Instruction]:
        if 0 <= self.current_instruction_index < len(self.instruction_memory):
            return self.instruction_memory[self.current_instruction_index]
        return None

    # @intent:responsibility 範囲外や未設定のインデックスを0として扱うレジスタ読み出し。
    def read_register(self, index: Optional[int]) -> int:
        if index is None or not 0 <= index < len(self.registers):
            return 0
        return self.registers[index]

    def read_memory(self, address: int) -> int:
        return self.data_memory.get(address, 0)

    # @intent:responsibility 状態の独立したコピーを作成します。
    # @intent:rationale InstructionとControlSignalsは不変のため、可変なコンテナのみ複製します。
    def copy(self) -> "CpuState":
        clone = copy.copy(self)
        clone.registers = list(self.registers)
        clone.data_memory = dict(self.data_memory)
        clone.instruction_memory = list(self.instruction_memory)
        return clone
