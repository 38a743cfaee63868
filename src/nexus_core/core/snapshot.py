# nexus_core/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1ステージ遷移後のCPUの完全な状態を記録した不変のデータ構造を定義します。
UIへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List, Optional

from nexus_core.core.instruction import Instruction
from nexus_core.core.state import CpuStage, CpuState

# @intent:responsibility ある一時点におけるCPUの完全な状態を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Snapshot:
    """
    ステージ遷移1回分の結果を記録した不変のデータ構造。

    `state` は遷移後の状態のコピーであり、以後のステップで変化しません。
    `stage` は今回実行されたステージ（遷移前のステージ）です。
    """
    state: CpuState
    stage: CpuStage
    instruction: Optional[Instruction] = None
    micro_step_count: int = 0
    active_wires: List[str] = field(default_factory=list)
    halted: bool = False
    step_count: int = 0
    disassembly: str = "" # 例: "ADD R3, R1, R2"

    # @intent:rationale Snapshotは不変であるべきという原則に従い、frozen=Trueを設定。
    #                  CpuStateはエンジンが保持するインスタンスではなく、生成時のコピーを保持する。
