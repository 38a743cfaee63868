from dataclasses import dataclass, field
from typing import Dict, Optional

@dataclass
class CpuInitialState:
    registers: Dict[str, int] = field(default_factory=dict)  # 例: {"R1": 5}
    data_memory: Dict[int, int] = field(default_factory=dict)
    pc: int = 0

@dataclass
class SimulatorConfig:
    clock_interval_ms: int = 1000
    register_width: Optional[int] = None  # None: 幅制限なし
    micro_stepping: bool = False
    history_limit: int = 10000
    program: Optional[str] = None  # アセンブリソースファイルのパス
    initial_state: CpuInitialState = field(default_factory=CpuInitialState)
