import logging

from nexus_core.core.cpu import HarvardCpu
from nexus_core.debugger.debugger import Simulator
from nexus_core.loader.loader import SAMPLE_PROGRAM
from .models import CpuInitialState, SimulatorConfig

logger = logging.getLogger(__name__)

# @intent:responsibility 設定（Config）に基づいて、CPUとシミュレータを生成・接続し、初期状態を適用します。
class SystemBuilder:
    def build_system(self, config: SimulatorConfig) -> Simulator:
        cpu = HarvardCpu(register_width=config.register_width)
        simulator = Simulator(
            cpu,
            clock_interval_ms=config.clock_interval_ms,
            history_limit=config.history_limit,
        )

        if config.program:
            simulator.load_file(config.program)
        else:
            simulator.load(SAMPLE_PROGRAM)

        # 初期状態の適用
        self.apply_initial_state(cpu, config.initial_state)

        return simulator

    # @intent:responsibility Configで定義された初期状態をCPUに適用します。
    # @intent:rationale 初期値の適用はビルド時の1回のみで、以後の reset() は常に全て0に戻します。
    def apply_initial_state(self, cpu: HarvardCpu, config_state: CpuInitialState):
        """
        Configから指定されたレジスタ、データメモリ、PCの初期値を適用します。
        """
        state = cpu.get_state()
        state.pc = config_state.pc

        for reg_name, value in config_state.registers.items():
            index = reg_name[1:]
            if reg_name.startswith("R") and index.isdigit() and int(index) < len(state.registers):
                state.registers[int(index)] = value
            else:
                logger.warning("Unknown register '%s' in initial state, ignored", reg_name)

        state.data_memory.update(config_state.data_memory)
