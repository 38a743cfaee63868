# src/nexus_core/ui/app.py
"""
コンソール版のエントリポイント。
アセンブリソースを読み込み、イベントループ上の自動実行クロックでシミュレータを動かし、
ステージごとのトレースと最終状態を標準出力に表示します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from PySide6.QtCore import QCoreApplication

from nexus_core.config.builder import SystemBuilder
from nexus_core.config.loader import ConfigLoader
from nexus_core.config.models import SimulatorConfig
from nexus_core.core.snapshot import Snapshot
from nexus_core.core.state import CpuStage, CpuState
from nexus_core.ui.clock import AutoRunClock
from nexus_core.ui.micro_stepper import MicroStepper

# @intent:responsibility 1ステップ分のトレース行を整形します。
def format_trace(snapshot: Snapshot, micro_step: Optional[int] = None) -> str:
    state = snapshot.state
    micro = f".{micro_step}" if micro_step is not None else ""
    line = f"[{snapshot.step_count:5d}{micro}] {snapshot.stage.value:<10} PC={state.pc:<4d} {snapshot.disassembly}"
    if snapshot.stage == CpuStage.DECODE:
        active = [name for name, on in state.control_signals.as_dict().items() if on]
        line += f"  signals={','.join(active) or '-'}"
    elif snapshot.stage == CpuStage.EXECUTE:
        line += f"  alu={state.alu_result}"
    return line

def format_state(state: CpuState) -> List[str]:
    lines = ["Registers: " + " ".join(f"R{i}={v}" for i, v in enumerate(state.registers))]
    lines.append(f"PC: {state.pc}")
    if state.data_memory:
        lines.append("Data memory: " + " ".join(f"[{a}]={v}" for a, v in sorted(state.data_memory.items())))
    else:
        lines.append("Data memory: (empty)")
    return lines

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nexus-core",
        description="Harvard architecture single-cycle CPU simulator (console trace).",
    )
    parser.add_argument("source", nargs="?", help="assembly source file (default: built-in sample program)")
    parser.add_argument("--config", help="YAML system config file")
    parser.add_argument("--interval", type=int, default=None,
                        help="milliseconds between stage steps (default: 0, or clock_interval_ms from --config)")
    parser.add_argument("--micro", action="store_true", help="reveal each stage in micro-steps")
    parser.add_argument("--max-steps", type=int, default=10000, help="stop after this many stage steps")
    parser.add_argument("--quiet", action="store_true", help="only print the final state")
    parser.add_argument("--log-level", default="WARNING", help="logging level (DEBUG, INFO, ...)")
    return parser

# @intent:responsibility アプリケーションのメイン関数。
def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    if args.config:
        config = ConfigLoader().load_from_file(args.config)
        interval = config.clock_interval_ms if args.interval is None else args.interval
    else:
        config = SimulatorConfig()
        interval = args.interval or 0
    if args.source:
        config.program = args.source

    simulator = SystemBuilder().build_system(config)

    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    stepper = MicroStepper(simulator, enabled=args.micro or config.micro_stepping)
    clock = AutoRunClock(simulator, stepper)

    def on_stepped(snapshot: Snapshot):
        if not args.quiet:
            print(format_trace(snapshot, stepper.position if stepper.enabled else None))
        if snapshot.step_count >= args.max_steps and stepper.is_stage_revealed():
            clock.pause()
            print(f"Stopped after {snapshot.step_count} stage steps (limit reached).")
            app.quit()

    def on_halted():
        print("Program complete.")
        app.quit()

    clock.stepped.connect(on_stepped)
    clock.halted.connect(on_halted)
    clock.start(interval)
    app.exec()

    for line in format_state(simulator.get_cpu().get_state()):
        print(line)
    return 0

if __name__ == '__main__':
    sys.exit(main())
