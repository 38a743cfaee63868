# nexus_core/core/control.py
"""
制御ユニット

命令語の4ビット（bit15, bit14, bit13, bit9）から制御信号を導出します。
併せて、表示層が参照するステージごとのマイクロステップ数とアクティブ配線を定義します。
"""
from typing import Dict, List

from nexus_core.core.instruction import INSTRUCTION_WIDTH
from nexus_core.core.state import ControlSignals, CpuStage

# @intent:data_structure 各ステージを表示上いくつのマイクロステップに分割するか（0から数える）。
# エンジンの状態には一切影響しません。
MICRO_STEP_COUNTS: Dict[CpuStage, int] = {
    CpuStage.FETCH: 3,
    CpuStage.DECODE: 4,
    CpuStage.EXECUTE: 3,
    CpuStage.WRITE_BACK: 3,
}

# @intent:data_structure 各ステージで信号が流れるデータパス上の配線ID。
STAGE_WIRES: Dict[CpuStage, List[str]] = {
    CpuStage.FETCH: ["pc-mem", "mem-dec", "mem-ext"],
    CpuStage.DECODE: ["dec-reg-rw", "dec-mux-b", "dec-alu", "dec-mem-mw"],
    CpuStage.EXECUTE: ["reg-alu-a", "reg-mux-b", "mux-b-alu", "alu-out"],
    CpuStage.WRITE_BACK: ["mux-d-reg", "mem-mux-d"],
}

def _bit(binary: str, bit: int) -> bool:
    # bit はLSB=0の番号。文字列はMSBが先頭。
    return binary[INSTRUCTION_WIDTH - 1 - bit] == "1"

# @intent:responsibility 命令語から制御信号を導出します（真理値表）。
# @intent:pre-condition `binary`は16文字の'0'/'1'文字列である必要があります。
def decode_control_signals(binary: str) -> ControlSignals:
    """
    制御信号は binary の bit15, bit14, bit13, bit9 のみの純粋関数です。
    """
    bit15 = _bit(binary, 15)
    bit14 = _bit(binary, 14)
    bit13 = _bit(binary, 13)
    bit9 = _bit(binary, 9)

    return ControlSignals(
        PL=bit15 and bit14,
        JB=bit13,
        MB=bit15,
        MD=bit13,
        MW=bit14 and not bit15,
        RW=not bit14,
        BC=bit9,
    )
