# nexus_core/core/alu.py
"""
ALU (算術論理演算ユニット)

EXECUTEステージで、命令とレジスタファイルからALU結果を計算します。
レジスタファイルは読み出すだけで、状態は変更しません。
"""
from typing import Optional

from nexus_core.core.instruction import Instruction, Opcode
from nexus_core.core.state import CpuState

# @intent:responsibility レジスタ幅が設定されている場合、値を符号なしの幅に折り返します。
def wrap(value: int, width: Optional[int]) -> int:
    """width が None の場合は値をそのまま返します（幅制限なし）。"""
    if width is None:
        return value
    return value & ((1 << width) - 1)

# @intent:responsibility 命令のALU結果を計算します。
# @intent:rationale 未設定・範囲外のレジスタは0として読み出します（エラーにはしない）。
def compute(instruction: Instruction, state: CpuState, width: Optional[int] = None) -> int:
    """
    ADD/SUB/ADDI/AND は演算結果、LDI/MOV は即値、LOAD/STORE はアドレス、
    BRZ は条件判定値としてレジスタ値を返します。それ以外は0です。
    """
    op = instruction.opcode
    a = state.read_register(instruction.src1)
    b = state.read_register(instruction.src2)
    imm = instruction.immediate or 0

    if op == Opcode.ADD:
        result = a + b
    elif op == Opcode.SUB:
        result = a - b
    elif op == Opcode.ADDI:
        result = a + imm
    elif op in (Opcode.LDI, Opcode.MOV):
        result = imm
    elif op == Opcode.AND:
        result = a & b
    elif op in (Opcode.LOAD, Opcode.STORE, Opcode.BRZ):
        result = a
    else:
        # OR, JMP, NOP および未知の命令
        result = 0

    return wrap(result, width)
