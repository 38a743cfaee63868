# nexus_core/core/disassembler.py
"""
逆アセンブラ。
16ビット命令語、または型付きのInstructionをアセンブリ表記に戻します。
"""
from typing import Dict, List, Optional, Tuple

from nexus_core.core.instruction import (
    FIELD_WIDTH, INSTRUCTION_WIDTH, OPCODE_BITS, OPCODE_WIDTH, Instruction, Opcode,
)

# MOVはLDIと同じビットを持つため、逆引きではLDIとして表示する
_MNEMONIC_BY_BITS: Dict[str, Opcode] = {
    bits: op for op, bits in OPCODE_BITS.items() if op != Opcode.MOV
}

def _reg(value: Optional[int]) -> str:
    return f"R{value if value is not None else 0}"

def _num(value: Optional[int]) -> str:
    return str(value if value is not None else 0)

def _signed_field(value: int) -> int:
    sign = 1 << (FIELD_WIDTH - 1)
    return value - (1 << FIELD_WIDTH) if value & sign else value

def _render(opcode: Opcode, dest, src1, src2, immediate, address) -> str:
    name = opcode.value
    if opcode in (Opcode.ADD, Opcode.SUB, Opcode.AND, Opcode.OR):
        operands = [_reg(dest), _reg(src1), _reg(src2)]
    elif opcode == Opcode.ADDI:
        operands = [_reg(dest), _reg(src1), _num(immediate)]
    elif opcode in (Opcode.LDI, Opcode.MOV):
        operands = [_reg(dest), _num(immediate)]
    elif opcode == Opcode.LOAD:
        operands = [_reg(dest), _reg(src1)]
    elif opcode == Opcode.STORE:
        operands = [_reg(src1), _reg(src2)]
    elif opcode == Opcode.BRZ:
        operands = [_reg(src1), _num(address)]
    elif opcode == Opcode.JMP:
        operands = [_reg(src1)]
    else:
        operands = []
    return f"{name} {', '.join(operands)}".strip()

# @intent:responsibility 型付きの命令をアセンブリ表記に整形します。
def format_instruction(instruction: Instruction) -> str:
    if instruction.opcode is None:
        return instruction.mnemonic
    return _render(
        instruction.opcode, instruction.dest, instruction.src1, instruction.src2,
        instruction.immediate, instruction.address,
    )

# @intent:responsibility 16ビット命令語のみからアセンブリ表記を復元します。
# @intent:rationale 命令語は未設定と0を区別できないため、全フィールドを値として表示します。
def disassemble_binary(binary: str) -> str:
    """
    オペコード表にないビットパターンは `DW $xxxx` として表示します。
    BRZの相対オフセットは3ビットの符号付き値として解釈します。
    """
    if len(binary) != INSTRUCTION_WIDTH:
        raise ValueError(f"Instruction word must be {INSTRUCTION_WIDTH} bits: {binary!r}")
    opcode = _MNEMONIC_BY_BITS.get(binary[:OPCODE_WIDTH])
    if opcode is None:
        return f"DW ${int(binary, 2):04X}"

    fields = [
        int(binary[i:i + FIELD_WIDTH], 2)
        for i in range(OPCODE_WIDTH, INSTRUCTION_WIDTH, FIELD_WIDTH)
    ]
    dest, src1, last = fields
    return _render(opcode, dest, src1, last, last, _signed_field(last))

# @intent:responsibility 命令メモリの指定範囲を逆アセンブルします。
def disassemble(instructions: List[Instruction], start: int, length: int) -> List[Tuple[int, str, str]]:
    """
    命令メモリを解析し、(インデックス, HEX, ニーモニック) のリストを返す。
    """
    results = []
    for index in range(max(start, 0), min(start + length, len(instructions))):
        instruction = instructions[index]
        results.append((index, instruction.hex, disassemble_binary(instruction.binary)))
    return results
