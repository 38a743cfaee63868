# nexus_core/core/instruction.py
"""
命令セット定義

オペコードの列挙、オペコードのビットパターン表、および16ビット命令語
`opcode(7) | dest(3) | src1(3) | src2/imm/addr(3)` を組み立てる関数を提供します。
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

INSTRUCTION_WIDTH = 16
OPCODE_WIDTH = 7
FIELD_WIDTH = 3

# @intent:responsibility 命令の種類を定義します。
class Opcode(Enum):
    ADD = "ADD"
    SUB = "SUB"
    AND = "AND"
    OR = "OR"
    ADDI = "ADDI"
    LDI = "LDI"
    LOAD = "LOAD"
    STORE = "STORE"
    JMP = "JMP"
    BRZ = "BRZ"
    MOV = "MOV"
    NOP = "NOP"

# @intent:data_structure オペコードから7ビットのオペコードフィールドへの対応表。
# MOVは即値ロードとしてLDIと同じビットを使用します。
OPCODE_BITS: Dict[Opcode, str] = {
    Opcode.ADD:   "0000010",
    Opcode.SUB:   "0000101",
    Opcode.AND:   "0001000",
    Opcode.OR:    "0001001",
    Opcode.ADDI:  "1000010",
    Opcode.LDI:   "1001100",
    Opcode.LOAD:  "0010000",
    Opcode.STORE: "0100000",
    Opcode.BRZ:   "1100000",
    Opcode.JMP:   "1110000",
    Opcode.MOV:   "1001100",
    Opcode.NOP:   "0000000",
}

UNKNOWN_OPCODE_BITS = "0000000"

# @intent:responsibility 値を指定幅のビット列に変換します。
# @intent:rationale 値を符号なし32ビットとして扱い、下位ビットのみを残します（負数は2の補数の下位ビット）。
def encode_field(value: Optional[int], width: int = FIELD_WIDTH) -> str:
    """
    未設定(None)のフィールドは全ビット0としてエンコードされます。
    """
    if value is None:
        return "0" * width
    unsigned = value & 0xFFFFFFFF
    return format(unsigned & ((1 << width) - 1), f"0{width}b")

def build_binary(opcode_bits: str, dest: Optional[int], src1: Optional[int], operand: Optional[int]) -> str:
    return opcode_bits + encode_field(dest) + encode_field(src1) + encode_field(operand)

# @intent:responsibility アセンブル済みの1命令を不変に記録します。
@dataclass(frozen=True) # 不変データ構造
class Instruction:
    """
    アセンブラが生成する1命令。

    `binary` が制御信号デコードの唯一の入力であり、他のフィールドは
    表示と実行（ALU・ライトバック）のための型付き表現です。
    """
    mnemonic: str # 例: "ADD" (未知のニーモニックもそのまま保持)
    opcode: Optional[Opcode] # 未知のニーモニックの場合None
    binary: str = "0" * INSTRUCTION_WIDTH
    dest: Optional[int] = None
    src1: Optional[int] = None
    src2: Optional[int] = None
    immediate: Optional[int] = None
    address: Optional[int] = None
    raw: str = ""
    line_number: int = 0 # ソース上の行番号 (1始まり)
    index: int = 0 # 命令メモリ上の位置

    # @intent:responsibility オペコードフィールド（上位7ビット）を返します。
    @property
    def opcode_bits(self) -> str:
        return self.binary[:OPCODE_WIDTH]

    # @intent:responsibility 命令語を16進表記で返します。
    @property
    def hex(self) -> str:
        return f"{int(self.binary, 2):04X}"
