# nexus_core/loader/assembler.py
"""
アセンブラ実装。

1行1命令のアセンブリソースを、固定フォーマットの16ビット命令語を持つ
Instructionの列に変換します。ラベルやマクロはサポートしません。

不正な入力に対しては例外を投げず、0を既定値として補います（教育用ツールとしての寛容さ）。
"""
import logging
import re
from typing import List, Optional, Tuple

from nexus_core.core.instruction import (
    FIELD_WIDTH, OPCODE_BITS, UNKNOWN_OPCODE_BITS, Instruction, Opcode, build_binary,
)
from nexus_core.core.state import REGISTER_COUNT

logger = logging.getLogger(__name__)

# @intent:data_structure ニーモニックの別名（サンプルプログラムで使われる短縮形）。
MNEMONIC_ALIASES = {
    "LD": Opcode.LOAD,
    "ST": Opcode.STORE,
}

_TOKEN_SPLIT = re.compile(r"[\s,]+")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
REGISTER_MASK = (1 << FIELD_WIDTH) - 1

# @intent:responsibility アセンブリソースを命令列に変換します。
class Assembler:
    """
    オペランドの並びはオペコードごとに固定です:

    ADD/SUB/AND/OR  dest, src1, src2
    ADDI            dest, src1, imm
    LDI / MOV       dest, imm        (MOVはLDIのオペコードでエンコード)
    LOAD (LD)       dest, src(addr)
    STORE (ST)      src(addr), src(data)
    BRZ             src(cond), relativeOffset
    JMP             src(target)
    """

    def assemble(self, source_text: str) -> List[Instruction]:
        """
        ソーステキストを解析し、命令メモリに配置する順でInstructionのリストを返します。
        空行と ';' で始まる行は読み飛ばします。それ以外の行は、トークンが残らなくても
        1命令として配置されます（後続の命令番号をずらさないため）。
        """
        instructions: List[Instruction] = []
        # 行の区切りは '\n' のみ。その他の制御文字は行内の空白として扱う
        for line_number, line in enumerate(source_text.split("\n"), 1):
            stripped = line.strip()
            if not stripped or stripped.startswith(';'):
                continue
            tokens = self._tokenize(stripped)
            if not tokens:
                logger.debug("Line %d: no tokens, encoded as an empty instruction", line_number)
                instructions.append(self._empty_instruction(stripped, line_number, len(instructions)))
                continue
            instructions.append(self._assemble_line(tokens, stripped, line_number, len(instructions)))
        return instructions

    def _tokenize(self, line: str) -> List[str]:
        line = line.split(';')[0]
        return [token for token in _TOKEN_SPLIT.split(line) if token]

    def _empty_instruction(self, raw: str, line_number: int, index: int) -> Instruction:
        return Instruction(
            mnemonic="",
            opcode=None,
            binary=UNKNOWN_OPCODE_BITS + "0" * 9,
            raw=raw,
            line_number=line_number,
            index=index,
        )

    def _assemble_line(self, tokens: List[str], raw: str, line_number: int, index: int) -> Instruction:
        mnemonic = tokens[0].upper()
        operands = tokens[1:]
        opcode = self._lookup_opcode(mnemonic)

        dest: Optional[int] = None
        src1: Optional[int] = None
        src2: Optional[int] = None
        immediate: Optional[int] = None
        address: Optional[int] = None

        if opcode in (Opcode.ADD, Opcode.SUB, Opcode.AND, Opcode.OR):
            # レジスタ形式は欠落したオペランドを未設定のまま残す
            dest, src1, src2 = (
                self._parse_register(operands[i], line_number) if i < len(operands) else None
                for i in range(3)
            )
        elif opcode == Opcode.ADDI:
            dest = self._register_at(operands, 0, line_number)
            src1 = self._register_at(operands, 1, line_number)
            immediate = self._number_at(operands, 2, line_number)
        elif opcode in (Opcode.LDI, Opcode.MOV):
            dest = self._register_at(operands, 0, line_number)
            immediate = self._number_at(operands, 1, line_number)
        elif opcode == Opcode.LOAD:
            dest = self._register_at(operands, 0, line_number)
            src1 = self._register_at(operands, 1, line_number)
        elif opcode == Opcode.STORE:
            src1 = self._register_at(operands, 0, line_number)
            src2 = self._register_at(operands, 1, line_number)
        elif opcode == Opcode.BRZ:
            src1 = self._register_at(operands, 0, line_number)
            address = self._number_at(operands, 1, line_number)
        elif opcode == Opcode.JMP:
            src1 = self._register_at(operands, 0, line_number)

        if opcode is None:
            logger.debug("Line %d: unknown mnemonic %r encoded as NOP", line_number, mnemonic)
            opcode_bits = UNKNOWN_OPCODE_BITS
        else:
            opcode_bits = OPCODE_BITS[opcode]

        # 最下位フィールドは src2 / 即値 / アドレスのうち、設定されているものを使う
        last_field = src2 if src2 is not None else immediate if immediate is not None else address

        return Instruction(
            mnemonic=mnemonic,
            opcode=opcode,
            binary=build_binary(opcode_bits, dest, src1, last_field),
            dest=dest,
            src1=src1,
            src2=src2,
            immediate=immediate,
            address=address,
            raw=raw,
            line_number=line_number,
            index=index,
        )

    def _lookup_opcode(self, mnemonic: str) -> Optional[Opcode]:
        if mnemonic in MNEMONIC_ALIASES:
            return MNEMONIC_ALIASES[mnemonic]
        try:
            return Opcode(mnemonic)
        except ValueError:
            return None

    def _register_at(self, operands: List[str], position: int, line_number: int) -> int:
        if position >= len(operands):
            logger.debug("Line %d: missing register operand %d, using R0", line_number, position + 1)
            return 0
        return self._parse_register(operands[position], line_number)

    def _number_at(self, operands: List[str], position: int, line_number: int) -> int:
        if position >= len(operands):
            logger.debug("Line %d: missing numeric operand %d, using 0", line_number, position + 1)
            return 0
        return self._parse_number(operands[position], line_number)

    # @intent:utility_function 'R<n>' 形式のレジスタ名を番号に変換します。不正な場合は0。
    # @intent:rationale 番号は命令語のフィールドと同じ下位3ビットに丸め、型付きフィールドと binary を一致させます。
    def _parse_register(self, token: str, line_number: int) -> int:
        value, ok = _leading_int(re.sub(r"[rR]", "", token, count=1))
        if not ok:
            logger.debug("Line %d: malformed register %r, using R0", line_number, token)
        elif not 0 <= value < REGISTER_COUNT:
            logger.debug("Line %d: register %r reduced to R%d", line_number, token, value & REGISTER_MASK)
        return value & REGISTER_MASK

    # @intent:utility_function 10進整数のトークンを数値に変換します。不正な場合は0。
    def _parse_number(self, token: str, line_number: int) -> int:
        value, ok = _leading_int(token)
        if not ok:
            logger.debug("Line %d: malformed number %r, using 0", line_number, token)
        return value

def _leading_int(text: str) -> Tuple[int, bool]:
    # 先頭の符号付き10進数を読み取り、以降の文字は無視する
    match = _LEADING_INT.match(text)
    if not match:
        return 0, False
    return int(match.group(1)), True

# @intent:responsibility 既定のアセンブラでソーステキストを変換するショートカット。
def assemble(source_text: str) -> List[Instruction]:
    return Assembler().assemble(source_text)
