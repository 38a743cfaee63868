# nexus_core/loader/loader.py
"""
コードローダーモジュール。
アセンブリソースファイルを読み込み、アセンブルして命令列を返します。
"""
from typing import List, Optional

from nexus_core.core.instruction import Instruction
from nexus_core.loader.assembler import Assembler

# @intent:data_structure 起動時にエディタへ表示されるサンプルプログラム。
SAMPLE_PROGRAM = """LDI R1, 5
LDI R2, 10
ADD R3, R1, R2
ADDI R4, R3, 2
SUB R5, R4, R1
ST R1, R5
LD R6, R1
BRZ R6, -2"""

class SourceLoader:
    """
    アセンブリソースファイルを解析して命令列に変換するローダー。
    """
    def __init__(self, assembler: Optional[Assembler] = None):
        self._assembler = assembler or Assembler()

    def read_source(self, file_path: str) -> str:
        with open(file_path, 'r', encoding="utf-8") as f:
            return f.read()

    def load_assembly(self, file_path: str) -> List[Instruction]:
        return self._assembler.assemble(self.read_source(file_path))
