"""
共通の型定義を提供するモジュール。
プロジェクト全体で使用される汎用的な型エイリアスなどを定義します。
"""
from typing import Dict, List, NamedTuple

# @intent:data_structure データメモリ（アドレス -> 値）の型エイリアス。
# 疎な辞書として保持し、未書き込みのアドレスは0として扱います。
DataMemory = Dict[int, int]

# @intent:data_structure レジスタ名と値をマッピングする辞書の型エイリアス。
RegisterMap = Dict[str, int]

# @intent:data_structure 単一のレジスタの表示定義。UIが動的にフィールドを生成するために使用される。
class RegisterInfo(NamedTuple):
    name: str
    width: int  # ビット幅 (0 は幅制限なし)

# @intent:data_structure レジスタグループの表示定義。関連するレジスタ（例: "General", "Control"）をまとめる。
class RegisterLayoutInfo(NamedTuple):
    group_name: str
    registers: List[RegisterInfo]
