# tests/core/test_control.py
"""
nexus_core.core.controlモジュールの単体テスト。
命令語から導出される制御信号（真理値表）を検証します。
"""
import pytest

from nexus_core.core.control import MICRO_STEP_COUNTS, STAGE_WIRES, decode_control_signals
from nexus_core.core.state import ControlSignals, CpuStage
from nexus_core.loader.assembler import assemble

# @intent:test_suite 制御信号デコードの検証。

def _signals(line: str) -> ControlSignals:
    [instruction] = assemble(line)
    return decode_control_signals(instruction.binary)

class TestDecodeControlSignals:
    def test_add_is_register_write_only(self):
        signals = _signals("ADD R1, R2, R3")
        assert signals.RW is True
        assert signals.MB is False
        assert signals.MW is False
        assert signals.PL is False
        assert signals.MD is False

    @pytest.mark.parametrize("line, expected", [
        ("ADD R1, R2, R3", dict(RW=True)),
        ("SUB R1, R2, R3", dict(RW=True, BC=True)),
        ("AND R1, R2, R3", dict(RW=True)),
        ("OR R1, R2, R3", dict(RW=True, BC=True)),
        ("ADDI R1, R2, 3", dict(RW=True, MB=True)),
        ("LDI R1, 5", dict(RW=True, MB=True)),
        ("MOV R1, 5", dict(RW=True, MB=True)),
        ("LD R1, R2", dict(RW=True, MD=True, JB=True)),
        ("ST R1, R2", dict(MW=True)),
        ("BRZ R1, 2", dict(PL=True, MB=True)),
        ("JMP R1", dict(PL=True, JB=True, MB=True, MD=True)),
        ("NOP", dict(RW=True)),
    ])
    def test_truth_table(self, line, expected):
        assert _signals(line) == ControlSignals(**expected)

    # @intent:test_case 制御信号は bit15, bit14, bit13, bit9 以外のビットに依存しないことを検証します。
    def test_only_four_bits_matter(self):
        base = "1100000000000000"
        noisy = "1101111111111111"  # bit13以外の下位ビットを全て1にする
        assert decode_control_signals(base).PL is True
        noisy_signals = decode_control_signals(noisy)
        assert noisy_signals.PL is True
        assert noisy_signals.JB is False
        assert noisy_signals.BC is True
        assert decode_control_signals("1100001111111111") == decode_control_signals("1100001000000000")

    def test_identities_hold_for_all_bit_combinations(self):
        for b15 in "01":
            for b14 in "01":
                for b13 in "01":
                    for b9 in "01":
                        binary = b15 + b14 + b13 + "000" + b9 + "000000000"
                        s = decode_control_signals(binary)
                        assert s.PL == (b15 == "1" and b14 == "1")
                        assert s.JB == (b13 == "1")
                        assert s.MB == (b15 == "1")
                        assert s.MD == (b13 == "1")
                        assert s.MW == (b14 == "1" and b15 == "0")
                        assert s.RW == (b14 == "0")
                        assert s.BC == (b9 == "1")

class TestStageTables:
    def test_micro_step_counts(self):
        assert MICRO_STEP_COUNTS == {
            CpuStage.FETCH: 3,
            CpuStage.DECODE: 4,
            CpuStage.EXECUTE: 3,
            CpuStage.WRITE_BACK: 3,
        }

    def test_every_stage_has_wires(self):
        for stage in CpuStage:
            assert STAGE_WIRES[stage]
