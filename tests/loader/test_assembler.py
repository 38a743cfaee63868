import unittest
from nexus_core.core.instruction import Opcode
from nexus_core.loader.assembler import Assembler, assemble

class TestAssembler(unittest.TestCase):
    def setUp(self):
        self.assembler = Assembler()

    def test_register_form(self):
        [add] = self.assembler.assemble("ADD R1, R2, R3")
        self.assertEqual(add.opcode, Opcode.ADD)
        self.assertEqual((add.dest, add.src1, add.src2), (1, 2, 3))
        self.assertIsNone(add.immediate)
        # 0000010 | 001 | 010 | 011
        self.assertEqual(add.binary, "0000010001010011")

    def test_opcode_bits_for_every_mnemonic(self):
        source = "\n".join([
            "ADD R1, R2, R3", "SUB R1, R2, R3", "AND R1, R2, R3", "OR R1, R2, R3",
            "ADDI R1, R2, 3", "LDI R1, 5", "LOAD R1, R2", "STORE R1, R2",
            "BRZ R1, 2", "JMP R1", "MOV R1, 5", "NOP",
        ])
        bits = [i.opcode_bits for i in self.assembler.assemble(source)]
        self.assertEqual(bits, [
            "0000010", "0000101", "0001000", "0001001",
            "1000010", "1001100", "0010000", "0100000",
            "1100000", "1110000", "1001100", "0000000",
        ])

    def test_ldi_uses_last_field_for_immediate(self):
        [ldi] = self.assembler.assemble("LDI R1, 5")
        self.assertEqual(ldi.dest, 1)
        self.assertEqual(ldi.immediate, 5)
        self.assertIsNone(ldi.src1)
        self.assertEqual(ldi.binary, "1001100001000101")

    def test_mov_is_encoded_as_ldi(self):
        [mov] = self.assembler.assemble("MOV R2, 3")
        self.assertEqual(mov.opcode, Opcode.MOV)
        self.assertEqual(mov.mnemonic, "MOV")
        self.assertEqual(mov.binary, "1001100010000011")

    def test_addi(self):
        [addi] = self.assembler.assemble("ADDI R4, R3, 2")
        self.assertEqual((addi.dest, addi.src1, addi.immediate), (4, 3, 2))
        self.assertIsNone(addi.src2)
        self.assertEqual(addi.binary, "1000010100011010")

    def test_store_and_load_aliases(self):
        st, ld = self.assembler.assemble("ST R1, R5\nLD R6, R1")
        self.assertEqual(st.opcode, Opcode.STORE)
        self.assertEqual(st.mnemonic, "ST")
        self.assertEqual((st.dest, st.src1, st.src2), (None, 1, 5))
        self.assertEqual(st.binary, "0100000000001101")

        self.assertEqual(ld.opcode, Opcode.LOAD)
        self.assertEqual((ld.dest, ld.src1, ld.src2), (6, 1, None))
        self.assertEqual(ld.binary, "0010000110001000")

    def test_branch_negative_offset_is_truncated_to_three_bits(self):
        [brz] = self.assembler.assemble("BRZ R6, -2")
        self.assertEqual(brz.src1, 6)
        self.assertEqual(brz.address, -2)
        # -2 -> ...11111110 -> 110
        self.assertEqual(brz.binary, "1100000000110110")

    def test_jmp(self):
        [jmp] = self.assembler.assemble("JMP R4")
        self.assertEqual(jmp.src1, 4)
        self.assertEqual(jmp.binary, "1110000000100000")

    def test_case_insensitive_and_compact_commas(self):
        [ldi] = self.assembler.assemble("  ldi r1,5  ")
        self.assertEqual(ldi.opcode, Opcode.LDI)
        self.assertEqual((ldi.dest, ldi.immediate), (1, 5))

    def test_blank_and_comment_lines_are_skipped(self):
        source = "; program header\n\nLDI R1, 5\n   \n  ; indented comment\nLDI R2, 10 ; trailing\n"
        instructions = self.assembler.assemble(source)
        self.assertEqual(len(instructions), 2)
        self.assertEqual([i.line_number for i in instructions], [3, 6])
        self.assertEqual([i.index for i in instructions], [0, 1])
        self.assertEqual(instructions[1].immediate, 10)
        self.assertEqual(instructions[1].raw, "LDI R2, 10 ; trailing")

    def test_unknown_mnemonic_is_preserved_with_zero_opcode(self):
        [unknown] = self.assembler.assemble("FOO R1, R2")
        self.assertIsNone(unknown.opcode)
        self.assertEqual(unknown.mnemonic, "FOO")
        self.assertEqual(unknown.binary, "0000000000000000")

    def test_missing_register_operands_stay_unset_for_register_form(self):
        [add] = self.assembler.assemble("ADD R1")
        self.assertEqual(add.dest, 1)
        self.assertIsNone(add.src1)
        self.assertIsNone(add.src2)
        self.assertEqual(add.binary, "0000010001000000")

    def test_missing_operands_default_to_zero(self):
        [addi] = self.assembler.assemble("ADDI R1")
        self.assertEqual((addi.dest, addi.src1, addi.immediate), (1, 0, 0))
        self.assertEqual(len(addi.binary), 16)

    def test_malformed_tokens_default_to_zero(self):
        ldi, brz = self.assembler.assemble("LDI Rx, abc\nBRZ R2, ?")
        self.assertEqual((ldi.dest, ldi.immediate), (0, 0))
        self.assertEqual(brz.address, 0)
        self.assertEqual(ldi.binary, "1001100000000000")

    def test_numeric_prefix_is_parsed(self):
        [ldi] = self.assembler.assemble("LDI R3, 7abc")
        self.assertEqual(ldi.immediate, 7)

    def test_large_register_index_keeps_low_bits(self):
        [ldi] = self.assembler.assemble("LDI R12, 1")
        self.assertEqual(ldi.dest, 4)
        self.assertEqual(ldi.binary[7:10], "100")

    def test_negative_register_index_matches_encoded_field(self):
        [add] = self.assembler.assemble("ADD R-1, R9, R2")
        self.assertEqual((add.dest, add.src1, add.src2), (7, 1, 2))
        self.assertEqual(add.binary, "0000010111001010")

    # @intent:test_case トークンが残らない行も1命令として配置され、後続の命令番号がずれないことを検証します。
    def test_line_without_tokens_keeps_its_slot(self):
        ldi1, empty, ldi2 = self.assembler.assemble("LDI R1, 5\n,\nLDI R2, 7")
        self.assertEqual(empty.mnemonic, "")
        self.assertIsNone(empty.opcode)
        self.assertEqual(empty.binary, "0" * 16)
        self.assertEqual((empty.line_number, empty.index), (2, 1))
        self.assertEqual(ldi2.index, 2)

    def test_comma_before_comment_is_an_instruction(self):
        instructions = self.assembler.assemble(", ; only a comma\n; full comment")
        self.assertEqual(len(instructions), 1)
        self.assertEqual(instructions[0].binary, "0" * 16)

    def test_lines_split_only_on_newline(self):
        instructions = self.assembler.assemble("LDI R1,\x0c5\r\nLDI\u2028R2, 6\r\n")
        self.assertEqual(len(instructions), 2)
        self.assertEqual((instructions[0].dest, instructions[0].immediate), (1, 5))
        self.assertEqual((instructions[1].dest, instructions[1].immediate), (2, 6))
        self.assertEqual(instructions[0].raw, "LDI R1,\x0c5")

    def test_binary_is_always_sixteen_bits(self):
        source = "ADD\nSUB ,,,\nBRZ\nJMP\nLDI R1, -100\n???\nST"
        for instruction in assemble(source):
            self.assertEqual(len(instruction.binary), 16)
            self.assertTrue(set(instruction.binary) <= {"0", "1"})

    def test_hex_property(self):
        [add] = assemble("ADD R1, R2, R3")
        self.assertEqual(add.hex, "0453")

if __name__ == '__main__':
    unittest.main()
