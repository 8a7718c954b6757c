"""
Instruction set tests — word format, opcode table, C-style integer parsing.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from mu0.isa import (
    Opcode, IO_ADDRESS, encode, decode, opcode_of, operand_of,
    format_word, disassemble_word, parse_int,
)


class TestOpcodeTable:
    """The eight instructions and their numbering."""

    def test_opcode_values(self):
        """Opcode numbers match the mu0 table."""
        expected = [("LDA", 0), ("STO", 1), ("ADD", 2), ("SUB", 3),
                    ("JMP", 4), ("JGE", 5), ("JNE", 6), ("STP", 7)]
        assert [(op.mnemonic, int(op)) for op in Opcode] == expected

    def test_from_mnemonic_matches_first_three_chars(self):
        """Only the first three characters are compared."""
        assert Opcode.from_mnemonic("JNE :loop") is Opcode.JNE
        assert Opcode.from_mnemonic("STP") is Opcode.STP
        assert Opcode.from_mnemonic("ADDX") is Opcode.ADD

    def test_from_mnemonic_is_case_sensitive(self):
        assert Opcode.from_mnemonic("lda 1") is None
        assert Opcode.from_mnemonic("LD") is None
        assert Opcode.from_mnemonic("") is None

    def test_only_stp_has_no_operand(self):
        assert [op for op in Opcode if not op.takes_operand] == [Opcode.STP]


class TestWordFormat:
    """Opcode in the high nibble, operand in the low 12 bits."""

    @pytest.mark.parametrize("op", list(Opcode))
    def test_encode_decode_recovers_fields(self, op):
        """Encoding then decoding gives back the opcode and in-range operand."""
        for operand in (0, 1, 0x123, 0xFFE, 0xFFF):
            word = encode(op, operand)
            assert decode(word) == (int(op), operand)
            assert Opcode(opcode_of(word)).mnemonic == op.mnemonic
            assert operand_of(word) == operand

    def test_operand_is_truncated_to_12_bits(self):
        assert encode(Opcode.LDA, 0x1234) == 0x0234

    def test_format_word_is_four_lowercase_hex_digits(self):
        assert format_word(0x7000) == "7000"
        assert format_word(0xABC) == "0abc"
        assert format_word(-1) == "ffff"

    def test_io_address(self):
        assert IO_ADDRESS == 0xFFF

    def test_disassemble_word(self):
        assert disassemble_word(0x4005) == "JMP 0x005"
        assert disassemble_word(0x1FFF) == "STO 0xfff"
        assert disassemble_word(0x7000) == "STP"
        assert disassemble_word(0x8000) == "??? 8000"


class TestParseInt:
    """Integer parsing follows strtol(text, &end, 0)."""

    def test_decimal(self):
        assert parse_int("123") == (123, 3)
        assert parse_int("  42 ; comment") == (42, 4)

    def test_sign(self):
        assert parse_int("-1") == (-1, 2)
        assert parse_int("+7") == (7, 2)

    def test_hex(self):
        assert parse_int("0x7b") == (0x7B, 4)
        assert parse_int("0XFF") == (0xFF, 4)
        assert parse_int("-0x10") == (-16, 5)

    def test_octal(self):
        assert parse_int("0173") == (0o173, 4)
        assert parse_int("09") == (0, 1)

    def test_bare_hex_prefix_reads_zero(self):
        """'0x' with no hex digit after it is just the digit 0."""
        assert parse_int("0x") == (0, 1)
        assert parse_int("0xg") == (0, 1)

    def test_no_digits(self):
        assert parse_int("") == (0, 0)
        assert parse_int("abc") == (0, 0)
        assert parse_int("#5") == (0, 0)
        assert parse_int("-") == (0, 0)

    def test_longest_prefix(self):
        assert parse_int("12abc") == (12, 2)
