# tests/arch/qch/test_decoder.py
"""
QCH 命令テンプレート表、デコーダ、ディスパッチャの単体テスト。
"""
import pytest

from chip_core_tracer.transport.bus import Bus, RAM
from chip_core_tracer.arch.qch.instructions import (
    InstructionKind, decode_word, decode_instruction, dispatch,
)
from chip_core_tracer.arch.qch.instructions.maps import INSTRUCTION_TABLE, UNKNOWN_TEMPLATE, EXECUTE_MAP

# @intent:test_suite 全ての16bit語が高々1つのテンプレートに分類され、デコードが失敗しないことを検証します。

def test_table_has_thirty_six_templates():
    assert len(INSTRUCTION_TABLE) == 36

def test_every_kind_has_an_executor():
    assert set(EXECUTE_MAP) == set(InstructionKind)

# @intent:test_case_uniqueness どの16bit語も2つ以上のテンプレートに一致しないことを全数で検証します。
def test_no_word_matches_two_templates():
    for word in range(0x10000):
        matches = [t for t in INSTRUCTION_TABLE if t.matches(word)]
        assert len(matches) <= 1, f"{word:04X} matches {[t.mnemonic for t in matches]}"

def test_decode_never_fails():
    for word in range(0x10000):
        decoded = decode_word(word)
        assert decoded.word == word
        assert decoded.template in INSTRUCTION_TABLE or decoded.template is UNKNOWN_TEMPLATE

@pytest.mark.parametrize("word, kind", [
    (0x00E0, InstructionKind.CLEAR),
    (0x00EE, InstructionKind.RETURN),
    (0x1ABC, InstructionKind.JUMP),
    (0x2ABC, InstructionKind.CALL),
    (0x3A12, InstructionKind.SKIP_EQ_IMM),
    (0x4A12, InstructionKind.SKIP_NE_IMM),
    (0x5AB0, InstructionKind.SKIP_EQ_REG),
    (0x5AB7, InstructionKind.SKIP_EQ_REG),  # 下位ニブルは無視される
    (0x6A12, InstructionKind.LOAD_IMM),
    (0x7A12, InstructionKind.ADD_IMM),
    (0x8AB0, InstructionKind.COPY),
    (0x8AB1, InstructionKind.OR),
    (0x8AB2, InstructionKind.AND),
    (0x8AB3, InstructionKind.XOR),
    (0x8AB4, InstructionKind.ADD),
    (0x8AB5, InstructionKind.SUB),
    (0x8AB6, InstructionKind.SHIFT_RIGHT),
    (0x8AB7, InstructionKind.REVERSE_SUB),
    (0x8ABE, InstructionKind.SHIFT_LEFT),
    (0x9AB0, InstructionKind.SKIP_NE_REG),
    (0xA123, InstructionKind.SET_INDEX),
    (0xB123, InstructionKind.JUMP_OFFSET),
    (0xCA0F, InstructionKind.RANDOM),
    (0xDAB5, InstructionKind.DRAW),
    (0xEA9E, InstructionKind.SKIP_KEY_DOWN),
    (0xEAA1, InstructionKind.SKIP_KEY_UP),
    (0xFA07, InstructionKind.READ_DELAY),
    (0xFA0A, InstructionKind.WAIT_KEY),
    (0xFA15, InstructionKind.WRITE_DELAY),
    (0xFA18, InstructionKind.WRITE_SOUND),
    (0xFA1E, InstructionKind.ADD_INDEX),
    (0xFA29, InstructionKind.FONT_ADDRESS),
    (0xFA33, InstructionKind.BCD),
    (0xFA55, InstructionKind.STORE_REGISTERS),
    (0xFA65, InstructionKind.LOAD_REGISTERS),
    (0x0000, InstructionKind.NOP),
    (0xFFFF, InstructionKind.HALT),
])
def test_decode_classifies_word(word, kind):
    decoded = decode_word(word)
    assert decoded.kind == kind
    assert dispatch(decoded.template) is EXECUTE_MAP[kind]

@pytest.mark.parametrize("word", [0x00E1, 0x0123, 0x8AB8, 0x8ABF, 0x9AB1, 0xEA00, 0xF000, 0xFA66, 0xFFFE])
def test_unmatched_words_decode_to_unknown(word):
    decoded = decode_word(word)
    assert decoded.kind == InstructionKind.UNKNOWN
    assert decoded.mnemonic == "UNKNOWN"
    assert decoded.word == word

def test_decode_instruction_reads_big_endian():
    bus = Bus()
    bus.register_device(0x000, 0xFFF, RAM(0x1000))
    bus.load(0x200, b"\x60\x05")

    decoded = decode_instruction(bus, 0x200)

    assert decoded.word == 0x6005
    assert decoded.address == 0x200
    assert decoded.format() == "LD V0, #$05"
