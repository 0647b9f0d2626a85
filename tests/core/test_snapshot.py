# tests/core/test_snapshot.py
"""
chip_core_tracer.core.snapshotモジュールの単体テスト。
"""
from enum import Enum

import pytest
from chip_core_tracer.core.state import CpuState
from chip_core_tracer.transport.bus import BusAccess, BusAccessType
from chip_core_tracer.core.snapshot import (
    DecodedInstruction,
    InstructionTemplate,
    Metadata,
    OperandShape,
    Snapshot,
)

# @intent:test_suite 命令テンプレート、デコード済み命令、スナップショットの不変データ構造の検証。

class _Kind(Enum):
    SAMPLE = "SAMPLE"

def _decoded(word, shape, mnemonic="OP"):
    template = InstructionTemplate(word & 0xF000, 0xF000, shape, mnemonic, _Kind.SAMPLE)
    return DecodedInstruction(word=word, template=template, address=0x200)

class TestInstructionTemplate:
    def test_matches_masked_word(self):
        template = InstructionTemplate(0x8004, 0xF00F, OperandShape.REGISTER_PAIR, "ADD", _Kind.SAMPLE)
        assert template.matches(0x8AB4)
        assert not template.matches(0x8AB5)

    def test_template_is_immutable(self):
        template = InstructionTemplate(0x1000, 0xF000, OperandShape.ADDRESS, "JP", _Kind.SAMPLE)
        with pytest.raises(AttributeError):
            template.pattern = 0x2000

class TestDecodedInstruction:
    """
    DecodedInstructionのオペランド抽出と表示の検証。
    """
    # @intent:test_case_fields オペランドが命令語のビット位置から抽出されることを検証します。
    def test_operand_fields(self):
        inst = _decoded(0xD12F, OperandShape.REGISTER_PAIR_NIBBLE)
        assert inst.x == 0x1
        assert inst.y == 0x2
        assert inst.nibble == 0xF
        assert inst.byte == 0x2F
        assert inst.nnn == 0x12F
        assert inst.word_hex == "D12F"

    @pytest.mark.parametrize("word, shape, expected", [
        (0x00E0, OperandShape.NONE, "OP"),
        (0xF329, OperandShape.REGISTER, "OP V3"),
        (0x8AB4, OperandShape.REGISTER_PAIR, "OP VA, VB"),
        (0x6005, OperandShape.REGISTER_BYTE, "OP V0, #$05"),
        (0x12A0, OperandShape.ADDRESS, "OP $2A0"),
        (0xD125, OperandShape.REGISTER_PAIR_NIBBLE, "OP V1, V2, 5"),
    ])
    def test_format_by_shape(self, word, shape, expected):
        assert _decoded(word, shape).format() == expected

class TestSnapshot:
    def test_snapshot_init_and_touched(self):
        state = CpuState(pc=0x202)
        activity = [
            BusAccess(address=0x300, data=0x01, access_type=BusAccessType.WRITE),
            BusAccess(address=0x200, data=0x60, access_type=BusAccessType.READ),
        ]
        snapshot = Snapshot(
            state=state,
            instruction=None,
            metadata=Metadata(cycle_count=1, trace_text="BLOCKED"),
            bus_activity=activity,
        )
        assert snapshot.state.pc == 0x202
        assert snapshot.touched(0x300, BusAccessType.WRITE)
        assert not snapshot.touched(0x300, BusAccessType.READ)
        assert snapshot.touched(0x200, BusAccessType.READ)

    def test_snapshot_is_immutable(self):
        snapshot = Snapshot(state=CpuState(), instruction=None, metadata=Metadata(cycle_count=0))
        assert snapshot.bus_activity == []
        with pytest.raises(AttributeError):
            snapshot.metadata = Metadata(cycle_count=1)
