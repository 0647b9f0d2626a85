# src/chip_core_tracer/arch/qch/instructions/maps.py
"""
命令テンプレートと命令実装のマッピング定義。
"""
from typing import Dict, Tuple

from chip_core_tracer.core.snapshot import InstructionTemplate, OperandShape as S
from .base import InstructionKind as K, Executor
from . import control
from . import alu
from . import load
from . import device

# @intent:map 命令テンプレートの一覧。デコーダはこの順序で走査し、最初に一致したものを採用する。
# @intent:invariant マスク後の一致は高々1つ（どの16bit語も2つのテンプレートに一致しない）。
INSTRUCTION_TABLE: Tuple[InstructionTemplate, ...] = (
    # Control flow
    InstructionTemplate(0x00E0, 0xFFFF, S.NONE, "CLS", K.CLEAR),
    InstructionTemplate(0x00EE, 0xFFFF, S.NONE, "RET", K.RETURN),
    InstructionTemplate(0x1000, 0xF000, S.ADDRESS, "JP", K.JUMP),
    InstructionTemplate(0x2000, 0xF000, S.ADDRESS, "CALL", K.CALL),
    # Conditional skip / data movement
    InstructionTemplate(0x3000, 0xF000, S.REGISTER_BYTE, "SE", K.SKIP_EQ_IMM),
    InstructionTemplate(0x4000, 0xF000, S.REGISTER_BYTE, "SNE", K.SKIP_NE_IMM),
    InstructionTemplate(0x5000, 0xF000, S.REGISTER_PAIR, "SE", K.SKIP_EQ_REG),
    InstructionTemplate(0x6000, 0xF000, S.REGISTER_BYTE, "LD", K.LOAD_IMM),
    InstructionTemplate(0x7000, 0xF000, S.REGISTER_BYTE, "ADD", K.ADD_IMM),
    # Register-register ALU
    InstructionTemplate(0x8000, 0xF00F, S.REGISTER_PAIR, "LD", K.COPY),
    InstructionTemplate(0x8001, 0xF00F, S.REGISTER_PAIR, "OR", K.OR),
    InstructionTemplate(0x8002, 0xF00F, S.REGISTER_PAIR, "AND", K.AND),
    InstructionTemplate(0x8003, 0xF00F, S.REGISTER_PAIR, "XOR", K.XOR),
    InstructionTemplate(0x8004, 0xF00F, S.REGISTER_PAIR, "ADD", K.ADD),
    InstructionTemplate(0x8005, 0xF00F, S.REGISTER_PAIR, "SUB", K.SUB),
    InstructionTemplate(0x8006, 0xF00F, S.REGISTER_PAIR, "SHR", K.SHIFT_RIGHT),
    InstructionTemplate(0x8007, 0xF00F, S.REGISTER_PAIR, "SUBN", K.REVERSE_SUB),
    InstructionTemplate(0x800E, 0xF00F, S.REGISTER_PAIR, "SHL", K.SHIFT_LEFT),
    InstructionTemplate(0x9000, 0xF00F, S.REGISTER_PAIR, "SNE", K.SKIP_NE_REG),
    # Index / jump / random / draw
    InstructionTemplate(0xA000, 0xF000, S.ADDRESS, "LDI", K.SET_INDEX),
    InstructionTemplate(0xB000, 0xF000, S.ADDRESS, "JPV0", K.JUMP_OFFSET),
    InstructionTemplate(0xC000, 0xF000, S.REGISTER_BYTE, "RND", K.RANDOM),
    InstructionTemplate(0xD000, 0xF000, S.REGISTER_PAIR_NIBBLE, "DRW", K.DRAW),
    # Keys / timers / memory
    InstructionTemplate(0xE09E, 0xF0FF, S.REGISTER, "SKP", K.SKIP_KEY_DOWN),
    InstructionTemplate(0xE0A1, 0xF0FF, S.REGISTER, "SKNP", K.SKIP_KEY_UP),
    InstructionTemplate(0xF007, 0xF0FF, S.REGISTER, "LDDT", K.READ_DELAY),
    InstructionTemplate(0xF00A, 0xF0FF, S.REGISTER, "WKEY", K.WAIT_KEY),
    InstructionTemplate(0xF015, 0xF0FF, S.REGISTER, "SETDT", K.WRITE_DELAY),
    InstructionTemplate(0xF018, 0xF0FF, S.REGISTER, "SETST", K.WRITE_SOUND),
    InstructionTemplate(0xF01E, 0xF0FF, S.REGISTER, "ADDI", K.ADD_INDEX),
    InstructionTemplate(0xF029, 0xF0FF, S.REGISTER, "FONT", K.FONT_ADDRESS),
    InstructionTemplate(0xF033, 0xF0FF, S.REGISTER, "BCD", K.BCD),
    InstructionTemplate(0xF055, 0xF0FF, S.REGISTER, "STR", K.STORE_REGISTERS),
    InstructionTemplate(0xF065, 0xF0FF, S.REGISTER, "LDR", K.LOAD_REGISTERS),
    # Termination
    InstructionTemplate(0x0000, 0xFFFF, S.NONE, "NOP", K.NOP),
    InstructionTemplate(0xFFFF, 0xFFFF, S.NONE, "HALT", K.HALT),
)

# @intent:constant どのテンプレートにも一致しない命令語に割り当てる番兵テンプレート。
# @intent:rationale マスク0はあらゆる語に一致するため、INSTRUCTION_TABLEには含めない。
UNKNOWN_TEMPLATE = InstructionTemplate(0x0000, 0x0000, S.NONE, "UNKNOWN", K.UNKNOWN)

# @intent:map 命令種別から実行関数へのマッピングテーブル。全ての InstructionKind を網羅する。
EXECUTE_MAP: Dict[K, Executor] = {
    # Control flow
    K.CLEAR: device.execute_cls,
    K.RETURN: control.execute_ret,
    K.JUMP: control.execute_jp,
    K.CALL: control.execute_call,
    K.JUMP_OFFSET: control.execute_jp_v0,
    K.SKIP_EQ_IMM: control.execute_se_imm,
    K.SKIP_NE_IMM: control.execute_sne_imm,
    K.SKIP_EQ_REG: control.execute_se_reg,
    K.SKIP_NE_REG: control.execute_sne_reg,

    # ALU
    K.LOAD_IMM: alu.execute_ld_imm,
    K.ADD_IMM: alu.execute_add_imm,
    K.COPY: alu.execute_ld_reg,
    K.OR: alu.execute_or,
    K.AND: alu.execute_and,
    K.XOR: alu.execute_xor,
    K.ADD: alu.execute_add,
    K.SUB: alu.execute_sub,
    K.SHIFT_RIGHT: alu.execute_shr,
    K.REVERSE_SUB: alu.execute_subn,
    K.SHIFT_LEFT: alu.execute_shl,
    K.RANDOM: alu.execute_rnd,

    # Memory-indexed
    K.SET_INDEX: load.execute_ld_i,
    K.ADD_INDEX: load.execute_add_i,
    K.FONT_ADDRESS: load.execute_ld_font,
    K.BCD: load.execute_bcd,
    K.STORE_REGISTERS: load.execute_store_registers,
    K.LOAD_REGISTERS: load.execute_load_registers,

    # Display / input / timers
    K.DRAW: device.execute_drw,
    K.SKIP_KEY_DOWN: device.execute_skp,
    K.SKIP_KEY_UP: device.execute_sknp,
    K.WAIT_KEY: device.execute_wait_key,
    K.READ_DELAY: device.execute_ld_vx_dt,
    K.WRITE_DELAY: device.execute_ld_dt,
    K.WRITE_SOUND: device.execute_ld_st,

    # Termination
    K.NOP: control.execute_nop,
    K.HALT: control.execute_halt,
    K.UNKNOWN: control.execute_unknown,
}
