# src/chip_core_tracer/arch/qch/instructions/base.py
"""
QCH 命令実装用の共通定義とユーティリティ。
"""
from enum import Enum
from typing import Callable

from chip_core_tracer.core.snapshot import DecodedInstruction
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.errors import ProgramCounterError
from chip_core_tracer.arch.qch.state import QchCpuState, MEMORY_SIZE, FLAG_REGISTER

INSTRUCTION_SIZE = 2

# @intent:responsibility 命令種別を列挙します。テンプレートと実行関数はこの列挙子で結び付けられます。
class InstructionKind(Enum):
    # Control flow
    CLEAR = "CLEAR"
    RETURN = "RETURN"
    JUMP = "JUMP"
    CALL = "CALL"
    JUMP_OFFSET = "JUMP_OFFSET"
    # Conditional skip
    SKIP_EQ_IMM = "SKIP_EQ_IMM"
    SKIP_NE_IMM = "SKIP_NE_IMM"
    SKIP_EQ_REG = "SKIP_EQ_REG"
    SKIP_NE_REG = "SKIP_NE_REG"
    # Data movement
    LOAD_IMM = "LOAD_IMM"
    ADD_IMM = "ADD_IMM"
    COPY = "COPY"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    # Arithmetic with flags
    ADD = "ADD"
    SUB = "SUB"
    SHIFT_RIGHT = "SHIFT_RIGHT"
    REVERSE_SUB = "REVERSE_SUB"
    SHIFT_LEFT = "SHIFT_LEFT"
    # Randomness
    RANDOM = "RANDOM"
    # Memory-indexed
    SET_INDEX = "SET_INDEX"
    ADD_INDEX = "ADD_INDEX"
    FONT_ADDRESS = "FONT_ADDRESS"
    BCD = "BCD"
    STORE_REGISTERS = "STORE_REGISTERS"
    LOAD_REGISTERS = "LOAD_REGISTERS"
    # Display
    DRAW = "DRAW"
    # Input / timers
    SKIP_KEY_DOWN = "SKIP_KEY_DOWN"
    SKIP_KEY_UP = "SKIP_KEY_UP"
    WAIT_KEY = "WAIT_KEY"
    READ_DELAY = "READ_DELAY"
    WRITE_DELAY = "WRITE_DELAY"
    WRITE_SOUND = "WRITE_SOUND"
    # Termination
    NOP = "NOP"
    HALT = "HALT"
    UNKNOWN = "UNKNOWN"

# @intent:data_structure 命令実行関数の型。
Executor = Callable[[QchCpuState, Bus, DecodedInstruction], None]

# @intent:utility_function PCを次の命令へ進めます。skip=True の場合は次の命令を飛ばします。
def advance(state: QchCpuState, skip: bool = False) -> None:
    state.pc += INSTRUCTION_SIZE * (2 if skip else 1)

# @intent:utility_function 分岐先が偶数かつメモリ範囲内であることを検証します。
def check_target(state: QchCpuState, target: int) -> None:
    if not 0 <= target < MEMORY_SIZE:
        raise ProgramCounterError(f"Jump target {target:#05x} outside memory.", pc=state.pc)
    if target % INSTRUCTION_SIZE:
        raise ProgramCounterError(f"Jump target {target:#05x} is not instruction aligned.", pc=state.pc)

# @intent:utility_function PCを分岐先に設定します。
def jump_to(state: QchCpuState, target: int) -> None:
    check_target(state, target)
    state.pc = target

# @intent:utility_function 演算結果とフラグを書き込みます。
# @intent:rationale 結果の格納先がVFの場合でも、フラグを後から書き込むためフラグが優先されます。
def store_with_flag(state: QchCpuState, register: int, value: int, flag: int) -> None:
    state.v[register] = value & 0xFF
    state.v[FLAG_REGISTER] = flag
