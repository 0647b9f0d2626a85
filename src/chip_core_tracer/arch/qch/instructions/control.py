# src/chip_core_tracer/arch/qch/instructions/control.py
"""
制御命令（ジャンプ、サブルーチン、条件スキップ、停止）の実装。
"""
import logging

from chip_core_tracer.core.snapshot import DecodedInstruction
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.arch.qch.state import QchCpuState
from .base import advance, check_target, jump_to, INSTRUCTION_SIZE

logger = logging.getLogger(__name__)

# --- RET (00EE) ---
# @intent:responsibility スタックから戻りアドレスをポップしてPCに設定します。
def execute_ret(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    jump_to(state, state.pop_return())

# --- JP nnn (1nnn) ---
def execute_jp(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    jump_to(state, inst.nnn)

# --- CALL nnn (2nnn) ---
# @intent:responsibility 戻りアドレス（次の命令）をスタックにプッシュしてからジャンプします。
# @intent:post-condition 分岐先が不正な場合はスタックを変更せずに例外を送出します。
def execute_call(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    target = inst.nnn
    check_target(state, target)
    state.push_return(state.pc + INSTRUCTION_SIZE)
    jump_to(state, target)

# --- JP V0, nnn (Bnnn) ---
def execute_jp_v0(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    jump_to(state, inst.nnn + state.v[0])

# --- SE Vx, kk (3xkk) ---
def execute_se_imm(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=state.v[inst.x] == inst.byte)

# --- SNE Vx, kk (4xkk) ---
def execute_sne_imm(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=state.v[inst.x] != inst.byte)

# --- SE Vx, Vy (5xy0) ---
def execute_se_reg(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=state.v[inst.x] == state.v[inst.y])

# --- SNE Vx, Vy (9xy0) ---
def execute_sne_reg(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=state.v[inst.x] != state.v[inst.y])

# --- NOP (0000) ---
def execute_nop(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    # Intentional: PCを進めるのみ
    advance(state)

# --- HALT (FFFF) ---
# @intent:responsibility 正常停止します。PCは変更しません。
def execute_halt(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.halted = True
    logger.info("Machine halted at %#05x", state.pc)

# --- 未定義命令 ---
# @intent:responsibility 異常停止フラグを立てます。例外は送出せず、PCも変更しません。
def execute_unknown(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.quit = True
    logger.warning("Unknown instruction %s at %#05x", inst.word_hex, state.pc)
