# src/chip_core_tracer/arch/qch/instructions/alu.py
"""
データ転送・算術論理演算命令の実装。

フラグを出力する命令は全て、結果の格納後にVFへフラグを書き込みます。
"""
from chip_core_tracer.core.snapshot import DecodedInstruction
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.arch.qch.state import QchCpuState
from .base import advance, store_with_flag

# --- LD Vx, kk (6xkk) ---
def execute_ld_imm(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] = inst.byte
    advance(state)

# --- ADD Vx, kk (7xkk) ---
# @intent:responsibility 即値を加算します（mod 256、フラグは変化しません）。
def execute_add_imm(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] = (state.v[inst.x] + inst.byte) & 0xFF
    advance(state)

# --- LD Vx, Vy (8xy0) ---
def execute_ld_reg(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] = state.v[inst.y]
    advance(state)

# --- OR Vx, Vy (8xy1) ---
def execute_or(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] |= state.v[inst.y]
    advance(state)

# --- AND Vx, Vy (8xy2) ---
def execute_and(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] &= state.v[inst.y]
    advance(state)

# --- XOR Vx, Vy (8xy3) ---
def execute_xor(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] ^= state.v[inst.y]
    advance(state)

# --- ADD Vx, Vy (8xy4) ---
# @intent:responsibility 加算し、符号なし8bitのオーバーフロー時にVF=1とします。
def execute_add(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    total = state.v[inst.x] + state.v[inst.y]
    store_with_flag(state, inst.x, total, 1 if total > 0xFF else 0)
    advance(state)

# --- SUB Vx, Vy (8xy5) ---
# @intent:responsibility Vx - Vy を計算し、ボローなし（Vx >= Vy）の場合にVF=1とします。
def execute_sub(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    a, b = state.v[inst.x], state.v[inst.y]
    store_with_flag(state, inst.x, a - b, 1 if a >= b else 0)
    advance(state)

# --- SHR Vx (8xy6) ---
# @intent:responsibility Vxを右シフトし、押し出された最下位ビットをVFに格納します。
def execute_shr(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    value = state.v[inst.x]
    store_with_flag(state, inst.x, value >> 1, value & 0x01)
    advance(state)

# --- SUBN Vx, Vy (8xy7) ---
# @intent:responsibility Vy - Vx を計算し、ボローなし（Vy >= Vx）の場合にVF=1とします。
def execute_subn(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    a, b = state.v[inst.x], state.v[inst.y]
    store_with_flag(state, inst.x, b - a, 1 if b >= a else 0)
    advance(state)

# --- SHL Vx (8xyE) ---
# @intent:responsibility Vxを左シフトし、押し出された最上位ビットをVFに格納します。
def execute_shl(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    value = state.v[inst.x]
    store_with_flag(state, inst.x, value << 1, (value & 0x80) >> 7)
    advance(state)

# --- RND Vx, kk (Cxkk) ---
# @intent:responsibility マシン固有の乱数生成器から1バイトを引き、即値でマスクして格納します。
def execute_rnd(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] = state.rng.getrandbits(8) & inst.byte
    advance(state)
