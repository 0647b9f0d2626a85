# src/chip_core_tracer/arch/qch/instructions/load.py
"""
インデックスレジスタとメモリを扱う命令の実装。

メモリへのアクセスは全てBus経由で行われ、範囲外アクセスは MemoryAccessError となります。
"""
from chip_core_tracer.core.snapshot import DecodedInstruction
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.arch.qch.state import QchCpuState
from chip_core_tracer.arch.qch.glyphs import glyph_address
from .base import advance

# --- LD I, nnn (Annn) ---
def execute_ld_i(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.i = inst.nnn
    advance(state)

# --- ADD I, Vx (Fx1E) ---
# @intent:responsibility Vxをインデックスレジスタに加算します（12bitで折り返し、VFは変化しません）。
def execute_add_i(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.i = (state.i + state.v[inst.x]) & 0x0FFF
    advance(state)

# --- LD F, Vx (Fx29) ---
# @intent:responsibility Vxの下位ニブルに対応するフォントグリフのアドレスをIに設定します。
def execute_ld_font(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.i = glyph_address(state.v[inst.x])
    advance(state)

# --- LD B, Vx (Fx33) ---
# @intent:responsibility Vxを10進3桁に分解し、I, I+1, I+2 に百・十・一の位を格納します。
def execute_bcd(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    value = state.v[inst.x]
    bus.write(state.i, value // 100)
    bus.write(state.i + 1, (value // 10) % 10)
    bus.write(state.i + 2, value % 10)
    advance(state)

# --- LD [I], Vx (Fx55) ---
# @intent:responsibility V0..Vx（Vxを含む）を I から順にメモリへ格納します。Iは変化しません。
def execute_store_registers(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    for register in range(inst.x + 1):
        bus.write(state.i + register, state.v[register])
    advance(state)

# --- LD Vx, [I] (Fx65) ---
# @intent:responsibility I から順にメモリを V0..Vx（Vxを含む）へ読み込みます。Iは変化しません。
def execute_load_registers(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    for register in range(inst.x + 1):
        state.v[register] = bus.read(state.i + register)
    advance(state)
