# src/chip_core_tracer/arch/qch/instructions/device.py
"""
画面・キーパッド・タイマーを扱う命令の実装。
"""
from chip_core_tracer.core.snapshot import DecodedInstruction
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.errors import KeyIndexError
from chip_core_tracer.arch.qch.state import QchCpuState, KEY_COUNT, FLAG_REGISTER
from .base import advance

# --- CLS (00E0) ---
def execute_cls(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.display.clear()
    state.draw = True
    advance(state)

# --- DRW Vx, Vy, n (Dxyn) ---
# @intent:responsibility I から n 行のスプライトを (Vx, Vy) に XOR 描画します。
# @intent:rationale 開始座標は画面サイズで折り返し、右端・下端をはみ出すピクセルは切り捨てます。
#                  点灯→消灯の遷移が1つでもあればVF=1、なければVF=0とします。
def execute_drw(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    display = state.display
    origin_x = state.v[inst.x] % display.width
    origin_y = state.v[inst.y] % display.height
    collision = False

    for row in range(inst.nibble):
        y = origin_y + row
        if y >= display.height:
            break
        sprite = bus.read(state.i + row)
        for bit in range(8):
            x = origin_x + bit
            if x >= display.width:
                break
            if sprite & (0x80 >> bit) and display.toggle(x, y):
                collision = True

    state.v[FLAG_REGISTER] = 1 if collision else 0
    state.draw = True
    advance(state)

# @intent:utility_function Vxの値をキー番号として取り出します。
# @intent:pre-condition キー番号は 0..15 である必要があります。
def _key_index(state: QchCpuState, register: int) -> int:
    key = state.v[register]
    if key >= KEY_COUNT:
        raise KeyIndexError(f"Key index {key} in V{register:X} is out of range.", pc=state.pc)
    return key

# --- SKP Vx (Ex9E) ---
def execute_skp(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=state.keys[_key_index(state, inst.x)])

# --- SKNP Vx (ExA1) ---
def execute_sknp(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    advance(state, skip=not state.keys[_key_index(state, inst.x)])

# --- LD Vx, K (Fx0A) ---
# @intent:responsibility キー入力待ちに入ります。PCは発行時に進め、以降はホストがキーを通知するまで停止します。
def execute_wait_key(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.blocking = True
    state.key_target = inst.x
    advance(state)

# --- LD Vx, DT (Fx07) ---
def execute_ld_vx_dt(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.v[inst.x] = state.delay_timer
    advance(state)

# --- LD DT, Vx (Fx15) ---
def execute_ld_dt(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.delay_timer = state.v[inst.x]
    advance(state)

# --- LD ST, Vx (Fx18) ---
def execute_ld_st(state: QchCpuState, bus: Bus, inst: DecodedInstruction) -> None:
    state.sound_timer = state.v[inst.x]
    advance(state)
