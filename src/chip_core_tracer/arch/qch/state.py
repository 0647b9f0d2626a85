# src/chip_core_tracer/arch/qch/state.py
"""
QCH 仮想マシン固有の状態定義。
"""
import random
from dataclasses import dataclass, field
from typing import List

from chip_core_tracer.core.state import CpuState
from chip_core_tracer.errors import StackOverflowError, StackUnderflowError
from chip_core_tracer.arch.qch.display import FrameBuffer

# @intent:constant メモリ構成とレジスタ構成。
MEMORY_SIZE = 0x1000
ENTRY_POINT = 0x200
REGISTER_COUNT = 16
STACK_DEPTH = 16
KEY_COUNT = 16

# @intent:constant 特別な役割を持つ汎用レジスタ。
FLAG_REGISTER = 0xF    # キャリー/ボロー/衝突フラグの出力先
WIDTH_REGISTER = 0xD   # ロード時に画面幅が書き込まれる
HEIGHT_REGISTER = 0xE  # ロード時に画面高さが書き込まれる

# @intent:responsibility QCH 仮想マシンの全ての可変状態（メモリを除く）を保持します。
# @intent:rationale 主記憶は他のアーキテクチャと同様にBus上のRAMとして保持し、
#                  アクセスログをSnapshotへ載せられるようにします。
@dataclass
class QchCpuState(CpuState):
    """
    16本の8bit汎用レジスタ、インデックスレジスタ、コールスタック、キーパッド、
    2つのタイマー、ピクセルバッファ、待機・終了フラグを保持するデータクラス。
    """
    pc: int = ENTRY_POINT
    i: int = 0x000  # Index Register
    v: List[int] = field(default_factory=lambda: [0] * REGISTER_COUNT)
    stack: List[int] = field(default_factory=lambda: [0] * STACK_DEPTH)
    keys: List[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    delay_timer: int = 0
    sound_timer: int = 0
    blocking: bool = False
    key_target: int = 0  # キー入力待ちの格納先レジスタ
    draw: bool = False
    display: FrameBuffer = field(default_factory=FrameBuffer)
    # @intent:rationale 乱数生成器はプロセス共有ではなくマシンごとに保持し、
    #                  固定シードでのテストと複数マシンの独立性を保証します。
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)

    # @intent:accessor フラグレジスタ（VF）へのアクセスを提供します。
    @property
    def flag(self) -> int:
        return self.v[FLAG_REGISTER]

    @flag.setter
    def flag(self, value: int) -> None:
        self.v[FLAG_REGISTER] = value & 0xFF

    # @intent:responsibility 戻りアドレスをコールスタックに積みます。
    # @intent:post-condition 17段目の呼び出しは StackOverflowError となります。
    def push_return(self, address: int) -> None:
        if self.sp >= STACK_DEPTH:
            raise StackOverflowError(f"Call stack overflow ({STACK_DEPTH} levels).", pc=self.pc)
        self.stack[self.sp] = address
        self.sp += 1

    # @intent:responsibility コールスタックから戻りアドレスを取り出します。
    # @intent:post-condition 空スタックからの取り出しは StackUnderflowError となります。
    def pop_return(self) -> int:
        if self.sp <= 0:
            raise StackUnderflowError("Return with an empty call stack.", pc=self.pc)
        self.sp -= 1
        return self.stack[self.sp]

    # @intent:responsibility 両タイマーを1だけ減算します（0で飽和）。
    def tick_timers(self) -> None:
        if self.delay_timer > 0:
            self.delay_timer -= 1
        if self.sound_timer > 0:
            self.sound_timer -= 1

    @property
    def sound_active(self) -> bool:
        return self.sound_timer > 0
