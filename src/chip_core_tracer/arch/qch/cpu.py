# src/chip_core_tracer/arch/qch/cpu.py
"""
QCH 仮想マシンのエミュレーションの中心モジュール。
"""
import logging
import random
from typing import Dict, List, Optional

from chip_core_tracer.errors import ProgramCounterError, InvalidKeyError, ProgramFormatError
from chip_core_tracer.core.snapshot import DecodedInstruction, Metadata, Snapshot
from chip_core_tracer.common.types import RegisterLayoutInfo, RegisterInfo
from chip_core_tracer.core.cpu import AbstractCpu
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.arch.qch.state import (
    QchCpuState, MEMORY_SIZE, KEY_COUNT, REGISTER_COUNT, WIDTH_REGISTER, HEIGHT_REGISTER,
)
from chip_core_tracer.arch.qch.glyphs import FONT_BASE, FONT_SPRITES
from chip_core_tracer.arch.qch.instructions import decode_instruction, decode_word, execute_instruction

logger = logging.getLogger(__name__)

# @intent:responsibility QCH 仮想マシンのフェッチ・デコード・実行と、ホスト向けの入出力を提供します。
class QchCpu(AbstractCpu):
    """
    QCH 仮想マシンをエミュレートするクラス。
    主記憶は 4KiB のRAMとしてBusに接続されている必要があります。
    """
    # @intent:pre-condition bus には 0x000-0xFFF のRAMが登録されている必要があります。
    # @intent:responsibility seed が None の場合、乱数生成器はOSのエントロピーで初期化されます。
    def __init__(self, bus: Bus, seed: Optional[int] = None):
        self._seed = seed
        self._fetched: Optional[DecodedInstruction] = None
        super().__init__(bus)
        self._install_fonts()

    # @intent:responsibility 初期状態を生成します。乱数生成器は状態ごとに新しく作られます。
    def _create_initial_state(self) -> QchCpuState:
        return QchCpuState(rng=random.Random(self._seed))

    # @intent:responsibility メモリをクリアしてフォントを再配置し、初期状態に戻します。
    def reset(self) -> None:
        super().reset()
        self._bus.clear()
        self._install_fonts()

    def _install_fonts(self) -> None:
        self._bus.load(FONT_BASE, FONT_SPRITES)

    # @intent:responsibility ピクセルバッファを再確保し、幅と高さを予約レジスタ（VD, VE）へ書き込みます。
    def resize_display(self, width: int, height: int) -> None:
        try:
            self._state.display.resize(width, height)
        except ValueError as e:
            raise ProgramFormatError(str(e)) from e
        self._state.v[WIDTH_REGISTER] = width
        self._state.v[HEIGHT_REGISTER] = height
        self._state.draw = True
        logger.debug("Display resized to %dx%d", width, height)

    # --- Instruction cycle ---

    # @intent:responsibility PCの命令を decode_instruction で読み出し、デコード結果を保持します。
    # @intent:pre-condition PCは偶数かつメモリ範囲内である必要があります。
    def _fetch(self) -> int:
        pc = self._state.pc
        if not 0 <= pc < MEMORY_SIZE or pc % 2:
            raise ProgramCounterError("Program counter left the valid instruction range.", pc=pc)
        self._fetched = decode_instruction(self._bus, pc)
        return self._fetched.word

    # @intent:responsibility 直前のフェッチで得たデコード結果を返します。
    def _decode(self, word: int) -> DecodedInstruction:
        fetched = self._fetched
        if fetched is not None and fetched.word == word and fetched.address == self._state.pc:
            return fetched
        return decode_word(word, self._state.pc)

    def _execute(self, instruction: DecodedInstruction) -> None:
        execute_instruction(instruction, self._state, self._bus)

    # @intent:responsibility キー入力待ちの間は命令を実行せず、そのままの状態を返します。
    def _handle_waiting(self) -> Optional[Snapshot]:
        if not self._state.blocking:
            return None
        return Snapshot(
            state=self._state,
            instruction=None,
            metadata=Metadata(cycle_count=self._cycle_count, trace_text="BLOCKED"),
        )

    # --- Host interface ---

    # @intent:responsibility キーパッドのスナップショットを更新します。
    def set_key(self, key: int, down: bool) -> None:
        if not 0 <= key < KEY_COUNT:
            raise InvalidKeyError(f"Key index {key} is out of range.")
        self._state.keys[key] = down

    # @intent:responsibility キー入力待ちを解決します。ホストはループごとに1回呼び出します。
    # @intent:return 押下中のキーが見つかり待機が解除された場合に True。
    def resolve_pending_key(self) -> bool:
        """
        待機中であれば、押下中のキーのうち最小の番号を格納先レジスタへコピーして待機を解除します。
        """
        state = self._state
        if not state.blocking:
            return False
        for key, down in enumerate(state.keys):
            if down:
                state.v[state.key_target] = key
                state.blocking = False
                return True
        return False

    # @intent:responsibility ディレイ・サウンドタイマーを1だけ減算します（通常60Hzでホストが呼び出す）。
    def tick_timers(self) -> None:
        self._state.tick_timers()

    # @intent:responsibility 描画フラグを取得し、クリアします。
    def take_draw_flag(self) -> bool:
        drawn = self._state.draw
        self._state.draw = False
        return drawn

    def read_memory(self, start: int, length: int) -> bytes:
        return self._bus.dump(start, length)

    # --- Inspection ---

    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        registers = {f"V{n:X}": s.v[n] for n in range(REGISTER_COUNT)}
        registers.update({
            "I": s.i, "PC": s.pc, "SP": s.sp, "DT": s.delay_timer, "ST": s.sound_timer
        })
        return registers

    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{n:X}", 8) for n in range(REGISTER_COUNT)]),
            RegisterLayoutInfo("Pointers", [
                RegisterInfo("I", 12), RegisterInfo("PC", 12), RegisterInfo("SP", 8)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    def get_flag_state(self) -> Dict[str, bool]:
        s = self._state
        return {
            "CARRY": s.flag != 0,
            "DRAW": s.draw,
            "BLOCKING": s.blocking,
            "HALTED": s.halted,
            "QUIT": s.quit,
        }
