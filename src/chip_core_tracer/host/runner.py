# src/chip_core_tracer/host/runner.py
"""
ヘッドレスホスト。

描画や音声を持たないホストとして、命令サイクルとタイマー減算のケイデンスを駆動します。
"""
import logging
from dataclasses import dataclass
from typing import Optional

from chip_core_tracer.arch.qch.cpu import QchCpu

logger = logging.getLogger(__name__)

DEFAULT_CYCLES_PER_FRAME = 10

# @intent:responsibility 1フレーム分の実行結果を記録します。
@dataclass(frozen=True)
class FrameResult:
    frame: int
    cycles: int          # このフレームで実行した命令数
    drew: bool           # このフレーム中に画面が更新されたか
    sound_active: bool
    blocking: bool
    halted: bool
    quit: bool

    @property
    def terminal(self) -> bool:
        return self.halted or self.quit

# @intent:responsibility 1フレーム = 最大 cycles_per_frame 命令 + タイマー1回の減算、としてマシンを駆動します。
class HeadlessHost:
    def __init__(self, cpu: QchCpu, cycles_per_frame: int = DEFAULT_CYCLES_PER_FRAME):
        if cycles_per_frame <= 0:
            raise ValueError("cycles_per_frame must be positive.")
        self._cpu = cpu
        self._cycles_per_frame = cycles_per_frame
        self._frame = 0

    @property
    def cpu(self) -> QchCpu:
        return self._cpu

    @property
    def frame(self) -> int:
        return self._frame

    def press(self, key: int) -> None:
        self._cpu.set_key(key, True)

    def release(self, key: int) -> None:
        self._cpu.set_key(key, False)

    # @intent:responsibility 1フレームを実行します。
    # @intent:rationale キー入力待ちの間は命令を実行せず、押下中のキーによる解除のみを試みます。
    def run_frame(self) -> FrameResult:
        state = self._cpu.get_state()
        cycles = 0

        if state.blocking:
            self._cpu.resolve_pending_key()
        else:
            while cycles < self._cycles_per_frame and not state.is_terminal and not state.blocking:
                self._cpu.step()
                cycles += 1

        self._cpu.tick_timers()
        drew = self._cpu.take_draw_flag()
        self._frame += 1

        return FrameResult(
            frame=self._frame,
            cycles=cycles,
            drew=drew,
            sound_active=state.sound_active,
            blocking=state.blocking,
            halted=state.halted,
            quit=state.quit,
        )

    # @intent:responsibility 終端状態になるか、フレーム数の上限に達するまで実行します。
    # @intent:rationale run() の実行中はキーパッドを変更する手段がないため、
    #                  キー入力待ちで押下中のキーが無い場合もそこで停止します。
    # @intent:return 最後に実行したフレームの結果。1フレームも実行しなかった場合は None。
    def run(self, max_frames: Optional[int] = None) -> Optional[FrameResult]:
        result = None
        frames = 0
        while max_frames is None or frames < max_frames:
            state = self._cpu.get_state()
            if state.is_terminal:
                break
            result = self.run_frame()
            frames += 1
            if result.terminal:
                logger.info(
                    "Machine %s after %d frames (%d cycles)",
                    "halted" if result.halted else "quit", self._frame, self._cpu.cycle_count,
                )
                break
            if result.blocking and not any(state.keys):
                logger.warning(
                    "Waiting for a key at %#05x with no key held; stopping after %d frames",
                    state.pc, self._frame,
                )
                break
        return result
