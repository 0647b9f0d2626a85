# src/chip_core_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from chip_core_tracer.core.cpu import AbstractCpu
from chip_core_tracer.core.snapshot import Snapshot
from chip_core_tracer.transport.bus import BusAccessType

logger = logging.getLogger(__name__)

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した

# @intent:responsibility run() が停止した理由を表します。
class StopReason(Enum):
    BREAKPOINT = "BREAKPOINT"
    HALTED = "HALTED"
    QUIT = "QUIT"
    BLOCKED = "BLOCKED"         # キー入力待ち
    STEP_LIMIT = "STEP_LIMIT"
    STOPPED = "STOPPED"         # stop() による中断

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用（"V0", "I", "DT" など）
    enabled: bool = True                  # 有効/無効状態

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    """
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._last_snapshot: Optional[Snapshot] = None
        self._last_stop_reason: Optional[StopReason] = None
        self._history: List[Snapshot] = []
        # @intent:rationale Stateはステップ間で同一オブジェクトが更新されるため、
        #                  レジスタ値は辞書のコピーとして前後を比較します。
        self._previous_registers: Dict[str, int] = cpu.get_register_map()

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    @property
    def last_stop_reason(self) -> Optional[StopReason]:
        return self._last_stop_reason

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        return any(
            bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
            for bp in self._breakpoints
        )

    def _check_other_breakpoints(self, snapshot: Snapshot, registers: Dict[str, int]) -> bool:
        """
        Snapshotとステップ前後のレジスタ値に基づいて、PC_MATCH以外のブレークポイントをチェックします。
        """
        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                if snapshot.touched(bp.address, BusAccessType.READ):
                    return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                if snapshot.touched(bp.address, BusAccessType.WRITE):
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name in registers and registers[bp.register_name] == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                name = bp.register_name
                if name in registers and name in self._previous_registers:
                    if registers[name] != self._previous_registers[name]:
                        return True
        return False

    # @intent:responsibility CPUを1命令分実行し、履歴に記録します。
    def step_instruction(self) -> Snapshot:
        self._previous_registers = self._cpu.get_register_map()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot

    # @intent:responsibility ブレークポイント・終端状態・キー入力待ち・ステップ上限のいずれかまで実行を継続します。
    # @intent:pre-condition 終端状態のCPUに対しては MachineStoppedError が伝播します。
    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """
        現在のPCにPC_MATCHブレークポイントがある場合は、そこで止まり続けないよう最初の1命令を先に実行します。
        """
        self._running = True
        steps = 0
        first = True

        while self._running:
            if max_steps is not None and steps >= max_steps:
                return self._stop(StopReason.STEP_LIMIT)

            state = self._cpu.get_state()
            if not first and self._pc_breakpoint_hit(state.pc):
                logger.info("Breakpoint hit at PC: %#06x", state.pc)
                return self._stop(StopReason.BREAKPOINT)
            first = False

            snapshot = self.step_instruction()
            steps += 1

            if snapshot.state.halted:
                return self._stop(StopReason.HALTED)
            if snapshot.state.quit:
                return self._stop(StopReason.QUIT)
            if snapshot.instruction is None or getattr(snapshot.state, "blocking", False):
                return self._stop(StopReason.BLOCKED)

            if self._check_other_breakpoints(snapshot, self._cpu.get_register_map()):
                logger.info("Breakpoint hit at PC: %#06x", snapshot.state.pc)
                return self._stop(StopReason.BREAKPOINT)

        return self._stop(StopReason.STOPPED)

    def _stop(self, reason: StopReason) -> StopReason:
        self._running = False
        self._last_stop_reason = reason
        return reason

    def stop(self) -> None:
        self._running = False
