# chip_core_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from chip_core_tracer.errors import MachineStoppedError
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.core.snapshot import Snapshot, DecodedInstruction, Metadata
from chip_core_tracer.core.state import CpuState
from chip_core_tracer.common.types import RegisterLayoutInfo

logger = logging.getLogger(__name__)

TraceHook = Callable[[Snapshot], None]

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._cycle_count: int = 0
        self._trace_hooks: List[TraceHook] = []
        self._trace_enabled: bool = False
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    # @intent:rationale 各アーキテクチャで初期状態が異なるため、抽象メソッドとして定義します。
    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        """
        pass

    # @intent:responsibility CPUをリセットし、初期状態に戻します。
    def reset(self) -> None:
        self._state = self._create_initial_state()
        self._cycle_count = 0

    def get_state(self) -> CpuState:
        return self._state

    def get_bus(self) -> Bus:
        return self._bus

    @property
    def cycle_count(self) -> int:
        return self._cycle_count

    # --- Trace hooks ---

    # @intent:responsibility ステップごとに呼び出されるトレースフックを登録します。
    # @intent:rationale トレースはビルド時ではなく実行時に切り替えます。
    #                  フックを登録すると trace_enabled が有効になります。
    def add_trace_hook(self, hook: TraceHook) -> None:
        if hook not in self._trace_hooks:
            self._trace_hooks.append(hook)
        self._trace_enabled = True

    def remove_trace_hook(self, hook: TraceHook) -> None:
        if hook in self._trace_hooks:
            self._trace_hooks.remove(hook)
        if not self._trace_hooks:
            self._trace_enabled = False

    @property
    def trace_enabled(self) -> bool:
        return self._trace_enabled

    @trace_enabled.setter
    def trace_enabled(self, value: bool) -> None:
        self._trace_enabled = value

    # --- Instruction cycle ---

    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCから次の命令語をフェッチし、その値を返します。
        """
        pass

    @abstractmethod
    def _decode(self, word: int) -> DecodedInstruction:
        """
        命令語をデコードし、DecodedInstructionを返します。未定義命令でも失敗しません。
        """
        pass

    @abstractmethod
    def _execute(self, instruction: DecodedInstruction) -> None:
        """
        デコードされた命令を実行し、CPUの状態を更新します。
        PCの更新は命令の実行関数が行います。
        """
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー
    #                  （停止判定→待機判定→ログクリア→フェッチ→デコード→実行→Snapshot生成）を定義します。
    # @intent:post-condition 整合性違反は MachineFault として呼び出し元へ伝播します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        """
        # 1. 終端状態のマシンは再開しない
        if self._state.is_terminal:
            reason = "halted" if self._state.halted else "quit"
            raise MachineStoppedError(f"Cannot step a machine that has {reason}.")

        # 2. 待機判定 (Hook)
        waiting_snapshot = self._handle_waiting()
        if waiting_snapshot:
            return waiting_snapshot

        # 3. 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        initial_pc = self._state.pc

        # 4. フェッチ & デコード
        word = self._fetch()
        instruction = self._decode(word)

        # 5. 実行
        self._execute(instruction)

        # 6. 後処理 & Snapshot生成
        snapshot = self._create_snapshot(initial_pc, instruction)
        self._notify_trace(snapshot)
        return snapshot

    # @intent:responsibility 命令を実行できない待機状態の処理を行います。
    # @intent:return 待機中であればその状態のSnapshot、そうでなければNone。
    def _handle_waiting(self) -> Optional[Snapshot]:
        """
        待機状態の場合の処理。デフォルトは何もしない（Noneを返す）。
        """
        return None

    def _create_snapshot(self, initial_pc: int, instruction: DecodedInstruction) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._cycle_count += 1
        trace_text = f"{initial_pc:#06x} {instruction.word_hex} {instruction.format()}"
        return Snapshot(
            state=self.get_state(),
            instruction=instruction,
            metadata=Metadata(cycle_count=self._cycle_count, trace_text=trace_text),
            bus_activity=bus_activity
        )

    def _notify_trace(self, snapshot: Snapshot) -> None:
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(snapshot.metadata.trace_text)
        if not self._trace_enabled:
            return
        for hook in list(self._trace_hooks):
            hook(snapshot)

    # --- Inspection ---

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        インスペクタがCPUの内部構造を知らなくても値を表示できるようにするために使用される。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        レジスタをどのように配置・グループ化すべきかの定義を返す。
        """
        pass

    @abstractmethod
    def get_flag_state(self) -> Dict[str, bool]:
        """
        現在のフラグの状態を辞書形式で返す。
        """
        pass
