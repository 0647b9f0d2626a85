# chip_core_tracer/core/snapshot.py
"""
命令メタデータと実行状態の不変スナップショット

このモジュールは、命令テンプレート・デコード済み命令と、1サイクル実行後の
CPUとバスの状態を記録した不変のデータ構造を定義します。
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from chip_core_tracer.core.state import CpuState
from chip_core_tracer.transport.bus import BusAccessType, BusAccess


# @intent:responsibility 命令語に含まれるオペランドの形を定義します。
class OperandShape(Enum):
    NONE = "NONE"                                   # オペランドなし
    REGISTER = "REGISTER"                           # x
    REGISTER_PAIR = "REGISTER_PAIR"                 # x, y
    REGISTER_BYTE = "REGISTER_BYTE"                 # x, kk
    ADDRESS = "ADDRESS"                             # nnn
    REGISTER_PAIR_NIBBLE = "REGISTER_PAIR_NIBBLE"   # x, y, n


# @intent:responsibility 命令語を分類するためのテンプレート（パターンとマスク）を表します。
@dataclass(frozen=True)
class InstructionTemplate:
    """
    word & mask == pattern となる命令語をこのテンプレートに分類します。
    kind はアーキテクチャ側で定義される命令種別の列挙子です。
    """
    pattern: int
    mask: int
    shape: OperandShape
    mnemonic: str
    kind: Enum

    # @intent:responsibility 命令語がこのテンプレートに一致するかを判定します。
    def matches(self, word: int) -> bool:
        return (word & self.mask) == self.pattern


# @intent:responsibility フェッチ1回分のデコード結果を保持します。
# @intent:rationale オペランドは命令語の純関数として取り出せるため、フィールドとしては保持せず
#                  プロパティで都度計算します。
@dataclass(frozen=True)
class DecodedInstruction:
    """
    生の命令語、一致したテンプレート、フェッチしたアドレスを記録するデータクラス。
    """
    word: int
    template: InstructionTemplate
    address: int = 0  # 命令をフェッチしたアドレス

    @property
    def mnemonic(self) -> str:
        return self.template.mnemonic

    @property
    def kind(self) -> Enum:
        return self.template.kind

    @property
    def x(self) -> int:
        return (self.word & 0x0F00) >> 8

    @property
    def y(self) -> int:
        return (self.word & 0x00F0) >> 4

    @property
    def byte(self) -> int:
        return self.word & 0x00FF

    @property
    def nnn(self) -> int:
        return self.word & 0x0FFF

    @property
    def nibble(self) -> int:
        return self.word & 0x000F

    @property
    def word_hex(self) -> str:
        return f"{self.word:04X}"

    # @intent:responsibility オペランドの形に応じた表示用文字列のリストを返します。
    @property
    def operands(self) -> List[str]:
        shape = self.template.shape
        if shape == OperandShape.REGISTER:
            return [f"V{self.x:X}"]
        if shape == OperandShape.REGISTER_PAIR:
            return [f"V{self.x:X}", f"V{self.y:X}"]
        if shape == OperandShape.REGISTER_BYTE:
            return [f"V{self.x:X}", f"#${self.byte:02X}"]
        if shape == OperandShape.ADDRESS:
            return [f"${self.nnn:03X}"]
        if shape == OperandShape.REGISTER_PAIR_NIBBLE:
            return [f"V{self.x:X}", f"V{self.y:X}", f"{self.nibble}"]
        return []

    def format(self) -> str:
        text = self.mnemonic
        if self.operands:
            text += " " + ", ".join(self.operands)
        return text


# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計サイクル数、トレース文字列）を記録するデータクラス。
    """
    cycle_count: int
    trace_text: Optional[str] = None # 例: "0x0200 6005 LD V0, #$05"


# @intent:responsibility ある一時点におけるCPUとバスの状態を記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1サイクル実行後のCPU状態、実行した命令、メタデータ、バスアクティビティ。
    instruction が None の場合、キー入力待ちのため命令は実行されていません。
    """
    state: CpuState
    instruction: Optional[DecodedInstruction]
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)

    # @intent:rationale state は実行中のCPUが保持するオブジェクトそのものです。
    #                  過去の値を保持したい場合は呼び出し側で get_register_map() 等の値を控えてください。

    # @intent:responsibility このサイクルで指定アドレスにアクセスがあったかを判定します。
    def touched(self, address: int, access_type: BusAccessType) -> bool:
        return any(
            access.address == address and access.access_type == access_type
            for access in self.bus_activity
        )
