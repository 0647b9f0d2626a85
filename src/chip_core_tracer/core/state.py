# chip_core_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、CPUの基本的な状態（レジスタ群）を保持するデータ構造を定義します。
"""
from dataclasses import dataclass

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    CPUのレジスタ状態を保持するデータクラス。
    これは抽象的な基底状態であり、特定のアーキテクチャに応じて拡張されます。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer
    halted: bool = False  # 正常停止
    quit: bool = False    # 異常停止（未定義命令など）

    # @intent:responsibility これ以上命令を実行できない終端状態かどうかを返します。
    @property
    def is_terminal(self) -> bool:
        return self.halted or self.quit
