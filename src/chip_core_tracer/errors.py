# chip_core_tracer/errors.py
"""
例外階層の定義

パッケージ全体で使用する例外を定義します。
全ての例外は ChipCoreError を継承するため、呼び出し元は単一の except 節で
本パッケージ由来のエラーを捕捉できます。

ChipCoreError
├── MachineFault          エンジンの整合性違反（step() から送出）
│   ├── MemoryAccessError     マップ外アドレスへのアクセス
│   ├── StackFault
│   │   ├── StackOverflowError    17段目のサブルーチン呼び出し
│   │   └── StackUnderflowError   空スタックでのリターン
│   ├── ProgramCounterError   奇数アドレスまたは範囲外へのジャンプ
│   └── KeyIndexError         0..15 以外のキー番号
├── HostProtocolError     ホスト側の呼び出し規約違反
│   ├── MachineStoppedError   停止済みマシンの step()
│   └── InvalidKeyError       範囲外キーの押下通知
├── ProgramFormatError    プログラムイメージの不正
└── ConfigError           設定ファイルの不正

未定義命令は例外ではなく quit フラグで表現されます。
"""
from typing import Optional


class ChipCoreError(Exception):
    """本パッケージの全ての例外の基底クラス。"""
    pass


# --- Machine faults ---

# @intent:responsibility プログラムまたはホストによる整合性違反を表します。
# @intent:rationale 「プログラムが停止を指示した」ことと「エンジンの不変条件が破れた」ことを
#                  ホストが区別できるよう、フラグではなく例外として step() から伝播させます。
class MachineFault(ChipCoreError):
    """
    エンジンの不変条件違反。実行を継続できない致命的な状態です。
    """
    def __init__(self, message: str, pc: Optional[int] = None):
        self.pc = pc
        if pc is not None:
            message = f"{message} (pc={pc:#05x})"
        super().__init__(message)


class MemoryAccessError(MachineFault, IndexError):
    """マップされていないアドレスへの読み書き。"""
    pass


class StackFault(MachineFault):
    """コールスタックの範囲外操作。"""
    pass


class StackOverflowError(StackFault):
    pass


class StackUnderflowError(StackFault):
    pass


class ProgramCounterError(MachineFault):
    """プログラムカウンタが偶数かつ [0, 4096) という不変条件を満たさない。"""
    pass


class KeyIndexError(MachineFault, IndexError):
    """キー番号がキーパッドの範囲（0..15）外。"""
    pass


# --- Host protocol ---

class HostProtocolError(ChipCoreError):
    """ホストがエンジンの利用規約に違反した。"""
    pass


class MachineStoppedError(HostProtocolError):
    """halted または quit 状態のマシンを進めようとした。"""
    pass


class InvalidKeyError(HostProtocolError, ValueError):
    """ホストが範囲外のキー番号を通知した。"""
    pass


# --- Loading / configuration ---

class ProgramFormatError(ChipCoreError, ValueError):
    """プログラムイメージまたはヘッダが不正。"""
    pass


class ConfigError(ChipCoreError, ValueError):
    """設定ファイルの内容が不正。"""
    pass
