# src/chip_core_tracer/loader/loader.py
"""
プログラムローダーモジュール。
生のプログラムイメージ（ビッグエンディアン16bit命令列 + 任意の末尾ヘッダー）のロードをサポートします。
"""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from chip_core_tracer.errors import ProgramFormatError
from chip_core_tracer.arch.qch.cpu import QchCpu
from chip_core_tracer.arch.qch.display import DEFAULT_WIDTH, DEFAULT_HEIGHT
from chip_core_tracer.arch.qch.state import MEMORY_SIZE, ENTRY_POINT

logger = logging.getLogger(__name__)

# @intent:constant 末尾ヘッダーの構造。
HEADER_SIZE = 16
HEADER_SENTINEL = b"\xC8\xC8"
HEADER_WIDTH_OFFSET = 6
HEADER_HEIGHT_OFFSET = 7
MAX_PROGRAM_SIZE = MEMORY_SIZE - ENTRY_POINT

@dataclass(frozen=True)
class ProgramHeader:
    width: int
    height: int

# @intent:responsibility イメージ末尾の16バイトを調べ、番兵が一致すれば画面サイズを取り出します。
# @intent:return ヘッダーが存在しない場合は None。
def parse_header(program: bytes) -> Optional[ProgramHeader]:
    if len(program) <= HEADER_SIZE:
        return None
    header = program[-HEADER_SIZE:]
    if header[:len(HEADER_SENTINEL)] != HEADER_SENTINEL:
        return None
    width = header[HEADER_WIDTH_OFFSET]
    height = header[HEADER_HEIGHT_OFFSET]
    if width == 0 or height == 0:
        raise ProgramFormatError(f"Header declares an empty display ({width}x{height}).")
    return ProgramHeader(width=width, height=height)

class ProgramLoader:
    """
    プログラムイメージを解析し、エントリーポイントからバスへロードするローダー。
    ロード後は必ず画面サイズを設定し直し、VD/VE に幅と高さが書き込まれます。
    """
    # @intent:pre-condition プログラムは 0x200-0xFFF に収まる必要があります。
    # @intent:post-condition 範囲外のイメージは1バイトもコピーせずに拒否されます。
    def load(self, cpu: QchCpu, program: bytes) -> Optional[ProgramHeader]:
        program = bytes(program)
        if len(program) > MAX_PROGRAM_SIZE:
            raise ProgramFormatError(
                f"Program image is {len(program)} bytes; at most {MAX_PROGRAM_SIZE} bytes fit above {ENTRY_POINT:#05x}."
            )
        header = parse_header(program)

        cpu.get_bus().load(ENTRY_POINT, program)
        if header:
            cpu.resize_display(header.width, header.height)
        else:
            cpu.resize_display(DEFAULT_WIDTH, DEFAULT_HEIGHT)

        display = cpu.get_state().display
        logger.info(
            "Loaded %d bytes at %#05x (display %dx%d, header %s)",
            len(program), ENTRY_POINT, display.width, display.height,
            "found" if header else "absent",
        )
        return header

    def load_file(self, cpu: QchCpu, file_path: Union[str, Path]) -> Optional[ProgramHeader]:
        with open(file_path, "rb") as f:
            program = f.read()
        return self.load(cpu, program)
