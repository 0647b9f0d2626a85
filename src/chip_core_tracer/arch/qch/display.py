# src/chip_core_tracer/arch/qch/display.py
"""
モノクロのピクセルバッファ。

描画（レンダリング）そのものは行わず、バッファの内容と XOR 描画の意味論のみを扱います。
"""
from typing import List

DEFAULT_WIDTH = 64
DEFAULT_HEIGHT = 32
MAX_DIMENSION = 0xFF

# @intent:responsibility width×height セルのモノクロピクセルバッファを保持します。
class FrameBuffer:
    """
    1セル1バイト（0 または 1）で表現したピクセルバッファ。
    ジオメトリはプログラムヘッダによって変更されることがあります。
    """
    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT):
        self._width = 0
        self._height = 0
        self._cells = bytearray()
        self.resize(width, height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    # @intent:responsibility バッファを再確保し、全セルをクリアします。
    # @intent:pre-condition width, height は 1..255 の範囲である必要があります。
    def resize(self, width: int, height: int) -> None:
        if not (1 <= width <= MAX_DIMENSION and 1 <= height <= MAX_DIMENSION):
            raise ValueError(f"Invalid display geometry {width}x{height}.")
        self._width = width
        self._height = height
        self._cells = bytearray(width * height)

    def clear(self) -> None:
        self._cells[:] = bytes(len(self._cells))

    def _index(self, x: int, y: int) -> int:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise IndexError(f"Pixel ({x}, {y}) out of bounds for {self._width}x{self._height} display.")
        return y * self._width + x

    def get_pixel(self, x: int, y: int) -> int:
        return self._cells[self._index(x, y)]

    # @intent:responsibility ピクセルを反転し、点灯→消灯の遷移が起きたかを返します。
    def toggle(self, x: int, y: int) -> bool:
        index = self._index(x, y)
        was_set = self._cells[index] == 1
        self._cells[index] ^= 1
        return was_set

    # @intent:responsibility 行ごとのピクセル値を返します（インスペクタ用）。
    def rows(self) -> List[List[int]]:
        w = self._width
        return [list(self._cells[y * w:(y + 1) * w]) for y in range(self._height)]

    def to_bytes(self) -> bytes:
        return bytes(self._cells)

    def lit_count(self) -> int:
        return sum(self._cells)
