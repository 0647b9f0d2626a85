# src/chip_core_tracer/arch/qch/glyphs.py
"""
16進数字のフォントスプライトテーブル。

各グリフは 5 行 × 8 ピクセル（上位4ビットのみ使用）で、予約済みの低位メモリに配置されます。
"""

FONT_BASE = 0x50
GLYPH_HEIGHT = 5

# @intent:constant グリフを構成する4種類の行パターン。
ROW_FULL = 0xF0   # ****----
ROW_SIDES = 0x90  # *--*----
ROW_RIGHT = 0x10  # ---*----
ROW_LEFT = 0x80   # *-------

_F, _S, _R, _L = ROW_FULL, ROW_SIDES, ROW_RIGHT, ROW_LEFT

# @intent:constant 0..F の各グリフの行構成。
GLYPH_ROWS = (
    (_F, _S, _S, _S, _F),  # 0
    (_R, _R, _R, _R, _R),  # 1
    (_F, _R, _F, _L, _F),  # 2
    (_F, _R, _F, _R, _F),  # 3
    (_S, _S, _F, _R, _R),  # 4
    (_F, _L, _F, _R, _F),  # 5
    (_F, _L, _F, _S, _F),  # 6
    (_F, _R, _R, _R, _R),  # 7
    (_F, _S, _F, _S, _F),  # 8
    (_F, _S, _F, _R, _R),  # 9
    (_F, _S, _F, _S, _S),  # A
    (_L, _L, _F, _S, _F),  # B
    (_F, _L, _L, _L, _F),  # C
    (_R, _R, _F, _S, _F),  # D
    (_F, _S, _F, _L, _F),  # E
    (_F, _L, _F, _L, _L),  # F
)

FONT_SPRITES = bytes(row for glyph in GLYPH_ROWS for row in glyph)

# @intent:utility_function 数字 digit（下位ニブル）のグリフの先頭アドレスを返します。
def glyph_address(digit: int) -> int:
    return FONT_BASE + (digit & 0x0F) * GLYPH_HEIGHT
