# src/chip_core_tracer/arch/qch/instructions/__init__.py
"""
QCH命令セット実装パッケージ。

デコーダ（命令語 → DecodedInstruction）とディスパッチャ（テンプレート → 実行関数）を提供します。
"""
from chip_core_tracer.transport.bus import Bus
from chip_core_tracer.core.snapshot import DecodedInstruction, InstructionTemplate
from chip_core_tracer.arch.qch.state import QchCpuState
from .base import InstructionKind, Executor
from .maps import INSTRUCTION_TABLE, UNKNOWN_TEMPLATE, EXECUTE_MAP

# @intent:responsibility 16bit命令語をテンプレート表と照合し、DecodedInstructionを返します。
# @intent:post-condition どの16bit入力に対しても失敗せず、一致しない場合は UNKNOWN を返します。
def decode_word(word: int, address: int = 0) -> DecodedInstruction:
    """
    テンプレートを固定の優先順で走査し、最初に word & mask == pattern となったものを採用します。
    """
    word &= 0xFFFF
    for template in INSTRUCTION_TABLE:
        if template.matches(word):
            return DecodedInstruction(word=word, template=template, address=address)
    return DecodedInstruction(word=word, template=UNKNOWN_TEMPLATE, address=address)

# @intent:responsibility メモリの pc, pc+1 からビッグエンディアンで命令語を読み、デコードします。
def decode_instruction(bus: Bus, pc: int) -> DecodedInstruction:
    word = (bus.read(pc) << 8) | bus.read(pc + 1)
    return decode_word(word, pc)

# @intent:responsibility テンプレートに対応する実行関数を返します。
def dispatch(template: InstructionTemplate) -> Executor:
    return EXECUTE_MAP[template.kind]

# @intent:responsibility デコードされた命令を実行し、マシンの状態を変更します。
def execute_instruction(instruction: DecodedInstruction, state: QchCpuState, bus: Bus) -> None:
    executor = dispatch(instruction.template)
    executor(state, bus, instruction)
