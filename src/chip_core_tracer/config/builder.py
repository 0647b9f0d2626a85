import logging
from typing import Optional, Tuple

from chip_core_tracer.transport.bus import Bus, RAM
from chip_core_tracer.arch.qch.cpu import QchCpu
from chip_core_tracer.arch.qch.state import MEMORY_SIZE
from chip_core_tracer.loader.loader import ProgramLoader
from .models import SystemConfig

logger = logging.getLogger(__name__)

# @intent:responsibility システム構成（Config）に基づいて、Bus、RAM、CPUを生成・接続し、プログラムをロードします。
class SystemBuilder:
    def build_system(self, config: SystemConfig, program_path: Optional[str] = None) -> Tuple[QchCpu, Bus]:
        """
        program_path が指定された場合は、Configのプログラムパスより優先されます。
        """
        bus = Bus()
        bus.register_device(0x000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))

        cpu = QchCpu(bus, seed=config.machine.seed)
        if config.trace:
            cpu.trace_enabled = True

        path = program_path or config.program.path
        if path:
            ProgramLoader().load_file(cpu, path)
        else:
            logger.info("No program configured; memory above the font table is empty.")

        # 初期キー状態の適用
        for key in config.keys:
            cpu.set_key(key, True)

        return cpu, bus
