from dataclasses import dataclass, field
from typing import List, Optional

@dataclass
class MachineConfig:
    seed: Optional[int] = None  # None: OSのエントロピーで初期化

@dataclass
class ProgramConfig:
    path: Optional[str] = None

@dataclass
class HostConfig:
    cycles_per_frame: int = 10
    frame_rate: int = 60  # タイマーの減算回数/秒
    max_frames: Optional[int] = None

@dataclass
class SystemConfig:
    machine: MachineConfig = field(default_factory=MachineConfig)
    program: ProgramConfig = field(default_factory=ProgramConfig)
    host: HostConfig = field(default_factory=HostConfig)
    trace: bool = False
    keys: List[int] = field(default_factory=list)  # 起動時から押下しておくキー
