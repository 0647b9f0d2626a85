import yaml
from typing import Dict, Any, Optional

from chip_core_tracer.errors import ConfigError
from chip_core_tracer.arch.qch.state import KEY_COUNT
from .models import SystemConfig, MachineConfig, ProgramConfig, HostConfig

class ConfigLoader:
    def load_from_file(self, path: str) -> SystemConfig:
        try:
            with open(path, 'r') as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed YAML in {path}: {e}") from e
        return self.parse(data)

    def load_from_string(self, text: str) -> SystemConfig:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Malformed YAML: {e}") from e
        return self.parse(data)

    def parse(self, data: Any) -> SystemConfig:
        if data is None:
            return SystemConfig()
        if not isinstance(data, dict):
            raise ConfigError("Configuration root must be a mapping.")

        machine_data = self._section(data, "machine")
        machine = MachineConfig(seed=self._parse_optional_int(machine_data.get("seed")))

        program_data = self._section(data, "program")
        path = program_data.get("path")
        program = ProgramConfig(path=str(path) if path is not None else None)

        host_data = self._section(data, "host")
        host = HostConfig(
            cycles_per_frame=self._parse_positive(host_data.get("cycles_per_frame", 10), "host.cycles_per_frame"),
            frame_rate=self._parse_positive(host_data.get("frame_rate", 60), "host.frame_rate"),
            max_frames=self._parse_optional_int(host_data.get("max_frames")),
        )

        keys_data = data.get("keys") or []
        if not isinstance(keys_data, list):
            raise ConfigError("'keys' must be a list.")
        keys = []
        for key in keys_data:
            index = self._parse_int(key)
            if not 0 <= index < KEY_COUNT:
                raise ConfigError(f"Key index {index} is out of range (0-{KEY_COUNT - 1}).")
            keys.append(index)

        return SystemConfig(
            machine=machine,
            program=program,
            host=host,
            trace=self._parse_bool(data.get("trace"), "trace"),
            keys=keys,
        )

    def _section(self, data: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"Section '{name}' must be a mapping.")
        return section

    def _parse_bool(self, value: Any, name: str) -> bool:
        if value is None:
            return False
        if not isinstance(value, bool):
            raise ConfigError(f"'{name}' must be true or false, got {value!r}.")
        return value

    def _parse_positive(self, value: Any, name: str) -> int:
        parsed = self._parse_int(value)
        if parsed <= 0:
            raise ConfigError(f"'{name}' must be positive, got {parsed}.")
        return parsed

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format: {value}")
