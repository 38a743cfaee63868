import logging
import os
from typing import Any, Dict, Optional

import yaml

from .models import CpuInitialState, SimulatorConfig

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {"clock_interval_ms", "register_width", "micro_stepping", "history_limit", "program", "initial_state"}

class ConfigLoader:
    def load_from_file(self, path: str) -> SimulatorConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
        config = self._parse_config(data)
        # プログラムのパスは設定ファイルからの相対パスとして解決する
        if config.program and not os.path.isabs(config.program):
            config.program = os.path.join(os.path.dirname(os.path.abspath(path)), config.program)
        return config

    def load_from_string(self, text: str) -> SimulatorConfig:
        return self._parse_config(yaml.safe_load(text) or {})

    def _parse_config(self, data: Dict[str, Any]) -> SimulatorConfig:
        if not isinstance(data, dict):
            raise ValueError(f"Config root must be a mapping, got {type(data).__name__}")

        for key in data:
            if key not in _KNOWN_KEYS:
                logger.warning("Ignoring unknown config key '%s'", key)

        # Parse Initial State
        initial_state_data = data.get("initial_state") or {}
        registers = {
            str(name).upper(): self._parse_int(value)
            for name, value in (initial_state_data.get("registers") or {}).items()
        }
        data_memory = {
            self._parse_int(address): self._parse_int(value)
            for address, value in (initial_state_data.get("data_memory") or {}).items()
        }
        initial_state = CpuInitialState(
            registers=registers,
            data_memory=data_memory,
            pc=self._parse_int(initial_state_data.get("pc", 0)),
        )

        return SimulatorConfig(
            clock_interval_ms=self._parse_int(data.get("clock_interval_ms", 1000)),
            register_width=self._parse_optional_int(data.get("register_width")),
            micro_stepping=bool(data.get("micro_stepping", False)),
            history_limit=self._parse_int(data.get("history_limit", 10000)),
            program=data.get("program"),
            initial_state=initial_state,
        )

    def _parse_optional_int(self, value: Any) -> Optional[int]:
        if value is None:
            return None
        return self._parse_int(value)

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ValueError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            value = value.strip()
            if value.lower().startswith(("0x", "-0x")):
                return int(value, 16)
            return int(value)
        raise ValueError(f"Invalid integer format: {value}")
