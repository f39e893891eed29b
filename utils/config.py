# utils/config.py
"""YAML overrides layered on the frozen settings dataclasses."""

from __future__ import annotations

from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Dict, TypeVar, cast

from omegaconf import OmegaConf

from utils.logger import Logger
from utils.settings import (
    CaptureCfg,
    LoggingCfg,
    ProjectionCfg,
    TransportCfg,
    capture as CAPCFG,
    logging as LOGCFG,
    paths,
    projection as PROJCFG,
    transport as NETCFG,
)

DEFAULT_CONFIG_PATH = paths.CONF_DIR / "app.yaml"

SettingsT = TypeVar("SettingsT")


def _coerce(default: Any, value: Any) -> Any:
    """Match YAML scalars to the type of the dataclass default."""
    if isinstance(default, Path) and isinstance(value, str):
        return Path(value)
    if isinstance(default, float) and isinstance(value, int) and not isinstance(
        value, bool
    ):
        return float(value)
    return value


class Config:
    """
    Process-wide configuration read from ``conf/app.yaml``.

    Each YAML section overrides one settings dataclass; keys the dataclass
    does not define are ignored with a warning. Without a config file the
    dataclass defaults are used unchanged.
    """

    _data: Dict[str, Any] | None = None
    _logger = Logger.get_logger("utils.config")

    @classmethod
    def load(
        cls, filename: Path | str = DEFAULT_CONFIG_PATH, force_reload: bool = False
    ) -> None:
        """Load configuration from ``filename`` unless already loaded."""

        if cls._data is not None and not force_reload:
            return

        path = Path(filename)
        if not path.is_file():
            cls._logger.warning(f"Config {path} not found, using defaults")
            cls._data = {}
            return

        try:
            data = OmegaConf.to_container(OmegaConf.load(path), resolve=True)
        except Exception as e:
            cls._logger.error(f"Failed to load config: {e}")
            raise
        cls._data = cast(Dict[str, Any], data) if isinstance(data, dict) else {}
        cls._logger.info(f"Config loaded from {path}")

        log_cfg = cls.logging_cfg()
        Logger.configure(
            level=log_cfg.level,
            log_dir=log_cfg.log_dir,
            json_format=log_cfg.json,
        )

    @classmethod
    def section(cls, name: str, defaults: SettingsT) -> SettingsT:
        """Return ``defaults`` with the keys of YAML section ``name`` applied."""
        if cls._data is None:
            cls.load()
        data = cls._data.get(name) or {}
        if not isinstance(data, dict):
            cls._logger.warning(f"Section {name} is not a mapping, using defaults")
            return defaults

        overrides = {}
        for f in fields(defaults):
            if f.name in data:
                overrides[f.name] = _coerce(getattr(defaults, f.name), data[f.name])
        for key in sorted(set(data) - set(overrides)):
            cls._logger.warning(f"Unknown key {name}.{key} ignored")
        return replace(defaults, **overrides)

    @classmethod
    def logging_cfg(cls) -> LoggingCfg:
        return cls.section("logging", LOGCFG)

    @classmethod
    def transport_cfg(cls) -> TransportCfg:
        return cls.section("transport", NETCFG)

    @classmethod
    def capture_cfg(cls) -> CaptureCfg:
        return cls.section("capture", CAPCFG)

    @classmethod
    def projection_cfg(cls) -> ProjectionCfg:
        return cls.section("projection", PROJCFG)
