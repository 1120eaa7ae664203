from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path

import yaml

from .errors import ConfigError
from .model import scale_dimensions

SIZE_KEYS = ("image_max_width", "image_max_height", "image_default_width", "image_default_height")


@dataclass(frozen=True)
class ExportSettings:
    image_max_width: int = 600
    image_max_height: int = 800
    image_default_width: int = 100
    image_default_height: int = 100
    exports_dir: str = "exports"
    asset_root: Path | None = None

    def __post_init__(self) -> None:
        _validate(self)

    def with_overrides(self, **overrides) -> "ExportSettings":
        """Apply non-``None`` overrides; defaults shrink to fit tighter bounds."""
        values = {key: value for key, value in overrides.items() if value is not None}
        if not values:
            return self
        if "image_default_width" not in values and "image_default_height" not in values:
            max_width = values.get("image_max_width", self.image_max_width)
            max_height = values.get("image_max_height", self.image_max_height)
            if _is_size(max_width) and _is_size(max_height):
                values["image_default_width"], values["image_default_height"] = scale_dimensions(
                    self.image_default_width, self.image_default_height, max_width, max_height
                )
        return replace(self, **values)


def load_settings(path: str | Path | None = None) -> ExportSettings:
    """Load settings from a YAML mapping; ``None`` gives the defaults."""
    if path is None:
        return ExportSettings()
    path = Path(path).expanduser()
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path} is not valid YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("YAML root must be a mapping with defined fields.")
    return settings_from_mapping(data)


def settings_from_mapping(data: dict) -> ExportSettings:
    known = {f.name for f in fields(ExportSettings)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")
    values = dict(data)
    if values.get("asset_root") is not None:
        values["asset_root"] = Path(str(values["asset_root"])).expanduser()
    if "exports_dir" in values:
        values["exports_dir"] = str(values["exports_dir"])
    return ExportSettings(**values)


def _is_size(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _validate(settings: ExportSettings) -> None:
    for key in SIZE_KEYS:
        value = getattr(settings, key)
        if not _is_size(value):
            raise ConfigError(f"{key} must be a positive integer, got {value!r}")
    if settings.image_default_width > settings.image_max_width:
        raise ConfigError("image_default_width must not exceed image_max_width")
    if settings.image_default_height > settings.image_max_height:
        raise ConfigError("image_default_height must not exceed image_max_height")
    if not str(settings.exports_dir).strip():
        raise ConfigError("exports_dir must not be empty")
