from __future__ import annotations

import tomllib
from pathlib import Path

import msgspec

from .errors import ConfigError

LOCAL_CONFIG_NAME = Path(".toolwire") / "toolwire.toml"
HOME_CONFIG_PATH = Path.home() / ".toolwire" / "toolwire.toml"


class EncodingSettings(msgspec.Struct, forbid_unknown_fields=True):
    pretty_print: bool = False
    indent: int = 2


class DecodingSettings(msgspec.Struct, forbid_unknown_fields=True):
    # Default policy for record schemas built by `schema_for`
    forbid_unknown_fields: bool = False


class LoggingSettings(msgspec.Struct, forbid_unknown_fields=True):
    level: str = "INFO"
    json: bool = False


class CodecSettings(msgspec.Struct, forbid_unknown_fields=True):
    encoding: EncodingSettings = msgspec.field(default_factory=EncodingSettings)
    decoding: DecodingSettings = msgspec.field(default_factory=DecodingSettings)
    logging: LoggingSettings = msgspec.field(default_factory=LoggingSettings)


def _config_candidates() -> list[Path]:
    candidates = [Path.cwd() / LOCAL_CONFIG_NAME, HOME_CONFIG_PATH]
    if candidates[0] == candidates[1]:
        return [candidates[0]]
    return candidates


def _read_config(cfg_path: Path) -> dict:
    try:
        raw = cfg_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    except OSError as e:
        raise ConfigError(f"Failed to read config file {cfg_path}: {e}") from e
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed TOML in {cfg_path}: {e}") from None


def parse_settings(config: dict, cfg_path: Path | None = None) -> CodecSettings:
    source = cfg_path if cfg_path is not None else "settings"
    try:
        settings = msgspec.convert(config, CodecSettings)
    except msgspec.ValidationError as e:
        raise ConfigError(f"Invalid config in {source}: {e}") from None
    if settings.encoding.indent < 0:
        raise ConfigError(
            f"Invalid config in {source}: `encoding.indent` must not be negative."
        )
    return settings


def load_settings(
    path: str | Path | None = None,
) -> tuple[CodecSettings, Path | None]:
    if path:
        cfg_path = Path(path).expanduser()
        return parse_settings(_read_config(cfg_path), cfg_path), cfg_path

    for candidate in _config_candidates():
        if candidate.is_file():
            return parse_settings(_read_config(candidate), candidate), candidate

    return CodecSettings(), None
