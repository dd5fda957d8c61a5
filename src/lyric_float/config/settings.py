"""Settings management using TOML configuration."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Self

from lyric_float import __version__
from lyric_float.config.paths import CONFIG_FILE, DEFAULT_MUSIC_DIRS, LYRICS_DIR
from lyric_float.models import ProviderKind

logger = logging.getLogger(__name__)


@dataclass
class LyricsSettings:
    priority: list[str] = field(default_factory=lambda: ["embedded", "local", "network"])
    # Bulk downloads never read embedded tags.
    batch_priority: list[str] = field(default_factory=lambda: ["local", "network"])
    cache_dir: str = ""


@dataclass
class NetworkSettings:
    enabled: bool = True
    base_url: str = "https://lrclib.net"
    timeout: int = 5
    user_agent: str = f"lyric-float/{__version__}"
    plain_fallback: bool = False


@dataclass
class LibrarySettings:
    music_dirs: list[str] = field(default_factory=list)
    recursive: bool = True


@dataclass
class DisplaySettings:
    idle_text: str = "Not playing"
    poll_interval_ms: int = 500


SECTION_MAP: dict[str, type] = {
    "lyrics": LyricsSettings,
    "network": NetworkSettings,
    "library": LibrarySettings,
    "display": DisplaySettings,
}


@dataclass
class Settings:
    lyrics: LyricsSettings = field(default_factory=LyricsSettings)
    network: NetworkSettings = field(default_factory=NetworkSettings)
    library: LibrarySettings = field(default_factory=LibrarySettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    @classmethod
    def load(cls, path: Path = CONFIG_FILE) -> Self:
        settings = cls()

        if not path.exists():
            settings._create_default(path)
            return settings

        with open(path, "rb") as f:
            data = tomllib.load(f)

        for section_name in SECTION_MAP:
            if section_name in data:
                section_data = data[section_name]
                section_instance = getattr(settings, section_name)
                for f_info in fields(section_instance):
                    if f_info.name in section_data:
                        setattr(section_instance, f_info.name, section_data[f_info.name])

        return settings

    def save(self, path: Path = CONFIG_FILE) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        lines: list[str] = []

        for section_name in SECTION_MAP:
            section = getattr(self, section_name)
            lines.append(f"[{section_name}]")
            for f_info in fields(section):
                value = getattr(section, f_info.name)
                lines.append(f"{f_info.name} = {_format_toml_value(value)}")
            lines.append("")

        path.write_text("\n".join(lines), encoding="utf-8")

    def _create_default(self, path: Path) -> None:
        try:
            self.save(path)
        except OSError:
            logger.warning("Could not write default config to %s", path, exc_info=True)

    @property
    def lyrics_dir(self) -> Path:
        if self.lyrics.cache_dir:
            return Path(self.lyrics.cache_dir).expanduser()
        return LYRICS_DIR

    @property
    def music_dirs(self) -> list[Path]:
        if self.library.music_dirs:
            return [Path(d).expanduser() for d in self.library.music_dirs]
        return list(DEFAULT_MUSIC_DIRS)

    def lyric_priority(self) -> list[ProviderKind]:
        """The configured live-playback source order, network dropped if disabled."""
        return self._kinds(self.lyrics.priority)

    def batch_priority(self) -> list[ProviderKind]:
        kinds = self._kinds(self.lyrics.batch_priority)
        return [k for k in kinds if k is not ProviderKind.EMBEDDED]

    def _kinds(self, names: list[str]) -> list[ProviderKind]:
        kinds: list[ProviderKind] = []
        for name in names:
            try:
                kind = ProviderKind(str(name).strip().lower())
            except ValueError:
                logger.warning("Ignoring unknown lyric source %r in config", name)
                continue
            if kind is ProviderKind.NETWORK and not self.network.enabled:
                continue
            if kind not in kinds:
                kinds.append(kind)
        return kinds


def _format_toml_value(value: object) -> str:
    match value:
        case bool():
            return "true" if value else "false"
        case int():
            return str(value)
        case str():
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            return f'"{escaped}"'
        case list():
            items = ", ".join(_format_toml_value(v) for v in value)
            return f"[{items}]"
        case _:
            return repr(value)


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
