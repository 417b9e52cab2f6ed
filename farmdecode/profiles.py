"""Named terrain databases for the farm CLI, kept in a TOML config file.

A profile remembers where a terrain database lives and which FARM file
inside it to decode:

    default_profile = "west"
    log_level = "INFO"

    [profiles.west]
    database = '/data/terrain/west'
    farm = '/data/terrain/west/otf/farm.dat'

``database`` is optional (a profile may point straight at a farm.dat);
``farm`` may be left out when ``database`` is given.
"""
from __future__ import annotations

import json
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click

from farmdecode.config import derive_farm_path, farm_file_in
from farmdecode.farm.constants import FARM_FILE_LABEL, FARM_SUBDIR

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

_PROFILE_NAME_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


@dataclass
class Profile:
    name: str
    farm: Path
    database: Path | None = None

    @classmethod
    def from_target(cls, name: str, target: Path) -> "Profile":
        """Build a profile from a terrain database directory or a farm.dat path."""
        if target.is_dir():
            return cls(name=name, farm=farm_file_in(target), database=target)
        return cls(name=name, farm=target)

    def problem(self) -> str | None:
        """Why this profile cannot be decoded, or None if its FARM file is there."""
        if self.database is not None and not self.database.is_dir():
            return f"terrain database not found: {self.database}"
        if not self.farm.is_file():
            return f"FARM file not found: {self.farm}"
        return None

    def describe(self) -> str:
        if self.database is None:
            return str(self.farm)
        if self.farm == farm_file_in(self.database):
            return f"{self.database} (terrain database)"
        return f"{self.database} -> {self.farm}"


@dataclass
class Config:
    default_profile: str | None = None
    log_level: str | None = None
    profiles: dict[str, Profile] = field(default_factory=dict)

    def select(self, name: str | None) -> Profile:
        """The named profile, or the default one. Raises click.UsageError."""
        name = name or self.default_profile
        if name is None:
            raise click.UsageError(
                "No FARM file given and no default profile configured.\n"
                "Pass --farm <farm.dat or terrain database>, or run 'farm init'."
            )
        try:
            return self.profiles[name]
        except KeyError:
            available = ", ".join(sorted(self.profiles)) or "(none)"
            raise click.UsageError(
                f"Unknown profile '{name}'. Available profiles: {available}"
            ) from None


def get_config_path() -> Path:
    return Path(click.get_app_dir("farmdecode")) / "config.toml"


def _profile_from_table(name: str, table: dict[str, Any], source: Path) -> Profile:
    database = Path(table["database"]) if "database" in table else None
    if "farm" in table:
        farm = Path(table["farm"])
    elif database is not None:
        farm = farm_file_in(database)
    else:
        raise click.UsageError(
            f"Profile '{name}' in {source} needs a 'database' or a 'farm' path"
        )
    return Profile(name=name, farm=farm, database=database)


def load_config() -> Config:
    """Read the TOML config; a missing file is an empty config."""
    path = get_config_path()
    if not path.is_file():
        return Config()

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.UsageError(f"Cannot parse config file {path}: {exc}") from exc

    profiles = {
        name: _profile_from_table(name, table, path)
        for name, table in data.get("profiles", {}).items()
    }
    return Config(
        default_profile=data.get("default_profile"),
        log_level=data.get("log_level"),
        profiles=profiles,
    )


def _toml_string(value: object) -> str:
    text = str(value)
    if "'" not in text and "\n" not in text:
        # Literal string, so Windows backslashes are written as-is
        return f"'{text}'"
    return json.dumps(text, ensure_ascii=False)


def save_config(config: Config) -> Path:
    """Write the config file and return its path."""
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    lines = [
        f"{key} = {_toml_string(value)}"
        for key, value in (("default_profile", config.default_profile),
                           ("log_level", config.log_level))
        if value
    ]
    for name, profile in config.profiles.items():
        lines += ["", f"[profiles.{name}]"]
        if profile.database is not None:
            lines.append(f"database = {_toml_string(profile.database)}")
        lines.append(f"farm = {_toml_string(profile.farm)}")

    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def validate_profile_name(name: str) -> bool:
    """Profile names become TOML bare keys."""
    return bool(_PROFILE_NAME_RE.match(name))


def resolve_farm(farm: Path | None, profile_name: str | None) -> Path:
    """Return the FARM file to decode: --farm, else --profile, else the default profile.

    --farm may name the farm.dat itself or a terrain database directory.
    """
    if farm is not None:
        if not farm.exists():
            raise click.UsageError(f"FARM file or terrain database not found: {farm}")
        resolved = derive_farm_path(farm)
        if not resolved.is_file():
            raise click.UsageError(
                f"{farm} is a directory without {FARM_SUBDIR}/{FARM_FILE_LABEL}"
            )
        return resolved

    profile = load_config().select(profile_name)
    problem = profile.problem()
    if problem is not None:
        raise click.UsageError(
            f"Profile '{profile.name}': {problem}\nRun 'farm init' to update it."
        )
    return profile.farm
