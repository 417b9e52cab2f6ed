from pathlib import Path

import pytest

from farm_builder import sample_farm


@pytest.fixture()
def sample_bytes() -> bytes:
    return sample_farm("<")


@pytest.fixture()
def farm_file(tmp_path: Path, sample_bytes: bytes) -> Path:
    """A sample farm.dat inside a terrain database layout (<db>/otf/farm.dat)."""
    path = tmp_path / "db" / "otf" / "farm.dat"
    path.parent.mkdir(parents=True)
    path.write_bytes(sample_bytes)
    return path


@pytest.fixture()
def isolated_config(tmp_path: Path, monkeypatch):
    """Point the TOML config at a temp file so tests never touch the user's config."""
    config_path = tmp_path / "config" / "config.toml"
    monkeypatch.setattr("farmdecode.profiles.get_config_path", lambda: config_path)
    return config_path
