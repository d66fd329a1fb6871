"""Tests for settings loading and validation."""

import os

import pytest

from sparse_covariates.config import ENV_PREFIX, TidySettings, load_config
from sparse_covariates.errors import ConfigurationError

ENV_NAMES = [
    "MIN_FRACTION",
    "NORMALIZE",
    "REMOVE_REDUNDANCY",
    "VALIDATE_SCHEMA",
    "NEAR_MISS_FRACTION",
    "BATCH_SIZE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from the developer's environment and any .env file."""
    for name in ENV_NAMES:
        monkeypatch.delenv(ENV_PREFIX + name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestLoadConfig:
    def test_defaults(self):
        config = load_config()
        assert config == TidySettings()
        assert config.min_fraction == 0.001
        assert config.batch_size == 500

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("SPARSE_COVARIATES_MIN_FRACTION", "0.01")
        monkeypatch.setenv("SPARSE_COVARIATES_NORMALIZE", "false")
        monkeypatch.setenv("SPARSE_COVARIATES_BATCH_SIZE", "50")
        config = load_config()
        assert config.min_fraction == 0.01
        assert config.normalize is False
        assert config.batch_size == 50

    def test_dotenv_file_in_working_directory(self, tmp_path):
        (tmp_path / ".env").write_text("SPARSE_COVARIATES_REMOVE_REDUNDANCY=no\n")
        try:
            assert load_config().remove_redundancy is False
        finally:
            os.environ.pop("SPARSE_COVARIATES_REMOVE_REDUNDANCY", None)

    def test_invalid_boolean(self, monkeypatch):
        monkeypatch.setenv("SPARSE_COVARIATES_NORMALIZE", "maybe")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_invalid_number(self, monkeypatch):
        monkeypatch.setenv("SPARSE_COVARIATES_BATCH_SIZE", "lots")
        with pytest.raises(ConfigurationError):
            load_config()

    def test_out_of_range_fraction(self, monkeypatch):
        monkeypatch.setenv("SPARSE_COVARIATES_MIN_FRACTION", "2")
        with pytest.raises(ConfigurationError):
            load_config()


class TestTidySettings:
    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_fraction": 0.0},
            {"min_fraction": 1.0},
            {"near_miss_fraction": 0.0},
            {"near_miss_fraction": 1.5},
            {"batch_size": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ConfigurationError):
            TidySettings(**kwargs).validate()

    def test_validate_returns_settings(self):
        settings = TidySettings(min_fraction=0.05)
        assert settings.validate() is settings

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            TidySettings(batch_size=-1).validate()
