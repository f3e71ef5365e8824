"""
Runtime configuration tests.
Tests for core/config/runtime.py and txinclusion_cli/config.py
"""
import pytest
import yaml

from core.config.runtime import RuntimeConfig
from txinclusion_cli.config import get_default_config_template, load_config


class TestRuntimeConfigDefaults:
    def test_defaults(self):
        config = RuntimeConfig()
        assert config.rpc.url == "https://ethereum-rpc.publicnode.com"
        assert config.prover.mode == "execute"
        assert config.pipeline.strict_root_check is False
        assert config.log_level == "INFO"

    def test_invalid_mode(self):
        with pytest.raises(ValueError, match="Prover mode"):
            RuntimeConfig.from_dict({"prover": {"mode": "fast"}})


class TestRuntimeConfigSources:
    """Dict, YAML and environment loading."""

    def test_from_dict_partial(self):
        config = RuntimeConfig.from_dict({
            "rpc": {"url": "http://localhost:8545"},
            "pipeline": {"strict_root_check": True},
            "log_level": "debug",
        })
        assert config.rpc.url == "http://localhost:8545"
        assert config.pipeline.strict_root_check is True
        assert config.pipeline.output_dir == "fixtures"
        assert config.log_level == "DEBUG"

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"prover": {"mode": "prove"}, "http": {"timeout": 5}}))

        config = RuntimeConfig.from_yaml(path)

        assert config.prover.mode == "prove"
        assert config.http.timeout == 5

    def test_from_yaml_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            RuntimeConfig.from_yaml(tmp_path / "missing.yaml")

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert RuntimeConfig.from_yaml(path).to_dict() == RuntimeConfig().to_dict()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TXINCLUSION_RPC_URL", "http://node:8545")
        monkeypatch.setenv("TXINCLUSION_PROVER_MODE", "PROVE")
        monkeypatch.setenv("TXINCLUSION_STRICT_ROOT_CHECK", "yes")
        monkeypatch.setenv("TXINCLUSION_HTTP_TIMEOUT", "2.5")
        monkeypatch.setenv("TXINCLUSION_LOG_LEVEL", "warning")

        config = RuntimeConfig.from_env()

        assert config.rpc.url == "http://node:8545"
        assert config.prover.mode == "prove"
        assert config.pipeline.strict_root_check is True
        assert config.http.timeout == 2.5
        assert config.log_level == "WARNING"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "txinclusion.yaml"
        path.write_text(yaml.safe_dump({"rpc": {"url": "http://file"}, "log_level": "ERROR"}))
        monkeypatch.setenv("TXINCLUSION_RPC_URL", "http://env")

        config = load_config(path)

        assert config.rpc.url == "http://env"
        assert config.log_level == "ERROR"

    def test_env_override_validates_mode(self, monkeypatch):
        monkeypatch.setenv("TXINCLUSION_PROVER_MODE", "turbo")
        with pytest.raises(ValueError):
            RuntimeConfig().with_env_overrides()

    def test_no_overrides_returns_same(self):
        config = RuntimeConfig()
        assert config.with_env_overrides() is config


class TestConfigTemplate:
    def test_template_loads(self, tmp_path):
        path = tmp_path / "txinclusion.yaml"
        path.write_text(get_default_config_template())

        config = RuntimeConfig.from_yaml(path)

        assert config.prover.mode == "execute"
        assert config.pipeline.strict_root_check is False

    def test_to_dict_round_trip(self):
        config = RuntimeConfig.from_dict({"proxy": "http://proxy:3128", "extra": {"k": "v"}})
        assert RuntimeConfig.from_dict(config.to_dict()).to_dict() == config.to_dict()

    def test_load_config_without_file(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("HOME", str(tmp_path))
        assert load_config().rpc.url == RuntimeConfig().rpc.url
