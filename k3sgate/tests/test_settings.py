import pytest
import yaml

from k3sgate.modules.gate.errors import ConfigError
from k3sgate.modules.gate.settings import GateSettings, profiles


def test_defaults():
    settings = GateSettings()
    assert settings.max_attempts == 20
    assert settings.base_delay == 3
    assert settings.max_delay == 30
    assert settings.timeout == 300
    assert settings.grace == 10
    assert settings.max_workers is None


@pytest.mark.parametrize("profile,expected", [
    ("ssh", (20, 3, 30, 300, 10)),
    ("cloud-init", (30, 5, 60, 600, 30)),
    ("k3s-api", (40, 5, 30, 600, 10)),
])
def test_profile_defaults(profile, expected):
    s = GateSettings.load(profile, environ={})
    assert (s.max_attempts, s.base_delay, s.max_delay, s.timeout, s.probe_timeout) == expected


def test_profiles_listed():
    assert profiles() == ["ssh", "cloud-init", "k3s-api"]


def test_environment_overrides_profile():
    s = GateSettings.load("ssh", environ={"MAX_ATTEMPTS": "7", "BASE_DELAY": "1.5", "SSH_TIMEOUT": "4"})
    assert s.max_attempts == 7
    assert s.base_delay == 1.5
    assert s.probe_timeout == 4


def test_probe_timeout_variable_is_per_profile():
    environ = {"SSH_TIMEOUT": "4", "CLOUD_INIT_TIMEOUT": "45"}
    assert GateSettings.load("cloud-init", environ=environ).probe_timeout == 45
    assert GateSettings.load("k3s-api", environ=environ).probe_timeout == 10


def test_empty_environment_value_is_ignored():
    assert GateSettings.load("ssh", environ={"MAX_ATTEMPTS": ""}).max_attempts == 20


def test_non_numeric_environment_value():
    with pytest.raises(ConfigError, match="MAX_ATTEMPTS"):
        GateSettings.load("ssh", environ={"MAX_ATTEMPTS": "lots"})


def test_config_file_between_defaults_and_environment(tmp_path):
    path = tmp_path / "k3sgate.yaml"
    path.write_text(yaml.safe_dump({
        "defaults": {"grace": 2},
        "profiles": {"ssh": {"max_attempts": 5, "timeout": 60}},
    }))

    s = GateSettings.load("ssh", config_path=path, environ={"TIMEOUT": "90"})
    assert s.max_attempts == 5
    assert s.grace == 2
    assert s.timeout == 90
    assert s.base_delay == 3


def test_missing_explicit_config_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        GateSettings.load("ssh", config_path=tmp_path / "nope.yaml", environ={})


def test_config_file_must_be_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        GateSettings.load("ssh", config_path=path, environ={})


@pytest.mark.parametrize("content, key", [
    ("profiles:\n  - ssh\n  - k3s-api\n", "'profiles'"),
    ("profiles:\n  ssh: 5\n", "'profiles.ssh'"),
    ("defaults: fast\n", "'defaults'"),
])
def test_config_sections_must_be_mappings(tmp_path, content, key):
    path = tmp_path / "k3sgate.yaml"
    path.write_text(content)
    with pytest.raises(ConfigError, match=key):
        GateSettings.load("ssh", config_path=path, environ={})


def test_empty_profile_section_uses_defaults(tmp_path):
    path = tmp_path / "k3sgate.yaml"
    path.write_text("defaults:\n  grace: 4\nprofiles:\n  ssh:\n")
    assert GateSettings.load("ssh", config_path=path, environ={}).grace == 4


@pytest.mark.parametrize("values", [
    {"max_attempts": 0},
    {"base_delay": -1},
    {"timeout": 0},
    {"probe_timeout": -5},
    {"max_workers": 0},
    {"base_delay": 10, "max_delay": 5},
])
def test_invalid_values(values):
    with pytest.raises(ConfigError):
        GateSettings.build(**values)


def test_with_overrides_skips_none():
    s = GateSettings().with_overrides(max_attempts=3, base_delay=None)
    assert s.max_attempts == 3
    assert s.base_delay == 3


def test_with_overrides_validates():
    with pytest.raises(ConfigError):
        GateSettings().with_overrides(max_delay=1)
