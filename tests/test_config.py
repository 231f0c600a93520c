import pytest

from fieldwarden.core import AccessControlConfig, ConfigurationError, get_config, reset_config
from fieldwarden.schema import OperationMode, VisibilityScope


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("SCOPE", "MODE", "AUDIT_ENABLED", "LOG_LEVEL"):
        monkeypatch.delenv(f"FIELDWARDEN_{name}", raising=False)
    reset_config()
    yield
    reset_config()


def test_defaults() -> None:
    config = AccessControlConfig()

    assert config.scope == VisibilityScope.RESTRICTED
    assert config.mode == OperationMode.ALL_OR_NONE
    assert config.audit_enabled is True
    assert config.log_level == "INFO"


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("FIELDWARDEN_SCOPE", "INHERITED")
    monkeypatch.setenv("FIELDWARDEN_MODE", "best_effort")

    config = AccessControlConfig()

    assert config.scope == VisibilityScope.INHERITED
    assert config.mode == OperationMode.BEST_EFFORT


def test_load_from_yaml(tmp_path) -> None:
    path = tmp_path / "fieldwarden.yaml"
    path.write_text("scope: unrestricted\nmode: best_effort\naudit_max_records: 50\n")

    config = AccessControlConfig.load_from_file(path)

    assert config.scope == VisibilityScope.UNRESTRICTED
    assert config.audit_max_records == 50


def test_saved_file_loads_back(tmp_path) -> None:
    path = tmp_path / "conf" / "fieldwarden.yaml"
    AccessControlConfig(scope="inherited", log_level="debug").save_to_file(path)

    config = AccessControlConfig.load_from_file(path)

    assert config.scope == VisibilityScope.INHERITED
    assert config.log_level == "DEBUG"


def test_missing_file(tmp_path) -> None:
    with pytest.raises(ConfigurationError):
        AccessControlConfig.load_from_file(tmp_path / "nope.yaml")


def test_malformed_yaml(tmp_path) -> None:
    path = tmp_path / "fieldwarden.yaml"
    path.write_text("scope: [unclosed\n")

    with pytest.raises(ConfigurationError):
        AccessControlConfig.load_from_file(path)


@pytest.mark.parametrize(
    "values",
    [{"scope": "public"}, {"mode": "strict"}, {"log_level": "LOUD"}, {"audit_max_records": 0}],
)
def test_invalid_values(values) -> None:
    with pytest.raises(ConfigurationError):
        AccessControlConfig.from_values(values)


def test_get_config_reads_file_in_working_directory(tmp_path) -> None:
    (tmp_path / "fieldwarden.yaml").write_text("mode: best_effort\n")

    config = get_config()

    assert config.mode == OperationMode.BEST_EFFORT
    assert get_config() is config


def test_get_config_falls_back_to_environment(monkeypatch) -> None:
    monkeypatch.setenv("FIELDWARDEN_SCOPE", "unrestricted")

    assert get_config().scope == VisibilityScope.UNRESTRICTED
