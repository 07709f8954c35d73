import pytest
import os
import yaml

from pdf_render_service.core.config import (
    ConfigurationManager,
    ConfigError,
    ConfigFileNotFoundError,
    InvalidYamlError,
    CONFIG_DIR,
    DEFAULT_PORT,
    config_manager as global_config_manager,
    get_port,
)


@pytest.fixture(scope="function")
def temp_config_files(tmp_path, monkeypatch):
    """
    Creates temporary YAML config files and points the ConfigurationManager
    singleton at them. The shipped configuration is reloaded afterwards, since
    other test modules read the global `config_manager`.
    """
    monkeypatch.setattr(ConfigurationManager, "CONFIG_DIR", str(tmp_path))

    dev_config_content = {
        "server": {"host": "127.0.0.1", "port": 3100},
        "errors": {"include_stack": True},
        "cors": {"allowed_origins": ["http://localhost:3000"]},
    }
    prod_config_content = {
        "server": {"host": "0.0.0.0", "port": 8080},
        "errors": {"include_stack": False},
    }
    invalid_yaml_content = "server: {host: 'bad_host', port: 1000"  # Missing closing brace

    with open(os.path.join(tmp_path, "development.yaml"), "w") as f:
        yaml.dump(dev_config_content, f)
    with open(os.path.join(tmp_path, "production.yaml"), "w") as f:
        yaml.dump(prod_config_content, f)
    with open(os.path.join(tmp_path, "invalid.yaml"), "w") as f:
        f.write(invalid_yaml_content)
    with open(os.path.join(tmp_path, "not_dict.yaml"), "w") as f:
        yaml.dump(["list", "instead", "of", "dict"], f)

    yield tmp_path

    monkeypatch.undo()
    ConfigurationManager._instance.load_config()


def test_load_development_config_default(temp_config_files, monkeypatch):
    """Development configuration is loaded when APP_ENV is not set."""
    monkeypatch.delenv("APP_ENV", raising=False)

    config_manager = ConfigurationManager()
    config_manager.load_config()

    assert config_manager.current_environment == "development"
    assert config_manager.is_production is False
    assert config_manager.get("server.host") == "127.0.0.1"
    assert config_manager.get("server.port") == 3100
    assert config_manager.get("non_existent_key") is None
    assert config_manager.get("non_existent_key", "default_val") == "default_val"


def test_load_production_config_env_var(temp_config_files, monkeypatch):
    """APP_ENV selects the production file."""
    monkeypatch.setenv("APP_ENV", "production")

    config_manager = ConfigurationManager()
    config_manager.load_config()

    assert config_manager.current_environment == "production"
    assert config_manager.is_production is True
    assert config_manager.get("errors.include_stack") is False


def test_load_config_explicit_env_param(temp_config_files, monkeypatch):
    """The 'env' parameter wins over APP_ENV."""
    monkeypatch.setenv("APP_ENV", "development")

    config_manager = ConfigurationManager()
    config_manager.load_config(env="production")

    assert config_manager.current_environment == "production"
    assert config_manager.get("server.port") == 8080


def test_get_nested_value(temp_config_files):
    config_manager = ConfigurationManager()
    config_manager.load_config("development")

    assert config_manager.get("errors.include_stack") is True
    assert config_manager.get("server") == {"host": "127.0.0.1", "port": 3100}
    assert config_manager.get("cors.allowed_origins") == ["http://localhost:3000"]


def test_get_non_existent_nested_value(temp_config_files):
    config_manager = ConfigurationManager()
    config_manager.load_config("development")

    assert config_manager.get("server.non_existent_sub_key") is None
    assert config_manager.get("server.port.deeper", "fallback") == "fallback"
    assert config_manager.get("completely.made.up.path", "fallback") == "fallback"


def test_reload_config(temp_config_files, monkeypatch):
    monkeypatch.setenv("APP_ENV", "development")
    config_manager = ConfigurationManager()
    config_manager.load_config()
    assert config_manager.get("server.host") == "127.0.0.1"

    with open(os.path.join(temp_config_files, "development.yaml"), "w") as f:
        yaml.dump({"server": {"host": "reloaded_host"}}, f)

    config_manager.reload_config()
    assert config_manager.get("server.host") == "reloaded_host"

    config_manager.reload_config(env="production")
    assert config_manager.current_environment == "production"
    assert config_manager.get("server.host") == "0.0.0.0"


def test_config_file_not_found_error(temp_config_files, monkeypatch):
    monkeypatch.setenv("APP_ENV", "staging")
    config_manager = ConfigurationManager()

    with pytest.raises(ConfigFileNotFoundError) as excinfo:
        config_manager.load_config()
    assert "Configuration file not found for environment 'staging'" in str(excinfo.value)
    assert "staging.yaml" in str(excinfo.value)


def test_invalid_yaml_error(temp_config_files, monkeypatch):
    monkeypatch.setenv("APP_ENV", "invalid")
    config_manager = ConfigurationManager()

    with pytest.raises(InvalidYamlError) as excinfo:
        config_manager.load_config()
    assert "Error parsing YAML" in str(excinfo.value)
    assert "invalid.yaml" in str(excinfo.value)


def test_yaml_not_dict_error(temp_config_files, monkeypatch):
    monkeypatch.setenv("APP_ENV", "not_dict")
    config_manager = ConfigurationManager()

    with pytest.raises(InvalidYamlError) as excinfo:
        config_manager.load_config()
    assert "does not contain a valid YAML dictionary" in str(excinfo.value)


@pytest.mark.parametrize("bad_env", ["staging", "invalid", "not_dict"])
def test_failed_load_keeps_previous_settings(temp_config_files, bad_env):
    config_manager = ConfigurationManager()
    config_manager.load_config("production")

    with pytest.raises(ConfigError):
        config_manager.reload_config(env=bad_env)

    assert config_manager.current_environment == "production"
    assert config_manager.get("server.port") == 8080


def test_singleton_behavior(temp_config_files):
    config_manager1 = ConfigurationManager()
    config_manager1.load_config("development")

    config_manager2 = ConfigurationManager()

    assert config_manager1 is config_manager2
    assert config_manager1 is global_config_manager

    config_manager2.load_config("production")
    assert config_manager1.current_environment == "production"


@pytest.mark.parametrize("env_name", ["development", "production"])
def test_shipped_config_files_are_complete(env_name):
    """The YAML files shipped with the package carry every key the service reads."""
    with open(os.path.join(CONFIG_DIR, f"{env_name}.yaml")) as f:
        shipped = yaml.safe_load(f)

    assert shipped["server"]["port"] == DEFAULT_PORT
    assert shipped["cors"]["allowed_methods"] == ["GET"]
    playwright_settings = shipped["components"]["playwright_manager"]
    assert playwright_settings["navigation_timeout_ms"] == 60000
    assert playwright_settings["readiness_timeout_ms"] == 10000
    assert playwright_settings["pdf"]["format"] == "A4"
    assert shipped["components"]["temp_file_manager"]["cleanup_delay_seconds"] == 5
    assert shipped["errors"]["include_stack"] is (env_name != "production")


def test_get_port_prefers_environment_variable(temp_config_files, monkeypatch):
    monkeypatch.setenv("PORT", "4321")
    config_manager = ConfigurationManager()
    config_manager.load_config("development")

    assert get_port(config_manager) == 4321


def test_get_port_falls_back_to_config(temp_config_files, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    config_manager = ConfigurationManager()
    config_manager.load_config("development")

    assert get_port(config_manager) == 3100


def test_get_port_default_when_unconfigured(temp_config_files, monkeypatch):
    monkeypatch.delenv("PORT", raising=False)
    config_manager = ConfigurationManager()
    with open(os.path.join(temp_config_files, "bare.yaml"), "w") as f:
        yaml.dump({"logging": {"level": "INFO"}}, f)
    config_manager.load_config("bare")

    assert get_port(config_manager) == DEFAULT_PORT


def test_get_port_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")

    with pytest.raises(ConfigError):
        get_port()
