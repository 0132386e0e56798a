import pytest
import yaml

from smartspend.config import DEFAULT_CONFIG, load_config, save_config


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "absent.yaml")
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_partial_file_is_merged_with_defaults(tmp_path):
    path = tmp_path / "smartspend.yaml"
    path.write_text(
        yaml.safe_dump({"category_policy": "coerce", "models": {"chat": "big-model"}})
    )

    config = load_config(path)

    assert config["category_policy"] == "coerce"
    assert config["models"] == {"categorize": None, "insights": None, "chat": "big-model"}
    assert config["insights_limit"] == 50
    assert "csv" in config["loaders"]


def test_invalid_values_are_rejected(tmp_path):
    path = tmp_path / "smartspend.yaml"
    path.write_text(yaml.safe_dump({"category_policy": "maybe"}))
    with pytest.raises(ValueError):
        load_config(path)

    path.write_text(yaml.safe_dump({"insights_limit": 0}))
    with pytest.raises(ValueError):
        load_config(path)


def test_save_and_reload(tmp_path):
    path = tmp_path / "conf" / "smartspend.yaml"
    config = load_config(tmp_path / "absent.yaml")
    config["db_path"] = "other.db"

    save_config(config, path)

    assert load_config(path)["db_path"] == "other.db"
