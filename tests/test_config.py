import json

from quire.config import ReaderConfig, load_config
from quire.utils import get_app_data_dir


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(str(tmp_path / "absent.json"))
    assert config == ReaderConfig()
    assert (config.margin, config.line_spacing, config.daily_goal_words) == (2, 0, 1500)


def test_bad_values_fall_back_and_ranges_clamp(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "margin": 99,
        "line_spacing": -3,
        "text_width": "wide",
        "auto_resume": False,
        "theme": "dark",
    }))

    config = load_config(str(path))
    assert config.margin == 20
    assert config.line_spacing == 0
    assert config.text_width == 120
    assert config.auto_resume is False
    assert not hasattr(config, "theme")


def test_broken_file_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2")
    assert load_config(str(path)) == ReaderConfig()


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    config = ReaderConfig(margin=5, daily_goal_words=300)
    assert config.save(str(path))
    assert load_config(str(path)) == config


def test_data_dir_override(tmp_path):
    config = ReaderConfig(data_dir=str(tmp_path / "books-data"))
    assert config.resolve_data_dir() == tmp_path / "books-data"
    assert (tmp_path / "books-data").is_dir()


def test_app_data_dir_follows_xdg(tmp_path, monkeypatch):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path))
    assert get_app_data_dir() == tmp_path / "Quire"


def test_booleans_are_not_accepted_as_numbers(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"margin": True, "daily_goal_words": False, "auto_resume": False}))

    config = load_config(str(path))
    assert config.margin == 2
    assert config.daily_goal_words == 1500
    assert config.auto_resume is False
