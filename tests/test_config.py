import json

from image_inserter.config import (
    ImageProvider,
    InsertMode,
    InserterConfig,
    Orientation,
    load_config,
)


def test_defaults():
    config = InserterConfig()
    assert config.provider is ImageProvider.UNSPLASH
    assert config.orientation is Orientation.NOT_SPECIFIED
    assert config.insert_mode is InsertMode.REMOTE
    assert config.insert_size == ""


def test_from_mapping_reads_stored_plugin_settings():
    config = InserterConfig.from_mapping(
        {
            "imageProvider": "pixabay",
            "orientation": "squarish",
            "insertMode": "local",
            "insertSize": "400",
            "pixabayApiKey": "k",
            "proxyServer": "https://proxy.example/",
        }
    )
    assert config.provider is ImageProvider.PIXABAY
    assert config.orientation is Orientation.SQUARISH
    assert config.insert_mode is InsertMode.LOCAL
    assert config.insert_size == "400"
    assert config.pixabay_api_key == "k"
    assert config.proxy_server == "https://proxy.example/"


def test_unknown_values_fall_back_to_defaults(caplog):
    config = InserterConfig.from_mapping({"imageProvider": "flickr", "orientation": 7})
    assert config.provider is ImageProvider.UNSPLASH
    assert config.orientation is Orientation.NOT_SPECIFIED
    assert "Unknown ImageProvider value" in caplog.text


def test_load_config_file_then_environment(tmp_path, monkeypatch):
    settings = tmp_path / "data.json"
    settings.write_text(
        json.dumps({"imageProvider": "pixabay", "pixabayApiKey": "from-file"}),
        encoding="utf-8",
    )
    monkeypatch.setenv("PIXABAY_API_KEY", "from-env")
    monkeypatch.delenv("IMAGE_INSERTER_PROXY", raising=False)

    config = load_config(settings)
    assert config.provider is ImageProvider.PIXABAY
    assert config.pixabay_api_key == "from-env"


def test_load_config_missing_file_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("PIXABAY_API_KEY", raising=False)
    monkeypatch.setenv("IMAGE_INSERTER_PROXY", "https://mirror.example")
    config = load_config(tmp_path / "absent.json")
    assert config.provider is ImageProvider.UNSPLASH
    assert config.proxy_server == "https://mirror.example"
