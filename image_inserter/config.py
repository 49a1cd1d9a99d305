"""Configuration objects and constants for the image inserter."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional, Type, TypeVar

logger = logging.getLogger("image_inserter")

DEFAULT_PROXY_SERVER = "https://insert-unsplash-image.cloudy9101.com/"
DEFAULT_APP_NAME = "Obsidian Image Inserter Plugin"
PER_PAGE = 30

PIXABAY_API_KEY_ENV = "PIXABAY_API_KEY"
PROXY_SERVER_ENV = "IMAGE_INSERTER_PROXY"


class ImageProvider(str, Enum):
    UNSPLASH = "unsplash"
    PIXABAY = "pixabay"


class Orientation(str, Enum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    SQUARISH = "squarish"
    NOT_SPECIFIED = "not_specified"


class InsertMode(str, Enum):
    REMOTE = "remote"
    LOCAL = "local"


_EnumT = TypeVar("_EnumT", bound=Enum)


@dataclass(frozen=True)
class InserterConfig:
    """Settings that control searching and inserting images."""

    provider: ImageProvider = ImageProvider.UNSPLASH
    orientation: Orientation = Orientation.NOT_SPECIFIED
    insert_mode: InsertMode = InsertMode.REMOTE
    insert_size: str = ""
    pixabay_api_key: str = ""
    proxy_server: str = ""
    request_timeout: float = 15.0
    debounce_seconds: float = 0.5
    app_name: str = DEFAULT_APP_NAME

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "InserterConfig":
        """Build a config from stored settings (camelCase or snake_case keys)."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        defaults = cls()
        provider = _coerce_enum(
            ImageProvider, pick("imageProvider", "provider"), defaults.provider
        )
        orientation = _coerce_enum(
            Orientation, pick("orientation"), defaults.orientation
        )
        insert_mode = _coerce_enum(
            InsertMode, pick("insertMode", "insert_mode"), defaults.insert_mode
        )
        insert_size = pick("insertSize", "insert_size")
        api_key = pick("pixabayApiKey", "pixabay_api_key")
        proxy_server = pick("proxyServer", "proxy_server")
        timeout = pick("requestTimeout", "request_timeout")
        debounce = pick("debounceSeconds", "debounce_seconds")
        app_name = pick("appName", "app_name")

        return cls(
            provider=provider,
            orientation=orientation,
            insert_mode=insert_mode,
            insert_size=str(insert_size) if insert_size is not None else "",
            pixabay_api_key=str(api_key) if api_key is not None else "",
            proxy_server=str(proxy_server) if proxy_server is not None else "",
            request_timeout=(
                float(timeout) if timeout is not None else defaults.request_timeout
            ),
            debounce_seconds=(
                float(debounce) if debounce is not None else defaults.debounce_seconds
            ),
            app_name=str(app_name) if app_name else defaults.app_name,
        )


def _coerce_enum(enum_cls: Type[_EnumT], value: Any, default: _EnumT) -> _EnumT:
    if value is None or value == "":
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        logger.warning(
            "Unknown %s value %r; falling back to %s",
            enum_cls.__name__,
            value,
            default.value,
        )
        return default


def load_config(path: Optional[Path] = None) -> InserterConfig:
    """Read settings from a JSON file, then apply environment overrides."""
    data: dict = {}
    if path is not None:
        settings_path = Path(path).expanduser()
        if settings_path.exists():
            data = json.loads(settings_path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError(f"Settings file must hold a JSON object: {settings_path}")
            logger.debug("Loaded settings from %s", settings_path)
        else:
            logger.warning(
                "Settings file %s does not exist; using defaults", settings_path
            )

    env_key = os.getenv(PIXABAY_API_KEY_ENV)
    if env_key:
        data["pixabayApiKey"] = env_key
    env_proxy = os.getenv(PROXY_SERVER_ENV)
    if env_proxy:
        logger.debug("%s override detected: %s", PROXY_SERVER_ENV, env_proxy)
        data["proxyServer"] = env_proxy

    return InserterConfig.from_mapping(data)
