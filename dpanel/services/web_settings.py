from pathlib import Path
from typing import Optional

from dpanel.core.config import DEFAULT_IP, DEFAULT_PORT
from dpanel.core.logger import setup_logger
from dpanel.schemas.config import WebSettings
from dpanel.services.config_service import read_config_text, split_setting

logger = setup_logger("DPanel.WebSettings")

DEFAULT_WEB_SETTINGS = WebSettings(ip=DEFAULT_IP, port=DEFAULT_PORT)


def resolve_web_settings(path: Path, previous: Optional[WebSettings] = None) -> WebSettings:
    """Read `web_ip` / `web_port` from the configuration file.

    Anything missing or unusable keeps the previous value, so the panel
    always has an address to bind to.

    Args:
        path (Path): Configuration file
        previous (WebSettings, optional): Last known-good settings,
            defaults to 127.0.0.1:8080

    Returns:
        WebSettings: New immutable settings value
    """
    current = previous or DEFAULT_WEB_SETTINGS
    ip, port = current.ip, current.port

    try:
        text = read_config_text(path)
    except (OSError, ValueError) as e:
        logger.warning(f"Could not read config file: {e}")
        return current

    for line in text.splitlines():
        setting = split_setting(line)
        if not setting:
            continue
        key, value = setting
        if key == "web_ip" and value:
            ip = value
        elif key == "web_port":
            try:
                candidate = int(value)
            except ValueError:
                logger.warning(f"Ignoring invalid web_port {value!r}")
                continue
            if 0 < candidate < 65536:
                port = candidate
            else:
                logger.warning(f"Ignoring out of range web_port {candidate}")

    settings = WebSettings(ip=ip, port=port)
    logger.info(f"Web settings: IP={settings.ip}, Port={settings.port}")
    return settings
