"""Shared fixtures: a throwaway config / log / locale tree and an API client bound to it."""
import pytest
from fastapi.testclient import TestClient

from dpanel.dependencies import get_paths
from dpanel.main import app
from dpanel.schemas.config import PanelPaths

SAMPLE_CONFIG = """\
# Deeprotection configuration
language=en_US
disable=false
expire_hours=2
timestamp=1700000000
update=yes
mode=normal
web_ip=0.0.0.0
web_port=9090
unknown_key=ignored

# ===== protected_paths_list =====
/etc
/usr/bin
# keep the boot partition
/boot

# ===== command_intercept_rules =====
rm -rf /
mkfs.*
"""


@pytest.fixture
def sample_config():
    return SAMPLE_CONFIG


@pytest.fixture
def panel_paths(tmp_path):
    config_path = tmp_path / "deeprotection.conf"
    config_path.write_text(SAMPLE_CONFIG, encoding="utf-8")

    log_path = tmp_path / "deeprotection.log"
    log_path.write_text("blocked rm -rf /\nblocked mkfs.ext4\nblocked dd\n", encoding="utf-8")

    locale_dir = tmp_path / "locale"
    locale_dir.mkdir()
    (locale_dir / "en_US.ftl").write_text('name = "English"\ngreeting = Hello\n', encoding="utf-8")
    (locale_dir / "zh_CN.ftl").write_text('greeting = 你好\n', encoding="utf-8")

    return PanelPaths(
        config_path=config_path,
        log_path=log_path,
        language_path=locale_dir,
        reload_command=["echo", "reloaded"],
        restart_command=["false"],
        poll_interval=0.01,
    )


@pytest.fixture
def client(panel_paths):
    app.dependency_overrides[get_paths] = lambda: panel_paths
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
