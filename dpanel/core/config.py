from dotenv import load_dotenv
load_dotenv()

import os
from pathlib import Path

CONFIG_PATH = Path(os.getenv("DP_CONFIG_PATH", "/etc/deeprotection/deeprotection.conf"))
LOG_PATH = Path(os.getenv("DP_LOG_PATH", "/var/log/deeprotection.log"))
LANGUAGE_PATH = Path(os.getenv("DP_LANGUAGE_PATH", "/usr/share/locale/deeprotection/"))
STATIC_PATH = Path(os.getenv("DP_STATIC_PATH", "public"))

RELOAD_COMMAND = os.getenv("DP_RELOAD_COMMAND", "dplauncher --reload").split()
RESTART_COMMAND = os.getenv("DP_RESTART_COMMAND", "systemctl restart deeprotection").split()

POLL_INTERVAL = float(os.getenv("DP_POLL_INTERVAL", "0.5"))
LOG_LEVEL = os.getenv("DP_LOG_LEVEL", "INFO").upper()

DEFAULT_IP = "127.0.0.1"
DEFAULT_PORT = 8080

API_PREFIX = "/api"
