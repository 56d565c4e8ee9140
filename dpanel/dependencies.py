from dpanel.core.config import (
  CONFIG_PATH,
  LOG_PATH,
  LANGUAGE_PATH,
  RELOAD_COMMAND,
  RESTART_COMMAND,
  POLL_INTERVAL,
)
from dpanel.schemas.config import PanelPaths

def get_paths() -> PanelPaths:
  return PanelPaths(
    config_path=CONFIG_PATH,
    log_path=LOG_PATH,
    language_path=LANGUAGE_PATH,
    reload_command=RELOAD_COMMAND,
    restart_command=RESTART_COMMAND,
    poll_interval=POLL_INTERVAL,
  )
