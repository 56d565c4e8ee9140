from fastapi import APIRouter, Depends, HTTPException, status
from dpanel.schemas.config import PanelPaths
from dpanel.schemas.system import StatsResponse
from dpanel.services import config_service
from dpanel.services.log_service import count_log_lines
from dpanel.dependencies import get_paths

router = APIRouter()

@router.get("/stats", response_model=StatsResponse)
def get_stats(paths: PanelPaths = Depends(get_paths)):
  """Protection count (log lines) and time left on a temporary disable"""
  try:
    protection_count = count_log_lines(paths.log_path)
  except OSError:
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to count log lines")

  remaining_time = ""
  try:
    basic = config_service.parse_config(paths.config_path).document.basic
  except OSError:
    basic = {}
  if basic.get("disable") == "true":
    remaining_time = str(config_service.remaining_disable_period(basic))

  return StatsResponse(protection_count=protection_count, remaining_time=remaining_time)
