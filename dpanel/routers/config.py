from fastapi import APIRouter, Depends, HTTPException, Request, status
from dpanel.schemas.config import ConfigDocument, ConfigPatch, ConfigUpdateResponse, PanelPaths
from dpanel.services import config_service
from dpanel.services.web_settings import resolve_web_settings
from dpanel.dependencies import get_paths

router = APIRouter()

@router.get("/config", response_model=ConfigDocument)
def get_config(paths: PanelPaths = Depends(get_paths)):
  """Current daemon configuration, re-read from disk on every call"""
  try:
    return config_service.parse_config(paths.config_path).document
  except OSError as e:
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))

@router.post("/config", response_model=ConfigUpdateResponse)
def update_config(patch: ConfigPatch, request: Request, paths: PanelPaths = Depends(get_paths)):
  """
  Apply a partial update.

  The file is backed up first; nothing is written if the backup fails.
  Parts of the patch that cannot be applied are reported in `warnings`.
  """
  try:
    result = config_service.update_config(paths.config_path, patch)
  except OSError as e:
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail=f"Failed to update config: {e}"
    )

  request.app.state.web_settings = resolve_web_settings(
    paths.config_path,
    getattr(request.app.state, "web_settings", None)
  )
  return ConfigUpdateResponse(
    message="Configuration updated successfully",
    warnings=result.warnings
  )
