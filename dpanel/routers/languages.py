from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from dpanel.schemas.config import PanelPaths
from dpanel.schemas.system import Language
from dpanel.services import language_service
from dpanel.dependencies import get_paths

router = APIRouter()

@router.get("/languages", response_model=List[Language])
def list_languages(paths: PanelPaths = Depends(get_paths)):
  try:
    return language_service.list_languages(paths.language_path)
  except OSError as e:
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
