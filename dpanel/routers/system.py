from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from dpanel.schemas.config import PanelPaths
from dpanel.schemas.system import CommandRequest, CommandResponse
from dpanel.services import command_service
from dpanel.dependencies import get_paths

router = APIRouter()

async def _run_or_fail(args: List[str], failure: str) -> str:
  try:
    return await command_service.run_command(args)
  except ValueError as e:
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail={"error": failure, "details": str(e)}
    )
  except command_service.CommandError as e:
    raise HTTPException(
      status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
      detail={"error": failure, "details": e.output}
    )

@router.post("/reload", response_model=CommandResponse)
async def reload_daemon(paths: PanelPaths = Depends(get_paths)):
  """Ask the daemon to reload its configuration"""
  output = await _run_or_fail(paths.reload_command, "Failed to reload")
  return CommandResponse(message="Configuration reloaded", output=output)

@router.post("/restart", response_model=CommandResponse)
async def restart_daemon(paths: PanelPaths = Depends(get_paths)):
  """Restart the daemon service"""
  output = await _run_or_fail(paths.restart_command, "Failed to restart")
  return CommandResponse(message="Service restarted", output=output)

@router.post("/command", response_model=CommandResponse)
async def run_command(payload: CommandRequest):
  """Run an operator command. No shell: the text is split on whitespace."""
  if not payload.command:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Command cannot be empty")

  args = payload.command.split()
  if not args:
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid command")

  output = await _run_or_fail(args, "Command failed")
  return CommandResponse(message="Command executed", output=output)
