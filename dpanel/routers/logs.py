from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from dpanel.schemas.config import PanelPaths
from dpanel.services.log_service import stream_log_events
from dpanel.dependencies import get_paths

router = APIRouter()

@router.get("/logs")
async def stream_logs(request: Request, paths: PanelPaths = Depends(get_paths)):
  """
  Server-Sent-Events stream of the daemon log.

  Events: `log` (one line), `error` (non-fatal problem), `reset` (the file
  was truncated; drop earlier lines, a full replay follows).
  """
  async def event_generator():
    async for event in stream_log_events(paths.log_path, request.is_disconnected, paths.poll_interval):
      yield event.encode()

  headers = {"Cache-Control": "no-cache", "Connection": "keep-alive"}
  return StreamingResponse(event_generator(), media_type="text/event-stream", headers=headers)
