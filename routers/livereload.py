"""
Live reload routes

- GET /__livereload/events - SSE stream of reload events
- GET /__livereload/client.js - Script injected into every served page
"""
from fastapi import APIRouter
from fastapi.responses import Response, StreamingResponse

from services.reload_service import subscribe

router = APIRouter(prefix="/__livereload", tags=["livereload"])

CLIENT_SCRIPT_PATH = "/__livereload/client.js"
CLIENT_SCRIPT_TAG = f'<script src="{CLIENT_SCRIPT_PATH}"></script>'

CLIENT_JS = """(function () {
  if (!window.EventSource) { return; }
  var source = new EventSource("/__livereload/events");
  source.addEventListener("reload", function () {
    source.close();
    window.location.reload();
  });
  source.addEventListener("build.failed", function (event) {
    console.warn("[livereload] build failed", JSON.parse(event.data).payload);
  });
})();
"""


@router.get("/events")
async def reload_events():
    """Stream reload events to the browser"""
    return StreamingResponse(
        subscribe(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        }
    )


@router.get("/client.js")
async def client_script():
    return Response(
        content=CLIENT_JS,
        media_type="application/javascript",
        headers={"Cache-Control": "no-cache"},
    )


__all__ = ["router", "CLIENT_SCRIPT_PATH", "CLIENT_SCRIPT_TAG"]
