"""
Dev server for the static site build

Serves the build directory with live reload:
- /* - Files from build/ (directories resolve to index.html)
- /__livereload/events - SSE reload stream
- /__livereload/client.js - Reload client, injected into every HTML page
- /api/health - Health check

Run `python cli.py default` for the full build + watch + serve loop; running
this module directly only serves an existing build.
"""
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse

import config
from config import HOST, PORT, CORS_ORIGINS
from routers import livereload


def inject_reload_client(html: str) -> str:
    """Insert the reload client script before the last </body> (or append it)"""
    marker = html.lower().rfind("</body>")
    if marker == -1:
        return html + livereload.CLIENT_SCRIPT_TAG
    return html[:marker] + livereload.CLIENT_SCRIPT_TAG + html[marker:]


def resolve_build_file(build_dir: Path, request_path: str) -> Optional[Path]:
    """
    Map a URL path onto a file under build_dir

    Returns None when nothing matches or the path escapes build_dir.
    """
    root = build_dir.resolve()
    candidate = (root / request_path.lstrip("/")).resolve()
    if candidate != root and root not in candidate.parents:
        return None
    if candidate.is_dir():
        candidate = candidate / "index.html"
    return candidate if candidate.is_file() else None


def create_app(build_dir: Optional[Path] = None) -> FastAPI:
    """
    Create the dev server app

    Args:
        build_dir: Directory to serve (defaults to the configured build path)
    """
    build_dir = Path(build_dir) if build_dir else config.BASE_DIR / config.BUILD_PATH

    app = FastAPI(
        title="Static Site Dev Server",
        description="Serves the build directory with live reload",
        version="1.0.0"
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(livereload.router)

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "build_dir": str(build_dir),
        }

    @app.get("/{file_path:path}")
    async def serve_build(file_path: str):
        target = resolve_build_file(build_dir, file_path)
        if target is None:
            raise HTTPException(status_code=404, detail=f"Not found: /{file_path}")
        if target.suffix.lower() in (".html", ".htm"):
            html = target.read_text(encoding="utf-8")
            return HTMLResponse(inject_reload_client(html), headers={"Cache-Control": "no-cache"})
        return FileResponse(target, headers={"Cache-Control": "no-cache"})

    return app


__all__ = ["create_app", "inject_reload_client", "resolve_build_file"]


if __name__ == "__main__":
    import uvicorn

    print(f"""
    ╔════════════════════════════════════════════════════╗
    ║  Static Site Dev Server                            ║
    ╚════════════════════════════════════════════════════╝

    🚀 Serving {config.BASE_DIR / config.BUILD_PATH}
    📡 http://{HOST}:{PORT}

    Press Ctrl+C to stop
    """)

    uvicorn.run(
        create_app(),
        host=HOST,
        port=PORT,
        log_level="info"
    )
