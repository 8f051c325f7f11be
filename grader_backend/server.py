"""
Entry point: the API plus the bundled web client
"""
import os

import uvicorn
from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from grader_backend.api import app
from grader_backend.utils.logger import logger

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


def mount_frontend(target: FastAPI, static_dir: str = STATIC_DIR) -> FastAPI:
    """Serve the upload page at /app and its assets under /static"""
    if not os.path.isdir(static_dir):
        logger.warning(f"[WARN] Frontend directory missing: {static_dir}")
        return target

    target.mount("/static", StaticFiles(directory=static_dir), name="static")
    index_file = os.path.join(static_dir, "index.html")

    @target.get("/app", response_class=FileResponse, include_in_schema=False)
    async def frontend():
        return index_file

    return target


mount_frontend(app)


def main():
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    base = f"http://localhost:{port}"
    logger.info(f"📝 Grader listening on {host}:{port}")
    logger.info(f"   web app  {base}/app")
    logger.info(f"   api docs {base}/docs")
    uvicorn.run(app, host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
