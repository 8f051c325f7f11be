"""
FastAPI backend for the handwritten assignment grader
"""
from fastapi import Depends, FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from grader_backend import __version__
from grader_backend.routes import analyze
from grader_backend.utils.config import Settings, get_settings
from grader_backend.utils.errors import GraderError
from grader_backend.utils.logger import logger

SERVICE_NAME = "Handwritten Assignment Grader API"

# Initialize FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="Grades handwritten assignments with cloud OCR and Gemini",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Settings.from_env().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(analyze.router, tags=["Analysis"])


@app.exception_handler(GraderError)
async def grader_error_handler(request: Request, exc: GraderError):
    """Render pipeline errors as {"error": message}"""
    if exc.status_code >= 500:
        logger.error(f"[ERROR] {request.url.path}: {exc.message}")
    else:
        logger.warning(f"[WARN] {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def upload_validation_handler(request: Request, exc: RequestValidationError):
    """A form field named "file" that is not a file part counts as no file"""
    if any(tuple(err.get("loc", ()))[-1:] == ("file",) for err in exc.errors()):
        logger.warning(f"[WARN] {request.url.path}: file field is not a file upload")
        return JSONResponse(status_code=400, content={"error": "No file provided"})
    return await request_validation_exception_handler(request, exc)


# Health check endpoint
@app.get("/", tags=["Health"])
async def root(settings: Settings = Depends(get_settings)):
    """Health check endpoint"""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": __version__,
        "ocrStrategy": settings.ocr_strategy
    }


@app.get("/api/config", tags=["Health"])
async def client_config(settings: Settings = Depends(get_settings)):
    """Upload constraints for the web UI"""
    return {
        "ocrStrategy": settings.ocr_strategy,
        "acceptedTypes": sorted(analyze.ACCEPTED_TYPES),
        "maxUploadMb": settings.max_upload_mb
    }
