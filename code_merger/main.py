import logging
from contextlib import asynccontextmanager
from typing import List
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import get_settings
from .errors import MergerError
from .logger import setup_logging
from .models import ErrorResponse, HealthResponse, MergeRequest, UploadResponse
from .pipeline import FileService
from .store import MemoryRecordStore

logger = logging.getLogger(__name__)


# Handle startup/shutdown tasks
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    service = FileService(
        MemoryRecordStore(),
        max_file_size=settings.MAX_FILE_SIZE,
        max_total_size=settings.MAX_TOTAL_SIZE,
    )
    service.start_background_expiry(settings.FILE_TTL, settings.CLEANUP_INTERVAL)
    app.state.service = service
    logger.info(
        "code-merger ready (max_file_size=%d, max_total_size=%d)",
        settings.MAX_FILE_SIZE,
        settings.MAX_TOTAL_SIZE,
    )
    try:
        yield
    finally:
        service.stop_background_expiry()
        logger.info("code-merger shut down")


app = FastAPI(
    title="code-merger",
    description="Merge uploaded text files into one, with per-file comment headers",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().CLIENT_ORIGIN],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


def get_service(request: Request) -> FileService:
    return request.app.state.service


@app.exception_handler(MergerError)
async def merger_error_handler(request: Request, exc: MergerError):
    body = ErrorResponse(error=exc.message, details=exc.details)
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}


@app.post("/api/upload", response_model=UploadResponse)
async def upload_files(
    files: List[UploadFile] = File(...),
    service: FileService = Depends(get_service),
):
    uploads = []
    for file in files:
        if not file.filename:
            raise HTTPException(status_code=400, detail="Every upload needs a filename")
        uploads.append((file.filename, await file.read()))

    file_ids = service.ingest_many(uploads)
    return {"message": f"{len(file_ids)} file(s) uploaded", "file_ids": file_ids}


@app.post("/api/merge")
def merge(request: MergeRequest, service: FileService = Depends(get_service)):
    if not request.file_ids:
        raise HTTPException(status_code=400, detail="field 'file_ids' is required")
    if not request.output_filename:
        raise HTTPException(status_code=400, detail="field 'output_filename' is required")

    items = service.retrieve(request.file_ids, request.file_renames)
    return Response(
        content=service.merge(items),
        media_type="application/octet-stream",
        headers={
            "Content-Disposition": (
                f"attachment; filename*=UTF-8''{quote(request.output_filename)}"
            )
        },
    )


@app.get("/api/file/{file_id}", response_class=PlainTextResponse)
def get_file_content(file_id: str, service: FileService = Depends(get_service)):
    record = service.lookup(file_id)
    return PlainTextResponse(record.content, media_type="text/plain; charset=utf-8")
