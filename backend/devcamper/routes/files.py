"""
DevCamper Backend — Uploaded File Serving
===========================================

What:  GET /uploads/{filename} returns a stored bootcamp photo.
How:   FileService.resolve maps the name into FILE_UPLOAD_PATH and rejects
       anything outside it; FileResponse picks the media type from the suffix.
"""

from fastapi import APIRouter
from fastapi.responses import FileResponse

from devcamper.schemas.common import ErrorResponse
from devcamper.services.file_service import file_service

router = APIRouter(tags=["Files"])


@router.get(
    "/uploads/{filename}",
    summary="Serve an uploaded bootcamp photo",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
)
async def serve_upload(filename: str) -> FileResponse:
    path = file_service.resolve(filename)
    return FileResponse(
        path=str(path),
        headers={"Cache-Control": "public, max-age=86400"},
    )
