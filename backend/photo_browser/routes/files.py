"""
Photo Browser API — Stored File Route
=======================================

Serves images written by LocalImageStorage. With the S3 backend the bucket
serves its own URLs and this route answers 404.
"""

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from photo_browser.exceptions import NotFoundError
from photo_browser.services.storage import ImageStorage, LocalImageStorage, get_image_storage

router = APIRouter(prefix="/api/files", tags=["Files"])


@router.get(
    "/{key:path}",
    summary="Serve a stored image",
    responses={200: {"content": {"image/jpeg": {}}}, 404: {"description": "File not found"}},
)
async def serve_file(key: str, storage: ImageStorage = Depends(get_image_storage)) -> FileResponse:
    if not isinstance(storage, LocalImageStorage):
        raise NotFoundError("File not found")

    # resolve() refuses anything outside the storage root (../ traversal)
    path = storage.resolve(key)
    if path is None or not path.is_file():
        raise NotFoundError("File not found", context={"key": key})

    return FileResponse(
        path=str(path),
        media_type="image/jpeg",
        headers={
            # Keys are random and never reused
            "Cache-Control": "public, max-age=31536000, immutable",
            # Embedded by the frontend at client_url, another origin
            "Cross-Origin-Resource-Policy": "cross-origin",
        },
    )
