"""
Upload API Routes

Generic image upload and serving of stored files.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse

from delicacies.api.dependencies import get_upload_sink
from delicacies.api.forms import form_file, store_upload
from delicacies.api.schemas import Envelope, ErrorResponse, UploadResult
from delicacies.exceptions import NotFoundError, ValidationError
from delicacies.storage.uploads import UploadSink

router = APIRouter(tags=["uploads"])


@router.post(
    "/upload",
    response_model=Envelope[UploadResult],
    responses={
        400: {"model": ErrorResponse, "description": "No file or unsupported type"},
        413: {"model": ErrorResponse, "description": "File too large"},
    },
)
async def upload_image(
    request: Request,
    sink: UploadSink = Depends(get_upload_sink),
):
    """Store one image sent as multipart field "image"."""
    form = await request.form()
    upload = form_file(form, "image")
    if upload is None:
        raise ValidationError("No file uploaded")

    url = await store_upload(sink, upload)
    return {"data": {"url": url}}


@router.get("/uploads/{filename}", include_in_schema=False)
def serve_upload(
    filename: str,
    sink: UploadSink = Depends(get_upload_sink),
):
    path = sink.resolve(filename)
    if path is None:
        raise NotFoundError("File not found")
    return FileResponse(path)
