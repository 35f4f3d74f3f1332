import os
import time
import uuid
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request
from .. import config
from ..exceptions import (
    MissingFile,
    PayloadTooLarge,
    UnsupportedMediaType,
    UploadError,
    UploadLimitError,
)

ALLOWED_MIME_TYPES = {"image/jpeg", "image/png"}
ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png"}
CHUNK_SIZE = 64 * 1024
# room for multipart boundaries and part headers around a file at the limit
MULTIPART_ALLOWANCE = 64 * 1024


@dataclass(frozen=True)
class UploadedFile:
    path: str
    filename: str
    original_filename: str
    extension: str
    size: int
    content_type: str


def file_extension(filename: str) -> str:
    return os.path.splitext(os.path.basename(filename or ""))[1]


def is_allowed_image(content_type: str, filename: str) -> bool:
    """Both the declared MIME type and the extension must name a JPEG or PNG."""
    mime = (content_type or "").split(";")[0].strip().lower()
    return mime in ALLOWED_MIME_TYPES and file_extension(filename).lower() in ALLOWED_EXTENSIONS


def generate_filename(original_filename: str) -> str:
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex}{file_extension(original_filename)}"


def upload_size(upload: UploadFile) -> int:
    size = getattr(upload, "size", None)
    if size is not None:
        return size
    upload.file.seek(0, os.SEEK_END)
    size = upload.file.tell()
    upload.file.seek(0)
    return size


def body_limit() -> int:
    return config.MAX_UPLOAD_BYTES + MULTIPART_ALLOWANCE


def check_content_length(headers):
    """Refuse a request whose declared length cannot hold an upload within the limit."""
    length = headers.get("content-length")
    if length is not None and length.isdigit() and int(length) > body_limit():
        logging.warning(f"Rejected request body of {length} bytes before parsing")
        raise PayloadTooLarge()


def limited_receive(receive, limit: int):
    """Wrap an ASGI `receive` so the body is abandoned once it passes `limit` bytes."""
    received = 0

    async def _receive():
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > limit:
                logging.warning(f"Rejected request body after {received} bytes")
                raise PayloadTooLarge()
        return message

    return _receive


def copy_limited(src, dest_path: str, limit: int) -> int:
    """Stream `src` into `dest_path`, refusing to write more than `limit` bytes."""
    written = 0
    try:
        with open(dest_path, "wb") as out:
            while True:
                chunk = src.read(CHUNK_SIZE)
                if not chunk:
                    break
                written += len(chunk)
                if written > limit:
                    raise PayloadTooLarge()
                out.write(chunk)
    except Exception:
        if os.path.exists(dest_path):
            os.remove(dest_path)
        raise
    return written


def validate_form(form) -> UploadFile:
    """Pick the single image upload out of a parsed form, enforcing every constraint.

    Precedence: size, then upload-layer limits (unexpected or repeated file
    fields), then presence, then media type.
    """
    files = [(key, value) for key, value in form.multi_items() if isinstance(value, UploadFile)]

    for key, upload in files:
        if upload_size(upload) > config.MAX_UPLOAD_BYTES:
            logging.warning(f"Rejected upload {upload.filename!r}: larger than {config.MAX_UPLOAD_BYTES} bytes")
            raise PayloadTooLarge()

    images = [upload for key, upload in files if key == config.UPLOAD_FIELD]
    if len(images) != len(files) or len(images) > 1:
        logging.warning(f"Rejected upload: unexpected file fields {[key for key, _ in files]}")
        raise UploadLimitError()

    if not images:
        raise MissingFile()

    upload = images[0]
    if not is_allowed_image(upload.content_type, upload.filename):
        logging.warning(f"Rejected upload {upload.filename!r} with type {upload.content_type}")
        raise UnsupportedMediaType()
    return upload


async def accept_upload(form) -> UploadedFile:
    upload = validate_form(form)

    os.makedirs(config.UPLOAD_DIR, exist_ok=True)
    filename = generate_filename(upload.filename)
    path = os.path.join(config.UPLOAD_DIR, filename)
    await upload.seek(0)
    try:
        size = await run_in_threadpool(copy_limited, upload.file, path, config.MAX_UPLOAD_BYTES)
    except OSError as e:
        logging.error(f"Failed to store upload {upload.filename!r}: {e}")
        raise UploadError() from e

    logging.info(f"Stored upload {upload.filename!r} as {path} ({size} bytes)")
    return UploadedFile(
        path=path,
        filename=filename,
        original_filename=upload.filename,
        extension=file_extension(upload.filename),
        size=size,
        content_type=upload.content_type,
    )


def remove_upload(uploaded: UploadedFile):
    try:
        os.remove(uploaded.path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logging.warning(f"Could not remove {uploaded.path}: {e}")


@asynccontextmanager
async def stored_upload(request):
    """Parse, validate and store the request's image; the file is deleted on exit."""
    check_content_length(request.headers)
    bounded = Request(request.scope, limited_receive(request.receive, body_limit()))
    try:
        form = await bounded.form()
    except (MultiPartException, HTTPException) as e:
        logging.warning(f"Malformed upload body: {e}")
        raise UploadError() from e

    uploaded = None
    try:
        uploaded = await accept_upload(form)
        yield uploaded
    finally:
        if uploaded is not None:
            remove_upload(uploaded)
        await form.close()
