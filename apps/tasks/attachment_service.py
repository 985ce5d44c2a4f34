"""
Attachment service for task file uploads.
Blobs go through default_storage, so S3 and local storage behave the same.
"""
import io
import logging
import os
import re
import time
import zipfile
from typing import List, Optional
from uuid import UUID

from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import UploadedFile
from PIL import Image, UnidentifiedImageError

from apps.core.exceptions import FieldValidationError
from .models import TaskAttachment

logger = logging.getLogger(__name__)

# Allowed extensions and the MIME types accepted for each
ALLOWED_TYPES = {
    'jpg': {'image/jpeg'},
    'jpeg': {'image/jpeg'},
    'png': {'image/png'},
    'gif': {'image/gif'},
    'webp': {'image/webp'},
    'pdf': {'application/pdf'},
    'doc': {'application/msword'},
    'docx': {'application/vnd.openxmlformats-officedocument.wordprocessingml.document'},
    'txt': {'text/plain'},
    'zip': {'application/zip', 'application/x-zip-compressed'},
    'rar': {'application/vnd.rar', 'application/x-rar-compressed', 'application/x-rar'},
    'mp4': {'video/mp4'},
    'mpeg': {'video/mpeg', 'audio/mpeg'},
}

THUMBNAIL_MIME_TYPES = {'image/jpeg', 'image/png', 'image/gif', 'image/webp'}
THUMBNAIL_SIZE = (150, 150)
THUMBNAIL_QUALITY = 80

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB

ATTACHMENT_DIR = 'attachments'
THUMBNAIL_DIR = 'thumbnails'


def sanitize_filename(name: str) -> str:
    """Replace every character outside [A-Za-z0-9.-] with an underscore."""
    return re.sub(r'[^A-Za-z0-9.\-]', '_', os.path.basename(name))


def _extension(name: str) -> str:
    return os.path.splitext(name)[1].lstrip('.').lower()


def _image_mime_type(file: UploadedFile) -> Optional[str]:
    """MIME type of a decodable image Pillow can thumbnail, else None."""
    file.seek(0)
    try:
        image = Image.open(file)
        mime_type = Image.MIME.get(image.format)
        image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        return None
    finally:
        file.seek(0)
    return mime_type if mime_type in THUMBNAIL_MIME_TYPES else None


def _zip_mime_type(file: UploadedFile) -> str:
    file.seek(0)
    try:
        with zipfile.ZipFile(file) as archive:
            names = set(archive.namelist())
    except zipfile.BadZipFile:
        return 'application/octet-stream'
    finally:
        file.seek(0)
    if 'word/document.xml' in names:
        return 'application/vnd.openxmlformats-officedocument.wordprocessingml.document'
    return 'application/zip'


def detect_mime_type(file: UploadedFile) -> str:
    """
    Detect the MIME type from the file contents.

    The client's Content-Type header is not trusted: images must decode,
    other formats are recognised by their leading bytes, and anything else
    is text/plain only when it decodes as UTF-8 without NUL bytes.
    """
    image_type = _image_mime_type(file)
    if image_type:
        return image_type

    file.seek(0)
    head = file.read(2048)
    file.seek(0)

    if head.startswith(b'%PDF-'):
        return 'application/pdf'
    if head.startswith(b'PK\x03\x04'):
        return _zip_mime_type(file)
    if head.startswith(b'Rar!\x1a\x07'):
        return 'application/vnd.rar'
    if head.startswith(b'\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1'):
        return 'application/msword'
    if head[4:8] == b'ftyp':
        return 'video/mp4'
    if head.startswith((b'\x00\x00\x01\xba', b'\x00\x00\x01\xb3')):
        return 'video/mpeg'
    if head.startswith(b'ID3') or head[:2] in (b'\xff\xfb', b'\xff\xf3', b'\xff\xf2'):
        return 'audio/mpeg'

    if b'\x00' not in head:
        try:
            head.decode('utf-8')
            return 'text/plain'
        except UnicodeDecodeError as e:
            # A multi-byte sequence cut at the read boundary is still text
            if e.start >= len(head) - 3:
                return 'text/plain'
    return 'application/octet-stream'


def validate_upload_file(file: UploadedFile) -> str:
    """
    Validate an uploaded attachment.

    Returns:
        The MIME type detected from the file contents

    Raises:
        FieldValidationError: If the file is too large, of a disallowed type,
            or its contents do not match its extension
    """
    if file.size > MAX_FILE_SIZE:
        raise FieldValidationError(
            'file', f"The file may not be greater than {MAX_FILE_SIZE // 1024} kilobytes."
        )

    mime_type = detect_mime_type(file)
    allowed = ALLOWED_TYPES.get(_extension(file.name))
    if not allowed or mime_type not in allowed:
        raise FieldValidationError(
            'file', f"The file must be a file of type: {', '.join(ALLOWED_TYPES)}."
        )

    return mime_type


def create_thumbnail(file: UploadedFile, path: str) -> Optional[str]:
    """
    Write a 150x150 (aspect-preserving) JPEG thumbnail for an image upload.

    Returns:
        Stored thumbnail path, or None if the image could not be processed
    """
    try:
        file.seek(0)
        image = Image.open(file)
        image.thumbnail(THUMBNAIL_SIZE, Image.Resampling.LANCZOS)
        if image.mode != 'RGB':
            image = image.convert('RGB')

        output = io.BytesIO()
        image.save(output, format='JPEG', quality=THUMBNAIL_QUALITY)
        return default_storage.save(path, ContentFile(output.getvalue()))
    except Exception as e:
        logger.warning(f"Thumbnail generation failed for {path}: {e}")
        return None


def upload_attachment(file: UploadedFile, task_id: UUID, uploaded_by_id: UUID) -> TaskAttachment:
    """
    Store an uploaded file against a task.

    Raises:
        FieldValidationError: If validation fails
    """
    mime_type = validate_upload_file(file)

    timestamp = int(time.time())
    safe_name = sanitize_filename(file.name)
    logger.info(f"Uploading attachment {safe_name} for task {task_id}")

    file.seek(0)
    file_path = default_storage.save(f"{ATTACHMENT_DIR}/{timestamp}_{safe_name}", file)

    thumbnail_path = None
    if mime_type in THUMBNAIL_MIME_TYPES:
        stem = os.path.splitext(safe_name)[0]
        thumbnail_path = create_thumbnail(file, f"{THUMBNAIL_DIR}/thumb_{timestamp}_{stem}.jpg")

    attachment = TaskAttachment.objects.create(
        task_id=task_id,
        file_name=file.name,
        file_path=file_path,
        file_size=file.size,
        mime_type=mime_type,
        thumbnail_path=thumbnail_path,
        uploaded_by_id=uploaded_by_id,
    )
    logger.info(f"Stored attachment {attachment.id} at {file_path}")
    return attachment


def list_attachments(task_id: UUID) -> List[TaskAttachment]:
    """Attachments for a task, newest first."""
    return list(
        TaskAttachment.objects.filter(task_id=task_id)
        .select_related('uploaded_by')
        .order_by('-created_at')
    )


def get_attachment(attachment_id: UUID) -> Optional[TaskAttachment]:
    """Attachment with its (live) task loaded, or None."""
    return (
        TaskAttachment.objects.select_related('task', 'uploaded_by')
        .filter(id=attachment_id, task__deleted_at__isnull=True)
        .first()
    )


def open_attachment(attachment: TaskAttachment):
    """Open the stored blob for reading, or None when it is missing."""
    if not default_storage.exists(attachment.file_path):
        logger.warning(f"Blob missing for attachment {attachment.id}: {attachment.file_path}")
        return None
    return default_storage.open(attachment.file_path, 'rb')


def delete_attachment(attachment: TaskAttachment) -> None:
    """Delete the blob, its thumbnail and the row. Missing blobs are ignored."""
    for path in (attachment.file_path, attachment.thumbnail_path):
        if path and default_storage.exists(path):
            default_storage.delete(path)

    logger.info(f"Deleted attachment {attachment.id}")
    attachment.delete()
