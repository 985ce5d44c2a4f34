"""
Storage configuration for Taskflow.
Supports AWS S3 for production and local storage for development.

Attachments, thumbnails and generated reports all go through
``default_storage``, so the backend chosen here decides where blobs live.
"""
import os
from pathlib import Path

# Check if S3 should be used
USE_S3 = os.getenv('USE_S3_STORAGE', 'false').lower() == 'true'


def get_storage_settings(base_dir: Path) -> dict:
    """
    Returns storage-related settings based on environment configuration.

    Args:
        base_dir: The BASE_DIR from Django settings

    Returns:
        Dictionary of storage settings to be merged into Django settings
    """
    static_backend = {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'}

    if USE_S3:
        # Production: Use AWS S3
        return {
            'USE_S3_STORAGE': True,
            'STORAGES': {
                'default': {'BACKEND': 'storages.backends.s3boto3.S3Boto3Storage'},
                'staticfiles': static_backend,
            },
            'MEDIA_URL': os.getenv('MEDIA_URL', '/media/'),
            'MEDIA_ROOT': base_dir / 'media',
            'AWS_ACCESS_KEY_ID': os.getenv('AWS_ACCESS_KEY_ID'),
            'AWS_SECRET_ACCESS_KEY': os.getenv('AWS_SECRET_ACCESS_KEY'),
            'AWS_STORAGE_BUCKET_NAME': os.getenv('AWS_STORAGE_BUCKET_NAME', 'taskflow-files'),
            'AWS_S3_REGION_NAME': os.getenv('AWS_S3_REGION_NAME', 'ap-southeast-1'),
            'AWS_S3_FILE_OVERWRITE': False,
            'AWS_DEFAULT_ACL': 'private',
            'AWS_S3_CUSTOM_DOMAIN': os.getenv('AWS_S3_CUSTOM_DOMAIN') or None,
            'AWS_QUERYSTRING_AUTH': True,  # Use signed URLs for private files
        }

    # Development: Use local file storage
    return {
        'USE_S3_STORAGE': False,
        'STORAGES': {
            'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
            'staticfiles': static_backend,
        },
        'MEDIA_URL': '/media/',
        'MEDIA_ROOT': Path(os.getenv('MEDIA_ROOT', base_dir / 'media')),
    }
