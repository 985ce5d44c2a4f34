"""
URL configuration for Taskflow project.
"""
import logging

from django.contrib import admin
from django.urls import path
from django.conf import settings
from django.conf.urls.static import static
from ninja import NinjaAPI
from ninja.errors import ValidationError

from apps.core.exceptions import FieldValidationError

logger = logging.getLogger(__name__)

api = NinjaAPI(
    title="Taskflow API",
    version="1.0.0",
    description="Multi-user task management API",
    docs_url="/docs",
)

from apps.identity.api import router as identity_router
from apps.tasks.api import router as tasks_router
from apps.reports.api import router as reports_router

api.add_router("/", identity_router)
api.add_router("/", tasks_router)
api.add_router("/", reports_router)


# =============================================================================
# Error envelopes
# =============================================================================

INVALID_DATA = "The given data was invalid."

# Sources whose second loc element is the handler argument, not a field
_NESTED_SOURCES = {'body', 'form'}


def _error_field(loc) -> str:
    parts = list(loc)
    if parts and parts[0] in _NESTED_SOURCES and len(parts) > 2:
        parts = parts[2:]
    elif len(parts) > 1:
        parts = parts[1:]
    return '.'.join(str(p) for p in parts) or 'non_field_errors'


def _error_message(field: str, error: dict) -> str:
    if error.get('type') == 'missing':
        return f"The {field.replace('_', ' ')} field is required."
    message = error.get('msg', 'Invalid value')
    return message.removeprefix('Value error, ')


@api.exception_handler(ValidationError)
def validation_errors(request, exc):
    errors = {}
    for error in exc.errors:
        field = _error_field(error.get('loc', ()))
        errors.setdefault(field, []).append(_error_message(field, error))
    return api.create_response(request, {"detail": INVALID_DATA, "errors": errors}, status=422)


@api.exception_handler(FieldValidationError)
def field_validation_errors(request, exc):
    return api.create_response(request, {"detail": INVALID_DATA, "errors": exc.as_errors()}, status=422)


@api.exception_handler(Exception)
def server_errors(request, exc):
    logger.exception(f"Unhandled error on {request.method} {request.path}: {exc}")
    return api.create_response(request, {"detail": "Server error"}, status=500)


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', api.urls),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(
        getattr(settings, 'MEDIA_URL', '/media/'),
        document_root=getattr(settings, 'MEDIA_ROOT', settings.BASE_DIR / 'media')
    )
