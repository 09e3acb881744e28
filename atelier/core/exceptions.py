"""
API errors and the REST framework exception handler.

Views raise DRF exceptions (ValidationError, NotFound, PermissionDenied,
NotAuthenticated) or ConflictError below; api_exception_handler turns all of
them into one JSON shape carrying the request's correlation id.
"""
import logging

from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

from .utils import get_correlation_id

logger = logging.getLogger(__name__)


class ConflictError(APIException):
    """The request conflicts with the current state of the resource"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict with current resource state.'
    default_code = 'conflict'


def _message_from(data):
    if isinstance(data, dict):
        if 'detail' in data:
            return str(data['detail'])
        for field, errors in data.items():
            if isinstance(errors, (list, tuple)) and errors:
                return f"{field}: {errors[0]}"
            return f"{field}: {errors}"
        return 'Request failed'
    if isinstance(data, (list, tuple)) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    request = context.get('request')
    correlation_id = get_correlation_id(request)
    path = request.path if request is not None else None

    response = exception_handler(exc, context)
    if response is None:
        logger.exception(f"Unhandled error [{correlation_id}] on {path}: {str(exc)}")
        body = {
            'error': 'InternalServerError',
            'message': 'An unexpected error occurred',
            'correlation_id': correlation_id,
            'timestamp': timezone.now().isoformat(),
            'path': path,
            'status_code': status.HTTP_500_INTERNAL_SERVER_ERROR,
        }
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    if response.status_code >= 500:
        logger.error(f"API error [{correlation_id}] on {path}: {str(exc)}")
    else:
        logger.info(f"API error {response.status_code} [{correlation_id}] on {path}: {str(exc)}")

    response.data = {
        'error': type(exc).__name__,
        'message': _message_from(response.data),
        'detail': response.data,
        'correlation_id': correlation_id,
        'timestamp': timezone.now().isoformat(),
        'path': path,
        'status_code': response.status_code,
    }
    response['X-Correlation-ID'] = correlation_id
    return response
