"""
Error taxonomy for the YouTube comment tree extractor.

Fatal errors (AuthError, QuotaExceeded, ChannelNotFound) end the run.
Everything else is absorbed per video and reported in the run summary.
"""

import json
import socket

import httplib2


class YouTubeError(Exception):
    """Base class for every error raised while talking to the YouTube Data API."""

    # Items collected before a paginated fetch failed (set by the paginator)
    partial_items = None

    def __init__(self, message, reason=None, status=None):
        super().__init__(message)
        self.reason = reason
        self.status = status


class AuthError(YouTubeError):
    """The credential was rejected. Re-authenticate and run again."""


class QuotaExceeded(YouTubeError):
    """The daily API quota is exhausted. It resets at midnight Pacific Time."""


class ChannelNotFound(YouTubeError):
    """The channel handle could not be resolved."""


class TransientNetworkError(YouTubeError):
    """Connection failure, rate limit or 5xx response. Safe to retry."""


class CommentsDisabled(YouTubeError):
    """The video owner disabled comments."""


class MalformedResponse(YouTubeError):
    """An expected field is missing from an API response."""


class ResourceNotFound(YouTubeError):
    """The requested video, playlist or comment does not exist (404)."""


class ApiRequestError(YouTubeError):
    """Any other non-retryable API error."""


class RunCancelled(YouTubeError):
    """The run was cancelled; no new requests are issued."""


FATAL_ERRORS = (AuthError, QuotaExceeded, ChannelNotFound)

QUOTA_REASONS = {'quotaExceeded', 'dailyLimitExceeded'}
RATE_LIMIT_REASONS = {'rateLimitExceeded', 'userRateLimitExceeded', 'backendError'}
AUTH_REASONS = {
    'authError',
    'keyInvalid',
    'keyExpired',
    'insufficientPermissions',
    'accessNotConfigured',
    'ipRefererBlocked',
    'unauthorized',
}
COMMENTS_DISABLED_REASON = 'commentsDisabled'

# Raised by httplib2 / the socket layer when the request never got a response.
# socket.timeout is only an alias of TimeoutError from Python 3.10 on.
NETWORK_ERRORS = (httplib2.HttpLib2Error, ConnectionError, TimeoutError, socket.timeout)


def parse_http_error_reason(http_error):
    """
    Extract the reason from an HttpError by parsing its content.

    The HttpError object contains a content attribute with JSON-encoded error details.
    This function safely parses the content and extracts the error reason.

    Parameters:
        http_error (HttpError): The HttpError exception object

    Returns:
        str or None: The error reason (e.g., 'commentsDisabled', 'quotaExceeded') or None if not found
    """
    try:
        error_content = json.loads(http_error.content)
        errors = error_content.get('error', {}).get('errors', [{}])
        if errors:
            return errors[0].get('reason')
        return None
    except (ValueError, TypeError, AttributeError, IndexError, KeyError):
        return None


def classify_http_error(http_error, operation):
    """
    Map a googleapiclient HttpError onto the error taxonomy.

    Parameters:
        http_error (HttpError): The error raised by ``request.execute()``
        operation (str): The API operation, used in the message (e.g., 'comments.list')

    Returns:
        YouTubeError: The matching error instance (not raised)
    """
    status = getattr(http_error.resp, 'status', None)
    reason = parse_http_error_reason(http_error)
    message = f"{operation} failed with HTTP {status} ({reason or 'no reason'})"

    if reason in QUOTA_REASONS:
        error_class = QuotaExceeded
    elif reason == COMMENTS_DISABLED_REASON:
        error_class = CommentsDisabled
    elif status == 429 or reason in RATE_LIMIT_REASONS or (status is not None and status >= 500):
        error_class = TransientNetworkError
    elif status == 401 or reason in AUTH_REASONS:
        error_class = AuthError
    elif status == 403 and reason != 'forbidden':
        # 'forbidden' is reported per resource (e.g. a private video), not for the credential
        error_class = AuthError
    elif status == 404:
        error_class = ResourceNotFound
    else:
        error_class = ApiRequestError

    return error_class(message, reason=reason, status=status)
