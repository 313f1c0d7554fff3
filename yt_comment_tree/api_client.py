"""
YouTube Data API v3 client.

Wraps the three list endpoints this tool needs (channel lookup, playlist
items, comment threads / replies), retries transient failures, routes every
request through the shared QuotaGate and decodes JSON pages into models.
"""

import logging
import random
import threading
import time

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import CONFIG
from .errors import (
    NETWORK_ERRORS,
    ChannelNotFound,
    MalformedResponse,
    TransientNetworkError,
    classify_http_error,
)
from .models import Channel, CommentThread, Page, Reply, TopLevelComment, Video
from .quota import QuotaGate

logger = logging.getLogger(__name__)


def build_youtube_service(credentials):
    """
    Initialize a YouTube Data API v3 service object.

    Parameters:
        credentials: A credential provider exposing ``build_kwargs()``

    Returns:
        Resource: The googleapiclient service object
    """
    return build("youtube", CONFIG['api_version'], cache_discovery=False, **credentials.build_kwargs())


class YouTubeApiClient:
    """
    Authenticated, paginated access to the endpoints used by the extractor.

    googleapiclient service objects are not thread-safe, so each worker
    thread lazily builds its own service. The credential provider and the
    quota gate are shared.
    """

    def __init__(
        self,
        credentials,
        quota_gate=None,
        service_factory=None,
        retry_attempts=None,
        backoff_base=None,
        sleep=time.sleep,
    ):
        self._credentials = credentials
        self._gate = quota_gate if quota_gate is not None else QuotaGate()
        self._service_factory = service_factory or build_youtube_service
        self._retry_attempts = CONFIG['retry_attempts'] if retry_attempts is None else retry_attempts
        self._backoff_base = CONFIG['backoff_base'] if backoff_base is None else backoff_base
        self._sleep = sleep
        self._local = threading.local()

    @property
    def quota_gate(self):
        return self._gate

    def _service(self):
        service = getattr(self._local, 'service', None)
        if service is None:
            service = self._service_factory(self._credentials)
            self._local.service = service
        return service

    def _execute(self, operation, make_request):
        """
        Execute an API call with exponential backoff retry logic for transient errors.

        Parameters:
            operation (str): The API operation type (e.g., 'commentThreads.list')
            make_request (callable): ``make_request(service)`` returning an unexecuted request

        Returns:
            dict: The decoded JSON response

        Raises:
            YouTubeError: The classified error once it is not retryable or retries are exhausted
        """
        for attempt in range(self._retry_attempts + 1):
            self._gate.acquire(operation)
            try:
                return make_request(self._service()).execute()
            except HttpError as e:
                error, cause = classify_http_error(e, operation), e
            except NETWORK_ERRORS as e:
                error, cause = TransientNetworkError(f"{operation} failed: {e}"), e

            if not isinstance(error, TransientNetworkError):
                raise error from cause
            if attempt >= self._retry_attempts:
                logger.error(f"Max retries ({self._retry_attempts}) exceeded for {operation}. Giving up.")
                raise error from cause

            # Formula: base * 2^attempt + random(0, base)
            wait_time = self._backoff_base * (2 ** attempt) + random.uniform(0, self._backoff_base)
            logger.warning(
                f"{error}. Retrying in {wait_time:.1f}s... (attempt {attempt + 1}/{self._retry_attempts})"
            )
            self._sleep(wait_time)

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def fetch_channel(self, handle):
        """
        Resolve a channel handle (``@name``) or channel ID (``UC...``) in one lookup.

        Every channel has an automatically generated "uploads" playlist that
        contains all of its videos; its ID comes back in the same response.

        Raises:
            ChannelNotFound: If no channel matches
            MalformedResponse: If the channel has no uploads playlist
        """
        identifier = handle.strip()
        if identifier.startswith("UC") and len(identifier) == 24:
            lookup = {'id': identifier}
        else:
            lookup = {'forHandle': identifier if identifier.startswith("@") else f"@{identifier}"}

        response = self._execute(
            'channels.list',
            lambda youtube: youtube.channels().list(part="id,snippet,contentDetails", **lookup),
        )

        items = response.get('items') or []
        if not items:
            raise ChannelNotFound(f"Channel not found: {identifier}")

        item = items[0]
        uploads = item.get('contentDetails', {}).get('relatedPlaylists', {}).get('uploads')
        if not item.get('id') or not uploads:
            raise MalformedResponse(f"Unable to get upload playlist id for channel {identifier}")

        return Channel(
            channel_id=item['id'],
            uploads_playlist_id=uploads,
            title=item.get('snippet', {}).get('title', ""),
        )

    def fetch_playlist_page(self, playlist_id, page_token=None):
        response = self._execute(
            'playlistItems.list',
            lambda youtube: youtube.playlistItems().list(
                part="snippet,contentDetails",
                playlistId=playlist_id,
                maxResults=CONFIG['max_results_videos'],
                pageToken=page_token,
            ),
        )
        return _decode_page(response, _decode_video, "playlist item")

    def fetch_comment_threads_page(self, video_id, page_token=None):
        response = self._execute(
            'commentThreads.list',
            lambda youtube: youtube.commentThreads().list(
                part="snippet,replies",
                videoId=video_id,
                maxResults=CONFIG['max_results_comments'],
                textFormat="plainText",
                pageToken=page_token,
            ),
        )
        return _decode_page(response, _decode_thread, "comment thread")

    def fetch_replies_page(self, parent_id, page_token=None):
        response = self._execute(
            'comments.list',
            lambda youtube: youtube.comments().list(
                part="snippet",
                parentId=parent_id,
                maxResults=CONFIG['max_results_comments'],
                textFormat="plainText",
                pageToken=page_token,
            ),
        )
        return _decode_page(response, _decode_reply, "reply")


# ============================================================================
# RESPONSE DECODING
# ============================================================================

def _decode_page(response, decode_item, kind):
    """Decode every item of a page, skipping (and logging) malformed ones."""
    items = []
    for raw in response.get('items') or []:
        try:
            items.append(decode_item(raw))
        except MalformedResponse as e:
            logger.warning(f"Skipping malformed {kind}: {e}")
    return Page(items=items, next_page_token=response.get('nextPageToken') or None)


def _require(mapping, *path):
    value = mapping
    for key in path:
        if not isinstance(value, dict) or value.get(key) is None:
            raise MalformedResponse(f"missing field {'.'.join(path)}")
        value = value[key]
    return value


def _comment_text(snippet):
    text = snippet.get('textOriginal')
    if text is None:
        text = snippet.get('textDisplay')
    if text is None:
        raise MalformedResponse("missing field snippet.textOriginal")
    return text


def _decode_video(item):
    # Structure: item['contentDetails']['videoId'] and item['snippet']['title']
    video_id = item.get('contentDetails', {}).get('videoId')
    if video_id is None:
        video_id = _require(item, 'snippet', 'resourceId', 'videoId')
    return Video(video_id=video_id, title=_require(item, 'snippet', 'title'))


def _decode_reply(item):
    snippet = _require(item, 'snippet')
    return Reply(
        text=_comment_text(snippet),
        author_name=_require(snippet, 'authorDisplayName'),
        comment_id=item.get('id', ""),
    )


def _decode_thread(item):
    # Structure: item['snippet']['topLevelComment']['snippet']
    top_level = _require(item, 'snippet', 'topLevelComment')
    top_snippet = _require(top_level, 'snippet')

    replies = []
    for raw in item.get('replies', {}).get('comments', []):
        try:
            replies.append(_decode_reply(raw))
        except MalformedResponse as e:
            logger.warning(f"Skipping malformed reply in thread {item.get('id')}: {e}")

    return CommentThread(
        thread_id=item.get('id') or top_level.get('id', ""),
        top_level_comment=TopLevelComment(
            text=_comment_text(top_snippet),
            author_name=_require(top_snippet, 'authorDisplayName'),
            replies=replies,
            comment_id=top_level.get('id', ""),
        ),
        total_reply_count=int(item['snippet'].get('totalReplyCount') or 0),
    )
