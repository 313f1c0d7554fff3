"""
Shared fixtures: an in-memory stand-in for the googleapiclient YouTube service.

The fake mirrors the resource chain used by the client,
``service.commentThreads().list(**params).execute()``, and serves pages
registered by each test. Page tokens are ``"page-<index>"``.
"""

import json
import threading
from collections import defaultdict

import httplib2
import pytest
from googleapiclient.errors import HttpError

from yt_comment_tree.api_client import YouTubeApiClient
from yt_comment_tree.auth import StaticTokenProvider
from yt_comment_tree.quota import QuotaGate


def make_http_error(status, reason=None):
    body = {"error": {"code": status, "message": reason or "error"}}
    if reason:
        body["error"]["errors"] = [{"reason": reason, "message": reason}]
    return HttpError(httplib2.Response({"status": status}), json.dumps(body).encode("utf-8"))


def playlist_item(video_id, title):
    return {
        "snippet": {"title": title, "resourceId": {"videoId": video_id}},
        "contentDetails": {"videoId": video_id},
    }


def reply_item(reply_id, text, author):
    return {"id": reply_id, "snippet": {"textOriginal": text, "authorDisplayName": author}}


def thread_item(thread_id, text, author, replies=(), total_reply_count=None):
    item = {
        "id": thread_id,
        "snippet": {
            "topLevelComment": {
                "id": thread_id,
                "snippet": {"textOriginal": text, "authorDisplayName": author},
            },
            "totalReplyCount": len(replies) if total_reply_count is None else total_reply_count,
        },
    }
    if replies:
        item["replies"] = {"comments": list(replies)}
    return item


class FakeRequest:
    def __init__(self, handler, params):
        self._handler = handler
        self._params = params

    def execute(self):
        return self._handler(self._params)


class FakeResource:
    def __init__(self, handler):
        self._handler = handler

    def list(self, **params):
        return FakeRequest(self._handler, params)


class FakeYouTube:
    """Serves registered pages and injected failures for the four list endpoints."""

    def __init__(self):
        self.channels_by_handle = {}
        self.playlists = {}
        self.threads = {}
        self.replies = {}
        self.calls = []
        self._failures = defaultdict(list)
        self._lock = threading.Lock()

    # -- setup helpers --------------------------------------------------

    def add_channel(self, handle, channel_id, uploads_playlist_id, title="Channel"):
        self.channels_by_handle[handle] = {
            "id": channel_id,
            "snippet": {"title": title},
            "contentDetails": {"relatedPlaylists": {"uploads": uploads_playlist_id}},
        }

    def fail(self, operation, key, error, page=0, times=1):
        """Raise ``error`` for the given page of ``key``; ``times=None`` fails forever."""
        self._failures[(operation, key, page)].append([error, times])

    # -- googleapiclient surface ----------------------------------------

    def channels(self):
        return FakeResource(self._channels)

    def playlistItems(self):
        return FakeResource(lambda p: self._page("playlistItems.list", p["playlistId"], self.playlists, p))

    def commentThreads(self):
        return FakeResource(lambda p: self._page("commentThreads.list", p["videoId"], self.threads, p))

    def comments(self):
        return FakeResource(lambda p: self._page("comments.list", p["parentId"], self.replies, p))

    # -- internals ------------------------------------------------------

    def _channels(self, params):
        self._record("channels.list", params)
        if "forHandle" in params:
            item = self.channels_by_handle.get(params["forHandle"])
        else:
            item = next((c for c in self.channels_by_handle.values() if c["id"] == params["id"]), None)
        return {"items": [item] if item else []}

    def _page(self, operation, key, pages_by_key, params):
        self._record(operation, params)
        token = params.get("pageToken")
        index = int(token.split("-")[1]) if token else 0
        self._maybe_fail(operation, key, index)

        pages = pages_by_key.get(key, [[]])
        response = {"items": pages[index]}
        if index + 1 < len(pages):
            response["nextPageToken"] = f"page-{index + 1}"
        return response

    def _record(self, operation, params):
        with self._lock:
            self.calls.append((operation, dict(params)))

    def _maybe_fail(self, operation, key, index):
        with self._lock:
            queue = self._failures.get((operation, key, index))
            if not queue:
                return
            entry = queue[0]
            error, times = entry
            if times is not None:
                entry[1] -= 1
                if entry[1] <= 0:
                    queue.pop(0)
        raise error

    def calls_for(self, operation):
        return [params for op, params in self.calls if op == operation]


@pytest.fixture
def youtube():
    return FakeYouTube()


@pytest.fixture
def gate():
    return QuotaGate(min_interval=0.0)


@pytest.fixture
def client(youtube, gate):
    return YouTubeApiClient(
        StaticTokenProvider("test-token"),
        quota_gate=gate,
        service_factory=lambda credentials: youtube,
        backoff_base=0,
        sleep=lambda seconds: None,
    )
