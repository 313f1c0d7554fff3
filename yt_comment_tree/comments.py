"""
Comment tree building for a single video.

A video's comments come from two endpoints: commentThreads.list returns every
top-level comment with a few replies inlined, and comments.list returns the
full reply list of one thread. The result is a two-level forest.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from .errors import FATAL_ERRORS, CommentsDisabled, RunCancelled, YouTubeError
from .models import CommentThread, Reply, TopLevelComment, Video, VideoCommentsRecord
from .paginator import paginate

logger = logging.getLogger(__name__)


class VideoStatus(str, Enum):
    OK = "ok"
    COMMENTS_DISABLED = "comments_disabled"
    FAILED = "failed"


@dataclass
class VideoResult:
    """Outcome of fetching one video's comments."""
    record: VideoCommentsRecord
    status: VideoStatus = VideoStatus.OK
    error: Optional[str] = None

    @property
    def video_id(self) -> str:
        return self.record.video_id

    def to_report(self) -> dict:
        return {
            "id": self.record.video_id,
            "title": self.record.title,
            "status": self.status.value,
            "error": self.error,
        }


def fetch_comment_threads(client, video_id) -> List[CommentThread]:
    """Retrieve every top-level comment thread of a video, with inlined replies."""
    return paginate(
        lambda token: client.fetch_comment_threads_page(video_id, token),
        description=f"comment threads for {video_id}",
    )


def fetch_all_replies(client, thread: CommentThread) -> List[Reply]:
    """
    Fetch the full reply list of a thread from comments.list.

    comments.list returns every reply of the thread, the inlined ones
    included, so its order is the order kept. An inlined reply the endpoint
    did not return (matched by comment ID) is kept ahead of that list.
    """
    replies = paginate(
        lambda token: client.fetch_replies_page(thread.thread_id, token),
        description=f"replies to {thread.thread_id}",
    )
    fetched_ids = {reply.comment_id for reply in replies if reply.comment_id}
    missing = [reply for reply in thread.top_level_comment.replies
               if not reply.comment_id or reply.comment_id not in fetched_ids]
    return missing + replies


def build_comment_tree(client, video_id) -> List[TopLevelComment]:
    """
    Build the full comment forest of a video.

    Parameters:
        client (YouTubeApiClient): The API client
        video_id (str): The video to fetch comments from

    Returns:
        list[TopLevelComment]: Top-level comments in API order, each with all of its replies

    Raises:
        CommentsDisabled: If the video owner disabled comments
        YouTubeError: For any other failure fetching threads or replies
    """
    comments = []
    for thread in fetch_comment_threads(client, video_id):
        comment = thread.top_level_comment
        if thread.has_more_replies:
            comment.replies = fetch_all_replies(client, thread)

            # Validate that we fetched all expected replies
            if len(comment.replies) != thread.total_reply_count:
                logger.debug(
                    f"Thread {thread.thread_id}: expected {thread.total_reply_count} replies, "
                    f"got {len(comment.replies)}"
                )
        comments.append(comment)
    return comments


def collect_video_comments(client, video: Video) -> VideoResult:
    """
    Fetch one video's comments, absorbing every non-fatal error.

    A video with comments disabled, or whose comments could not be fetched,
    is still recorded (with an empty comment list) so the output keeps one
    entry per enumerated video.

    Raises:
        AuthError, QuotaExceeded: Fatal for the whole run
        RunCancelled: If the run was cancelled while this video was in progress
    """
    record = VideoCommentsRecord(title=video.title, video_id=video.video_id)
    try:
        record.comments = build_comment_tree(client, video.video_id)
    except (RunCancelled,) + FATAL_ERRORS:
        raise
    except CommentsDisabled:
        logger.info(f"Skipping {video.title}: Comments disabled")
        return VideoResult(record, VideoStatus.COMMENTS_DISABLED, "comments disabled")
    except YouTubeError as e:
        logger.error(f"Error processing video {video.title} ({video.video_id}): {e}")
        return VideoResult(record, VideoStatus.FAILED, str(e))

    return VideoResult(record)
