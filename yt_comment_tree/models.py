"""
Domain models for channels, videos and comment threads.

Replies are leaves: the YouTube API only exposes replies one level deep,
attached to the top-level comment, so the tree is modelled as exactly two
levels rather than as a generic recursive structure.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar('T')


@dataclass(frozen=True)
class Channel:
    """A resolved channel. Immutable after resolution."""
    channel_id: str
    uploads_playlist_id: str
    title: str = ""


@dataclass(frozen=True)
class Video:
    video_id: str
    title: str


@dataclass
class Reply:
    """A reply to a top-level comment."""
    text: str
    author_name: str
    # Only used to merge inlined and paginated replies; never serialized
    comment_id: str = field(default="", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "author_name": self.author_name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Reply":
        return cls(text=data["text"], author_name=data["author_name"])


@dataclass
class TopLevelComment:
    """A comment posted directly on a video, with its replies in API order."""
    text: str
    author_name: str
    replies: List[Reply] = field(default_factory=list)
    comment_id: str = field(default="", compare=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "author_name": self.author_name,
            "children": [reply.to_dict() for reply in self.replies],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TopLevelComment":
        return cls(
            text=data["text"],
            author_name=data["author_name"],
            replies=[Reply.from_dict(child) for child in data.get("children", [])],
        )


@dataclass
class CommentThread:
    """
    A decoded commentThreads item.

    The replies inlined by the API (a handful at most) are already attached
    to ``top_level_comment.replies``; ``total_reply_count`` tells whether more
    must be fetched from the comments endpoint.
    """
    thread_id: str
    top_level_comment: TopLevelComment
    total_reply_count: int = 0

    @property
    def inlined_reply_count(self) -> int:
        return len(self.top_level_comment.replies)

    @property
    def has_more_replies(self) -> bool:
        return self.total_reply_count > self.inlined_reply_count


@dataclass
class VideoCommentsRecord:
    """All comments of one video. One entry of the output document."""
    title: str
    video_id: str
    comments: List[TopLevelComment] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "id": self.video_id,
            "comments": [comment.to_dict() for comment in self.comments],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VideoCommentsRecord":
        return cls(
            title=data["title"],
            video_id=data["id"],
            comments=[TopLevelComment.from_dict(c) for c in data.get("comments", [])],
        )


@dataclass
class Page(Generic[T]):
    """One decoded page of a list endpoint."""
    items: List[T]
    next_page_token: Optional[str] = None
