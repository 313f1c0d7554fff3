"""
Video enumeration: channel handle -> uploads playlist -> list of videos.
"""

import logging

from .errors import ResourceNotFound
from .paginator import paginate

logger = logging.getLogger(__name__)


def resolve_channel(client, handle):
    """
    Resolve a channel handle to its channel ID and uploads playlist ID.

    Parameters:
        client (YouTubeApiClient): The API client
        handle (str): The channel handle, e.g. '@smartereveryday'

    Returns:
        Channel: The resolved channel

    Raises:
        ChannelNotFound: If the handle does not match any channel
    """
    channel = client.fetch_channel(handle)
    logger.info(f"Resolved {handle} to channel {channel.channel_id} ({channel.title or 'untitled'})")
    return channel


def list_uploaded_videos(client, channel):
    """
    Fetch every video in the channel's uploads playlist, in API order.

    A channel without uploads is not an error. The API reports an empty
    uploads playlist either as an empty page or as 404 playlistNotFound.

    Returns:
        list[Video]: All uploaded videos (possibly empty)
    """
    try:
        videos = paginate(
            lambda token: client.fetch_playlist_page(channel.uploads_playlist_id, token),
            description="videos",
        )
    except ResourceNotFound as e:
        if e.partial_items:
            raise
        logger.info(f"Uploads playlist {channel.uploads_playlist_id} not found; channel has no videos")
        return []

    logger.info(f"Found {len(videos)} total videos in channel")
    return videos


def enumerate_channel_videos(client, handle):
    """Resolve the channel, then list its uploads. Returns ``(channel, videos)``."""
    channel = resolve_channel(client, handle)
    return channel, list_uploaded_videos(client, channel)
