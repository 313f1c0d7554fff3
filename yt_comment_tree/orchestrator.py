"""
Run orchestration: enumerate a channel's videos, then fetch each video's
comment tree on a bounded worker pool.

With one worker (the default) this is a sequential pipeline: one video's
comments are fully fetched before the next video starts. With more workers
the shared QuotaGate still serializes the request rate, and every result is
written into the slot of its video so the document keeps enumeration order.
"""

import logging
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from typing import List, Optional

from tqdm import tqdm

from .comments import VideoResult, VideoStatus, collect_video_comments
from .config import CONFIG
from .errors import FATAL_ERRORS, RunCancelled
from .models import Channel, VideoCommentsRecord
from .videos import enumerate_channel_videos

logger = logging.getLogger(__name__)

# Seconds between checks for an interrupt while waiting on workers
POLL_INTERVAL = 0.5


@dataclass
class RunSummary:
    total_videos: int = 0
    succeeded: int = 0
    comments_disabled: int = 0
    failed: int = 0
    not_processed: int = 0
    quota_used: int = 0

    @property
    def processed(self) -> int:
        return self.succeeded + self.comments_disabled + self.failed

    def summary_line(self) -> str:
        line = (
            f"Processed {self.processed} of {self.total_videos} videos: "
            f"{self.succeeded} with comments fetched, "
            f"{self.comments_disabled} with comments disabled, "
            f"{self.failed} skipped due to errors"
        )
        if self.not_processed:
            line += f" ({self.not_processed} not processed)"
        return line


@dataclass
class RunResult:
    channel: Channel
    results: List[VideoResult] = field(default_factory=list)
    summary: RunSummary = field(default_factory=RunSummary)
    interrupted: bool = False

    @property
    def document(self) -> List[VideoCommentsRecord]:
        """The output document: one record per processed video, in enumeration order."""
        return [result.record for result in self.results]

    @property
    def failures(self) -> List[VideoResult]:
        return [result for result in self.results if result.status != VideoStatus.OK]


def summarize(results, total_videos, quota_used=0):
    summary = RunSummary(total_videos=total_videos, quota_used=quota_used)
    for result in results:
        if result.status == VideoStatus.OK:
            summary.succeeded += 1
        elif result.status == VideoStatus.COMMENTS_DISABLED:
            summary.comments_disabled += 1
        else:
            summary.failed += 1
    summary.not_processed = total_videos - len(results)
    return summary


def extract_channel_comments(client, handle, workers=None, progress=True):
    """
    Fetch every comment on every video uploaded by a channel.

    Parameters:
        client (YouTubeApiClient): The API client; its quota gate is shared by all workers
        handle (str): The channel handle, e.g. '@smartereveryday'
        workers (int): Number of videos fetched concurrently (default: from CONFIG)
        progress (bool): Show a tqdm progress bar

    Returns:
        RunResult: The assembled document, per-video outcomes and a summary.
            ``interrupted`` is True when the run was cancelled part-way; the
            document then holds only the videos that completed.

    Raises:
        AuthError, QuotaExceeded, ChannelNotFound: Fatal errors. Records completed
            before the error are attached as ``partial_document``.
    """
    workers = max(1, workers or CONFIG['workers'])
    gate = client.quota_gate

    channel, videos = enumerate_channel_videos(client, handle)
    run = RunResult(channel=channel)
    if not videos:
        logger.info("Channel has no uploaded videos. Nothing to do.")
        run.summary = summarize([], 0, gate.used)
        return run

    slots: List[Optional[VideoResult]] = [None] * len(videos)
    fatal_error = None

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="comments")
    futures = {executor.submit(_run_video, client, video): index
               for index, video in enumerate(videos)}
    pending = set(futures)

    try:
        with tqdm(total=len(videos), desc="Processing videos", disable=not progress) as bar:
            while pending:
                try:
                    done, _ = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
                    for future in done:
                        index = futures[future]
                        if not future.cancelled():
                            try:
                                slots[index] = future.result()
                            except RunCancelled:
                                pass
                            except FATAL_ERRORS as e:
                                if fatal_error is None:
                                    fatal_error = e
                                    _stop(gate, pending)
                            except Exception as e:
                                video = videos[index]
                                logger.exception(f"Unexpected error processing video {video.title}")
                                slots[index] = VideoResult(
                                    VideoCommentsRecord(title=video.title, video_id=video.video_id),
                                    VideoStatus.FAILED,
                                    str(e),
                                )
                        # A future leaves pending only once its slot is filled
                        pending.discard(future)
                        if slots[index] is not None:
                            bar.update(1)
                except KeyboardInterrupt:
                    if not run.interrupted:
                        logger.warning("Interrupted by user. Letting in-flight requests finish...")
                    run.interrupted = True
                    _stop(gate, pending)
    except BaseException:
        _stop(gate, pending)
        raise
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    run.results = [result for result in slots if result is not None]
    run.interrupted = run.interrupted or gate.cancelled
    run.summary = summarize(run.results, len(videos), gate.used)

    if fatal_error is not None:
        fatal_error.partial_document = run.document
        raise fatal_error
    return run


def _stop(gate, pending):
    """Refuse new requests and drop videos that have not started yet."""
    gate.cancel()
    for future in pending:
        future.cancel()


def _run_video(client, video):
    try:
        return collect_video_comments(client, video)
    except FATAL_ERRORS:
        # Close the gate before the next queued video can issue a request
        client.quota_gate.cancel()
        raise
