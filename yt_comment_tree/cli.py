"""
Command-line interface.

Download all comments on all videos uploaded to a YouTube channel and store
the output in a JSON file.
"""

import argparse
import logging
import sys

from dotenv import load_dotenv
from tqdm.contrib.logging import logging_redirect_tqdm

from . import __version__
from .api_client import YouTubeApiClient
from .auth import ApiKeyProvider, OAuthCredentialProvider
from .config import CONFIG, env_setting
from .errors import AuthError, ChannelNotFound, QuotaExceeded, YouTubeError
from .orchestrator import extract_channel_comments
from .output import atomic_write_json, write_document
from .quota import QuotaGate

logger = logging.getLogger(__name__)


def setup_logging(verbose=False):
    """Configure logging with a console handler."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler()],
    )
    # googleapiclient logs every discovery lookup at INFO
    logging.getLogger('googleapiclient').setLevel(logging.WARNING)


def build_parser():
    parser = argparse.ArgumentParser(
        prog='yt-comment-tree',
        description='Download all comments on all videos uploaded to a YouTube channel '
                    'and store the output in a JSON file.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Sign in with OAuth (client_secret.json from the Google Cloud console)
  yt-comment-tree @smartereveryday

  # Use an API key instead (public videos only)
  yt-comment-tree @smartereveryday --api-key "YOUR_KEY"

  # Fetch four videos at a time, at most five requests per second
  yt-comment-tree @smartereveryday --workers 4 --min-interval 0.2
        """
    )
    parser.add_argument(
        'channel_handle',
        help='Handle of the channel for whose videos comments will be fetched. Ex: @smartereveryday'
    )
    parser.add_argument(
        '--token-cache-name',
        default=env_setting('YOUTUBE_TOKEN_CACHE', CONFIG['token_cache_name']),
        help='Name of the file that will be used to cache the OAuth token (default: %(default)s)'
    )
    parser.add_argument(
        '--client-secret-name',
        default=env_setting('YOUTUBE_CLIENT_SECRET', CONFIG['client_secret_name']),
        help='Name of the file the OAuth client secret is read from, as downloaded from the '
             'Credentials section of the Google Cloud console (default: %(default)s)'
    )
    parser.add_argument(
        '--output-name',
        default=CONFIG['output_name'],
        help='Name of the file where comment JSON will be dumped (default: %(default)s)'
    )
    parser.add_argument(
        '--api-key',
        default=env_setting('YOUTUBE_API_KEY'),
        help='YouTube Data API v3 key; skips OAuth (overrides .env file)'
    )
    parser.add_argument(
        '--workers',
        type=int,
        default=CONFIG['workers'],
        help='Number of videos fetched concurrently (default: %(default)s)'
    )
    parser.add_argument(
        '--min-interval',
        type=float,
        default=CONFIG['min_request_interval'],
        help='Minimum seconds between two API requests, across all workers (default: %(default)s)'
    )
    parser.add_argument(
        '--failures-name',
        help='Write the list of videos with disabled or failed comments to this JSON file'
    )
    parser.add_argument(
        '--write-partial',
        action='store_true',
        help='Write the comments collected so far even when the run stops on a fatal error'
    )
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def make_credentials(args):
    if args.api_key:
        return ApiKeyProvider(args.api_key)
    provider = OAuthCredentialProvider(args.client_secret_name, args.token_cache_name)
    # Prompt up front so the browser flow never starts inside a worker thread
    provider.get_credentials()
    return provider


def print_banner(*lines):
    print()
    print("=" * 70)
    for line in lines:
        print(line)
    print("=" * 70)


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    if args.workers < 1:
        logger.error("--workers must be at least 1")
        return 1

    try:
        credentials = make_credentials(args)
    except (AuthError, ValueError, OSError) as e:
        logger.error(f"Authentication failed: {e}")
        return 1

    gate = QuotaGate(min_interval=args.min_interval)
    client = YouTubeApiClient(credentials, quota_gate=gate)

    logger.info(f"Processing channel: {args.channel_handle}")
    try:
        with logging_redirect_tqdm():
            run = extract_channel_comments(
                client, args.channel_handle, workers=args.workers, progress=not args.no_progress
            )
    except KeyboardInterrupt:
        print("\n\nScript interrupted by user before any comments were fetched. Nothing was written.")
        return 0
    except QuotaExceeded as e:
        _write_partial(args, e)
        print_banner(
            "API quota exceeded. Stopping...",
            f"Quota used this run: {gate.used} units (of {gate.daily_limit} daily limit)",
            "Quota resets at midnight Pacific Time (PT).",
        )
        return 1
    except AuthError as e:
        _write_partial(args, e)
        logger.error(f"Authentication failed: {e}")
        if not args.api_key:
            logger.error(f"Delete {args.token_cache_name} and run again to re-authenticate.")
        return 1
    except ChannelNotFound as e:
        logger.error(f"Error: {e}")
        logger.error("Please provide a valid channel handle (e.g. @smartereveryday) and try again.")
        return 1
    except YouTubeError as e:
        logger.error(f"Error fetching videos: {e}")
        return 1

    write_document(args.output_name, run.document)
    if args.failures_name and run.failures:
        atomic_write_json(args.failures_name, [result.to_report() for result in run.failures])

    summary = run.summary
    lines = [
        "Interrupted. Progress has been saved." if run.interrupted else "Processing complete!",
        summary.summary_line(),
        f"Data saved to: {args.output_name}",
        f"Quota Usage: {summary.quota_used} units (of {gate.daily_limit} daily limit)",
    ]
    if args.failures_name and run.failures:
        lines.append(f"{len(run.failures)} videos without comments - see {args.failures_name}")
    print_banner(*lines)
    return 0


def _write_partial(args, error):
    document = getattr(error, 'partial_document', None)
    if args.write_partial and document:
        write_document(args.output_name, document)
        logger.warning(f"Wrote {len(document)} completed videos to {args.output_name}")


if __name__ == "__main__":
    sys.exit(main())
