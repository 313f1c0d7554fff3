"""
YouTube Comment Tree Extraction Tool

Fetches every comment and reply on every video of a YouTube channel using the
YouTube Data API v3 and saves them as one JSON document.

Usage:
  python main.py @smartereveryday
  python main.py @smartereveryday --output-name smarter.json --workers 4
"""

import sys

from yt_comment_tree.cli import main

if __name__ == "__main__":
    sys.exit(main())
