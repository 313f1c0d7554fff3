"""
YouTube channel comment tree extractor.

Downloads every comment (and every reply) on every video uploaded to a
YouTube channel and stores them as a single JSON document.
"""

__version__ = "0.1.0"
