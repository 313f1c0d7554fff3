"""
Cursor-following pagination shared by every list endpoint.
"""

import logging

from .errors import MalformedResponse

logger = logging.getLogger(__name__)


def paginate(fetch_page, description=None):
    """
    Fetch every page of a list endpoint and concatenate the items.

    YouTube list endpoints return results in pages with a ``nextPageToken``
    cursor. This function starts with no token and keeps requesting pages
    until a page comes back without a next token.

    Parameters:
        fetch_page (callable): ``fetch_page(page_token) -> Page``; called with None first
        description (str): What is being paginated, for log messages

    Returns:
        list: All items, in the order the API returned them

    Raises:
        Exception: Whatever ``fetch_page`` raised, with the items collected so far
            attached as ``partial_items``
        MalformedResponse: If the API hands back a page token that was already used
    """
    items = []
    seen_tokens = set()
    next_page_token = None  # Pagination cursor (None for first page)
    pages = 0

    try:
        while True:
            page = fetch_page(next_page_token)
            items.extend(page.items)
            pages += 1

            next_page_token = page.next_page_token
            if not next_page_token:
                break

            if next_page_token in seen_tokens:
                raise MalformedResponse(
                    f"Page token {next_page_token!r} returned twice while paginating {description or 'results'}"
                )
            seen_tokens.add(next_page_token)
    except Exception as e:
        e.partial_items = items
        raise

    if description:
        logger.debug(f"Fetched {len(items)} {description} in {pages} page(s)")
    return items
