"""
Fetching of supplementary markdown behind externalDocs URLs.
"""

import logging
from typing import Optional

import requests

logger = logging.getLogger(__name__)

ACCEPT_HEADER = 'text/markdown, text/plain, */*'


def fetch_external_docs(
    url: str,
    timeout: Optional[float] = 30.0,
    session: Optional[requests.Session] = None,
) -> Optional[str]:
    """
    Download the document behind an externalDocs URL.

    Args:
        url: Documentation URL
        timeout: Request timeout in seconds, None to wait indefinitely
        session: Optional session to issue the request with

    Returns:
        Response text, or None when the request fails or is not successful
    """
    logger.debug(f"Fetching external docs from {url}")
    getter = session.get if session is not None else requests.get
    try:
        resp = getter(url, headers={'Accept': ACCEPT_HEADER}, timeout=timeout)
    except requests.exceptions.RequestException as e:
        logger.warning(f"Error fetching external docs from {url}: {e}")
        return None

    if not resp.ok:
        logger.warning(f"Failed to fetch external docs from {url}: {resp.status_code}")
        return None

    return resp.text
