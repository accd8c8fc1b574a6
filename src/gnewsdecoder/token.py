"""Extraction of the base64 article token from Google News URLs."""

from urllib.parse import urlsplit

from gnewsdecoder.models import ErrorKind, Outcome
from gnewsdecoder.utils.logging import get_logger

logger = get_logger(__name__)

GOOGLE_NEWS_HOST = "news.google.com"
TOKEN_PARENT_SEGMENTS = ("articles", "read")


def extract_token(source_url: str) -> Outcome[str]:
    """Isolate the base64 token from a Google News article URL.

    Accepts ``https://news.google.com/articles/{token}`` and
    ``https://news.google.com/read/{token}``; query strings are ignored.

    Args:
        source_url: The Google News URL.

    Returns:
        An Outcome holding the token, or an InvalidInputUrl failure.
    """
    if not isinstance(source_url, str):
        return Outcome.fail(ErrorKind.INVALID_INPUT_URL, "invalid URL")

    try:
        parts = urlsplit(source_url.strip())
        hostname = parts.hostname
    except ValueError:
        return Outcome.fail(ErrorKind.INVALID_INPUT_URL, "invalid URL")

    if not parts.scheme or not hostname:
        return Outcome.fail(ErrorKind.INVALID_INPUT_URL, "invalid URL")

    if hostname != GOOGLE_NEWS_HOST:
        logger.debug("Rejected non Google News host", host=hostname)
        return Outcome.fail(
            ErrorKind.INVALID_INPUT_URL,
            f"invalid Google News URL format: unexpected host {hostname}",
        )

    segments = parts.path.split("/")
    if len(segments) < 2 or segments[-2] not in TOKEN_PARENT_SEGMENTS:
        return Outcome.fail(
            ErrorKind.INVALID_INPUT_URL,
            "invalid Google News URL format: expected /articles/{token} or /read/{token}",
        )

    token = segments[-1]
    if not token:
        return Outcome.fail(ErrorKind.INVALID_INPUT_URL, "invalid Google News URL format: empty token")

    return Outcome.success(token)
