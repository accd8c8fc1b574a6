"""Retrieval of decoding parameters from Google News article pages."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx
from bs4 import BeautifulSoup

from gnewsdecoder.config import DEFAULT_USER_AGENT
from gnewsdecoder.models import DecodingParams, ErrorKind, Outcome
from gnewsdecoder.utils.logging import get_logger

logger = get_logger(__name__)

GOOGLE_NEWS_BASE = "https://news.google.com"

# Direct div child of the c-wiz wrapper that carries the decoding attributes.
PARAMS_SELECTOR = "c-wiz > div[jscontroller]"
SIGNATURE_ATTR = "data-n-a-sg"
TIMESTAMP_ATTR = "data-n-a-ts"


class ParamsError(Exception):
    """Raised when a single page attempt yields no decoding parameters."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


@dataclass(frozen=True)
class PageAttempt:
    """One page surface that may carry the decoding parameters."""

    label: str
    url_template: str

    def url_for(self, token: str) -> str:
        return self.url_template.format(base=GOOGLE_NEWS_BASE, token=token)


ARTICLE_PAGE = PageAttempt(label="articles URL", url_template="{base}/articles/{token}")
RSS_PAGE = PageAttempt(label="RSS URL", url_template="{base}/rss/articles/{token}")


def parse_decoding_params(html: str, token: str) -> DecodingParams:
    """Extract signature and timestamp from a Google News page.

    Raises:
        ParamsError: If the data element or one of its attributes is missing.
    """
    soup = BeautifulSoup(html, "html.parser")
    element = soup.select_one(PARAMS_SELECTOR)
    if element is None:
        raise ParamsError("data element not found")

    signature = element.get(SIGNATURE_ATTR)
    timestamp = element.get(TIMESTAMP_ATTR)
    if not signature or not timestamp:
        raise ParamsError("data attributes missing")

    return DecodingParams(signature=str(signature), timestamp=str(timestamp), token=token)


class ParamsFetcher:
    """Fetches the signature and timestamp bound to a Google News token.

    The article page is tried first, then the RSS article page. Only the error
    of the last attempt is reported when every attempt fails.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = DEFAULT_USER_AGENT,
        attempts: tuple[PageAttempt, ...] = (ARTICLE_PAGE, RSS_PAGE),
    ) -> None:
        self._attempts = attempts
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "ParamsFetcher":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def fetch(self, token: str) -> Outcome[DecodingParams]:
        """Retrieve decoding parameters for a token.

        Args:
            token: The base64 token extracted from the Google News URL.

        Returns:
            An Outcome holding the DecodingParams, or a ParameterRetrievalFailed failure.
        """
        chain = [(attempt, self._attempt_factory(attempt, token)) for attempt in self._attempts]

        last_error: str | None = None
        for attempt, run in chain:
            try:
                params = await run()
            except ParamsError as e:
                logger.warning(
                    "Decoding params attempt failed",
                    token=token,
                    surface=attempt.label,
                    error=e.reason,
                )
                last_error = f"{attempt.label}: {e.reason}"
                continue
            except Exception as e:
                logger.error(
                    "Unexpected error fetching decoding params",
                    token=token,
                    surface=attempt.label,
                    error=str(e),
                )
                last_error = f"{attempt.label}: {e}"
                continue

            logger.info("Decoding params retrieved", token=token, surface=attempt.label)
            return Outcome.success(params)

        return Outcome.fail(
            ErrorKind.PARAMETER_RETRIEVAL_FAILED,
            last_error or "no page attempts configured",
        )

    def _attempt_factory(
        self, attempt: PageAttempt, token: str
    ) -> Callable[[], Awaitable[DecodingParams]]:
        async def run() -> DecodingParams:
            html = await self._fetch_html(attempt.url_for(token))
            return parse_decoding_params(html, token)

        return run

    async def _fetch_html(self, url: str) -> str:
        """Fetch HTML content from a URL.

        Raises:
            ParamsError: If the HTTP request fails.
        """
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error fetching URL", url=url, status=e.response.status_code)
            raise ParamsError(f"HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Timeout fetching URL", url=url)
            raise ParamsError("timeout") from e
        except httpx.RequestError as e:
            logger.warning("Request error fetching URL", url=url, error=str(e))
            raise ParamsError(f"request error: {e}") from e
