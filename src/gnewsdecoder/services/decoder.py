"""Google News URL decoding pipeline."""

import asyncio

from pydantic import ValidationError

from gnewsdecoder.clients.batchexecute import BatchExecuteClient
from gnewsdecoder.clients.params import ParamsFetcher
from gnewsdecoder.config import Settings, get_settings
from gnewsdecoder.models import DecodeOutcome, ErrorKind
from gnewsdecoder.token import extract_token
from gnewsdecoder.utils.logging import get_logger

logger = get_logger(__name__)


class GoogleNewsDecoder:
    """Decodes Google News article links into the original publisher URLs."""

    def __init__(
        self,
        params_fetcher: ParamsFetcher,
        rpc_client: BatchExecuteClient,
        interval: float = 0.0,
    ) -> None:
        self._params = params_fetcher
        self._rpc = rpc_client
        self._interval = interval

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GoogleNewsDecoder":
        """Create a decoder with its own HTTP clients from settings."""
        settings = settings or get_settings()
        return cls(
            params_fetcher=ParamsFetcher(
                timeout=settings.request_timeout, user_agent=settings.user_agent
            ),
            rpc_client=BatchExecuteClient(
                timeout=settings.request_timeout, user_agent=settings.user_agent
            ),
            interval=settings.interval,
        )

    async def close(self) -> None:
        """Close the underlying HTTP clients."""
        try:
            await self._params.close()
        finally:
            await self._rpc.close()

    async def __aenter__(self) -> "GoogleNewsDecoder":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def decode(self, source_url: str, interval: float | None = None) -> DecodeOutcome:
        """Decode a Google News URL.

        Args:
            source_url: A news.google.com /articles/ or /read/ URL.
            interval: Seconds to wait between parameter retrieval and the RPC call.
                Defaults to the decoder's configured interval.

        Returns:
            DecodeOutcome with the decoded URL, or the failure of the first stage that failed.
        """
        token = extract_token(source_url)
        if not token.ok:
            logger.warning("Invalid Google News URL", url=source_url, reason=token.reason)
            return DecodeOutcome(failure=token.failure)

        params = await self._params.fetch(token.value)
        if not params.ok:
            logger.warning("Decoding params unavailable", token=token.value, reason=params.reason)
            return DecodeOutcome(failure=params.failure)

        delay = self._interval if interval is None else interval
        if delay > 0:
            logger.debug("Pausing before batchexecute", seconds=delay)
            await asyncio.sleep(delay)

        return await self._rpc.decode(params.value)


async def decode_google_news_url(source_url: str, interval: float | None = None) -> DecodeOutcome:
    """Decode a single Google News URL with a short-lived decoder.

    Args:
        source_url: A news.google.com /articles/ or /read/ URL.
        interval: Optional delay in seconds before the RPC call.

    Returns:
        DecodeOutcome with the decoded URL or a failure reason. Invalid
        GNEWSDECODER_ settings yield an InvalidConfiguration failure.
    """
    try:
        settings = get_settings()
    except ValidationError as e:
        logger.error("Invalid decoder settings", error=str(e))
        return DecodeOutcome.fail(ErrorKind.INVALID_CONFIGURATION, str(e))

    async with GoogleNewsDecoder.from_settings(settings) as decoder:
        return await decoder.decode(source_url, interval=interval)
