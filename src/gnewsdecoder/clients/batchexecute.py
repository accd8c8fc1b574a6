"""Client for Google News' batchexecute RPC endpoint."""

import json
from urllib.parse import quote

import httpx

from gnewsdecoder.config import DEFAULT_USER_AGENT
from gnewsdecoder.models import DecodeOutcome, DecodingParams, ErrorKind
from gnewsdecoder.utils.logging import get_logger

logger = get_logger(__name__)

BATCHEXECUTE_URL = "https://news.google.com/_/DotsSplashUi/data/batchexecute"
RPC_METHOD = "Fbv4je"
LOCALE = "US:en"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded;charset=UTF-8"

# Characters left unescaped by JavaScript's encodeURIComponent besides A-Z a-z 0-9 - _ . ~
_URI_COMPONENT_SAFE = "!*'()"


class RpcError(Exception):
    """Raised when the batchexecute call or its response parsing fails."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def _compact(value: object) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def build_request_body(params: DecodingParams) -> str:
    """Build the form-encoded ``f.req`` body for a garturlreq call.

    The RPC arguments are themselves a JSON string nested inside the outer
    envelope array; the endpoint rejects anything else.

    Raises:
        RpcError: If the timestamp is not an integer.
    """
    try:
        timestamp = int(params.timestamp)
    except ValueError as e:
        raise RpcError(f"invalid timestamp {params.timestamp!r}") from e

    request = [
        "garturlreq",
        [
            ["X", "X", ["X", "X"], None, None, 1, 1, LOCALE, None, 1, None, None, None, None, None, 0, 1],
            "X",
            "X",
            1,
            [1, 1, 1],
            1,
            1,
            None,
            0,
            0,
            None,
            0,
        ],
        params.token,
        timestamp,
        params.signature,
    ]
    envelope = [[[RPC_METHOD, _compact(request)]]]
    return "f.req=" + quote(_compact(envelope), safe=_URI_COMPONENT_SAFE)


def parse_decoded_url(body: str) -> str:
    """Extract the original URL from a batchexecute response body.

    The body is framed in blocks separated by blank lines; the second block is
    a JSON array whose last two entries are control frames. The first payload
    entry carries the RPC result as a JSON string at index 2, and the decoded
    URL sits at index 1 of that result.

    Raises:
        RpcError: If the response does not have the expected shape.
    """
    try:
        frames = json.loads(body.split("\n\n")[1])[:-2]
        result = json.loads(frames[0][2])
        if not isinstance(result, list):
            raise RpcError("unexpected response shape: result is not an array")
        decoded_url = result[1]
    except json.JSONDecodeError as e:
        raise RpcError(f"malformed response: {e.msg}") from e
    except (IndexError, KeyError, TypeError) as e:
        raise RpcError(f"unexpected response shape: {e}") from e

    if not isinstance(decoded_url, str) or not decoded_url:
        raise RpcError("unexpected response shape: no decoded URL")
    return decoded_url


class BatchExecuteClient:
    """Decodes Google News tokens through the batchexecute RPC."""

    def __init__(self, timeout: float = 30.0, user_agent: str = DEFAULT_USER_AGENT) -> None:
        self._client = httpx.AsyncClient(
            timeout=timeout,
            headers={
                "Content-Type": FORM_CONTENT_TYPE,
                "User-Agent": user_agent,
            },
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "BatchExecuteClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()

    async def decode(self, params: DecodingParams) -> DecodeOutcome:
        """Recover the original article URL for a token.

        Args:
            params: Signature, timestamp and token retrieved from Google News.

        Returns:
            A DecodeOutcome holding the decoded URL, or an RpcDecodeFailed failure.
        """
        logger.info("Calling batchexecute", token=params.token)
        try:
            body = build_request_body(params)
            text = await self._post(body)
            decoded_url = parse_decoded_url(text)
        except RpcError as e:
            logger.warning("batchexecute decoding failed", token=params.token, error=e.reason)
            return DecodeOutcome.fail(ErrorKind.RPC_DECODE_FAILED, e.reason)
        except Exception as e:
            logger.error("Unexpected error in batchexecute", token=params.token, error=str(e))
            return DecodeOutcome.fail(ErrorKind.RPC_DECODE_FAILED, str(e))

        logger.info("Token decoded", token=params.token, url=decoded_url)
        return DecodeOutcome.success(decoded_url)

    async def _post(self, body: str) -> str:
        """POST the form body and return the raw response text.

        Raises:
            RpcError: If the HTTP request fails.
        """
        try:
            response = await self._client.post(BATCHEXECUTE_URL, content=body)
            response.raise_for_status()
            return response.text
        except httpx.HTTPStatusError as e:
            logger.warning("HTTP error from batchexecute", status=e.response.status_code)
            raise RpcError(f"HTTP {e.response.status_code}") from e
        except httpx.TimeoutException as e:
            logger.warning("Timeout calling batchexecute")
            raise RpcError("timeout") from e
        except httpx.RequestError as e:
            logger.warning("Request error calling batchexecute", error=str(e))
            raise RpcError(f"request error: {e}") from e
