"""Unit tests for the batchexecute RPC client."""

import json
from urllib.parse import unquote

import httpx
import pytest
import respx
from httpx import Response

from gnewsdecoder.clients.batchexecute import (
    BATCHEXECUTE_URL,
    BatchExecuteClient,
    RpcError,
    build_request_body,
    parse_decoded_url,
)
from gnewsdecoder.models import DecodingParams, ErrorKind

PARAMS = DecodingParams(signature="AU_yqLsig", timestamp="1728000000", token="CBMiTOKEN")
DECODED = "https://www.example.com/2024/10/04/story.html"


def rpc_response(url: str) -> str:
    """Build a batchexecute response body carrying a garturlres result."""
    frames = [
        ["wrb.fr", "Fbv4je", json.dumps(["garturlres", url, 1]), None, None, None, "generic"],
        ["di", 44],
        ["af.httprm", 43, "-4851227716374329131", 11],
    ]
    return ")]}'\n\n" + json.dumps(frames) + "\n\n"


class TestBuildRequestBody:
    """Tests for build_request_body."""

    def test_envelope_nests_request_as_json_string(self) -> None:
        """Should form-encode an array whose RPC arguments are a JSON string."""
        body = build_request_body(PARAMS)

        assert body.startswith("f.req=")
        envelope = json.loads(unquote(body[len("f.req="):]))
        method, encoded_request = envelope[0][0]
        assert method == "Fbv4je"
        assert isinstance(encoded_request, str)

        request = json.loads(encoded_request)
        assert request[0] == "garturlreq"
        assert request[1][0][7] == "US:en"
        assert request[-3:] == ["CBMiTOKEN", 1728000000, "AU_yqLsig"]

    def test_encoding_matches_encode_uri_component(self) -> None:
        """Should percent-encode brackets, quotes and commas but not letters."""
        body = build_request_body(PARAMS)
        assert body.startswith('f.req=%5B%5B%5B%22Fbv4je%22%2C%22%5B%5C%22garturlreq%5C%22')
        assert " " not in body

    def test_non_integer_timestamp(self) -> None:
        """Should reject a timestamp that is not an integer."""
        params = DecodingParams(signature="S", timestamp="T", token="TOKEN")
        with pytest.raises(RpcError, match="invalid timestamp"):
            build_request_body(params)


class TestParseDecodedUrl:
    """Tests for parse_decoded_url."""

    def test_extracts_url_from_nested_result(self) -> None:
        """Should return the URL at index 1 of the nested result."""
        assert parse_decoded_url(rpc_response(DECODED)) == DECODED

    def test_missing_second_block(self) -> None:
        """Should raise when the body has no blank-line separated payload."""
        with pytest.raises(RpcError, match="unexpected response shape"):
            parse_decoded_url(")]}'")

    def test_invalid_json(self) -> None:
        """Should raise when the payload block is not JSON."""
        with pytest.raises(RpcError, match="malformed response"):
            parse_decoded_url(")]}'\n\n<html>rate limited</html>")

    def test_result_must_be_an_array(self) -> None:
        """Should reject a result that decodes to a string instead of an array."""
        frames = [["wrb.fr", "Fbv4je", json.dumps("https://x")], ["di", 1], ["af.httprm", 1]]
        with pytest.raises(RpcError, match="result is not an array"):
            parse_decoded_url(")]}'\n\n" + json.dumps(frames))

    def test_missing_array_depth(self) -> None:
        """Should raise when the first frame has no encoded result."""
        body = ")]}'\n\n" + json.dumps([["wrb.fr", "Fbv4je"], ["di", 1], ["af.httprm", 1]])
        with pytest.raises(RpcError, match="unexpected response shape"):
            parse_decoded_url(body)


class TestBatchExecuteClient:
    """Tests for BatchExecuteClient."""

    @pytest.fixture
    def client(self) -> BatchExecuteClient:
        """Create a test client."""
        return BatchExecuteClient()

    @respx.mock
    async def test_decode_success(self, client: BatchExecuteClient) -> None:
        """Should POST the form body with browser headers and return the URL."""
        route = respx.post(BATCHEXECUTE_URL).mock(
            return_value=Response(200, text=rpc_response(DECODED))
        )

        outcome = await client.decode(PARAMS)

        assert outcome.ok is True
        assert outcome.decoded_url == DECODED
        request = route.calls.last.request
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded;charset=UTF-8"
        assert "Mozilla/5.0" in request.headers["User-Agent"]
        assert request.content.decode() == build_request_body(PARAMS)
        await client.close()

    @respx.mock
    async def test_malformed_response(self, client: BatchExecuteClient) -> None:
        """Should return an RpcDecodeFailed outcome instead of raising."""
        respx.post(BATCHEXECUTE_URL).mock(return_value=Response(200, text=")]}'\n\n[[]]"))

        outcome = await client.decode(PARAMS)

        assert outcome.ok is False
        assert outcome.kind is ErrorKind.RPC_DECODE_FAILED
        assert "RpcDecodeFailed" in outcome.reason
        await client.close()

    @respx.mock
    async def test_http_error(self, client: BatchExecuteClient) -> None:
        """Should report the HTTP status on non-2xx responses."""
        respx.post(BATCHEXECUTE_URL).mock(return_value=Response(429))

        outcome = await client.decode(PARAMS)

        assert outcome.reason == "RpcDecodeFailed: HTTP 429"
        await client.close()

    @respx.mock
    async def test_network_error(self, client: BatchExecuteClient) -> None:
        """Should report request errors."""
        respx.post(BATCHEXECUTE_URL).mock(side_effect=httpx.ConnectError("connection reset"))

        outcome = await client.decode(PARAMS)

        assert outcome.ok is False
        assert outcome.reason.startswith("RpcDecodeFailed: request error")
        await client.close()

    async def test_invalid_timestamp_skips_request(self, client: BatchExecuteClient) -> None:
        """Should fail before any network call when the timestamp is not numeric."""
        with respx.mock(assert_all_called=False) as router:
            route = router.post(BATCHEXECUTE_URL)
            outcome = await client.decode(DecodingParams(signature="S", timestamp="x", token="T"))

        assert outcome.kind is ErrorKind.RPC_DECODE_FAILED
        assert not route.called
        await client.close()
