import json

import httpx
import pytest

from vinylzz import OpenAINormalizer
from vinylzz.errors import NormalizerFailure
from vinylzz.estimation import PassthroughNormalizer
from vinylzz.models import RecordMeta


def completion(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def make_normalizer(handler, api_key="sk-test") -> OpenAINormalizer:
    transport = httpx.MockTransport(handler)
    return OpenAINormalizer(
        api_key=api_key, http_client=httpx.AsyncClient(transport=transport)
    )


@pytest.mark.asyncio
async def test_normalizer_rewrites_artist_and_title():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(
            200,
            json=completion(json.dumps({"artist": "Can", "title": "Tago Mago", "catno": "X"})),
        )

    normalizer = make_normalizer(handler)
    meta = RecordMeta(artist="CAN (2)", title="TAGO MAGO lp", catno="UAS 29211")

    clean = await normalizer.normalize(meta)

    assert clean == RecordMeta(artist="Can", title="Tago Mago", catno="UAS 29211")

    request = requests[0]
    assert request.url.path == "/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer sk-test"
    body = json.loads(request.content)
    assert body["model"] == "gpt-4o-mini"
    assert body["temperature"] == 0.2
    assert body["response_format"] == {"type": "json_object"}
    assert "CAN (2)" in body["messages"][1]["content"]


@pytest.mark.asyncio
async def test_missing_fields_keep_original_values():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=completion('{"artist": "", "title": null}'))

    meta = RecordMeta(artist="Artist A", title="Title B")
    assert await make_normalizer(handler).normalize(meta) == meta


@pytest.mark.asyncio
async def test_unconfigured_normalizer_returns_input():
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    normalizer = make_normalizer(handler, api_key=None)
    meta = RecordMeta(artist="Artist A")

    assert not normalizer.configured
    assert await normalizer.normalize(meta) is meta


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": {"message": "server error"}}),
        httpx.Response(200, json=completion("this is not json")),
        httpx.Response(200, json=completion('["artist", "title"]')),
        httpx.Response(200, json={"choices": []}),
    ],
)
async def test_unusable_replies_raise(response):
    def handler(request: httpx.Request) -> httpx.Response:
        return response

    with pytest.raises(NormalizerFailure):
        await make_normalizer(handler).normalize(RecordMeta(artist="A"))


@pytest.mark.asyncio
async def test_network_error_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(NormalizerFailure):
        await make_normalizer(handler).normalize(RecordMeta(artist="A"))


@pytest.mark.asyncio
async def test_passthrough_normalizer():
    meta = RecordMeta(artist="a", title="b")
    normalizer = PassthroughNormalizer()
    assert not normalizer.configured
    assert await normalizer.normalize(meta) is meta
