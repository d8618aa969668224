"""Tests for the MJ proxy task client (httpx mock transport, no network)."""

import json

import httpx
import pytest

from mjbot.models import ChangeRequest, DescribeRequest, ImagineRequest
from mjbot.task_client import TaskClient

pytestmark = pytest.mark.asyncio


class Recorder:
    """httpx MockTransport handler recording requests."""

    def __init__(self, response: httpx.Response | None = None, error: Exception | None = None):
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(
            200, json={"code": 1, "description": "提交成功", "result": "1320098173412546"}
        )
        self.error = error

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def _client(recorder: Recorder, notify_hook: str = "") -> TaskClient:
    return TaskClient(
        base_url="http://mj.test/mj/",
        notify_hook=notify_hook,
        transport=httpx.MockTransport(recorder),
    )


async def test_imagine_accepted() -> None:
    recorder = Recorder()
    client = _client(recorder)

    result = await client.submit(ImagineRequest(state="G:Bob", prompt="cat --ar 16:9"))
    await client.close()

    assert result.accepted
    assert result.result == "1320098173412546"
    assert str(recorder.requests[0].url) == "http://mj.test/mj/submit/imagine"
    assert recorder.body() == {"state": "G:Bob", "prompt": "cat --ar 16:9"}


async def test_notify_hook_attached_when_configured() -> None:
    recorder = Recorder()
    client = _client(recorder, notify_hook="http://bot.test/notify")

    await client.submit(ChangeRequest(state="Alice", content="1234 U1"))
    await client.close()

    assert str(recorder.requests[0].url) == "http://mj.test/mj/submit/simple-change"
    assert recorder.body() == {
        "state": "Alice",
        "content": "1234 U1",
        "notifyHook": "http://bot.test/notify",
    }


async def test_describe_path() -> None:
    recorder = Recorder()
    client = _client(recorder)

    await client.submit(DescribeRequest(state="Alice", base64="data:image/png;base64,AA"))
    await client.close()

    assert recorder.requests[0].url.path == "/mj/submit/describe"
    assert recorder.body()["base64"] == "data:image/png;base64,AA"


async def test_remote_refusal_passed_through() -> None:
    recorder = Recorder(httpx.Response(200, json={"code": 22, "description": "排队中"}))
    client = _client(recorder)

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == 22
    assert result.description == "排队中"
    assert not result.accepted


async def test_http_error_status() -> None:
    client = _client(Recorder(httpx.Response(502)))

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == 502
    assert result.description == "Bad Gateway"


async def test_transport_error() -> None:
    client = _client(Recorder(error=httpx.ConnectError("refused")))

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == -9
    assert result.description == "MJ服务异常, 请稍后再试"


async def test_invalid_json() -> None:
    client = _client(Recorder(httpx.Response(200, text="<html>oops</html>")))

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == -9


async def test_no_dedup() -> None:
    recorder = Recorder()
    client = _client(recorder)
    request = ImagineRequest(state="Alice", prompt="cat")

    first = await client.submit(request)
    second = await client.submit(request)
    await client.close()

    assert len(recorder.requests) == 2
    assert first == second
    assert first is not second


async def test_null_code_is_internal_error() -> None:
    client = _client(Recorder(httpx.Response(200, json={"code": None, "description": "?"})))

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == -9


async def test_non_numeric_code_is_internal_error() -> None:
    client = _client(Recorder(httpx.Response(200, json={"code": {"x": 1}})))

    result = await client.submit(ImagineRequest(state="Alice", prompt="cat"))
    await client.close()

    assert result.code == -9
    assert result.description == "MJ服务异常, 请稍后再试"
