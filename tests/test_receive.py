# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
import io
from dataclasses import dataclass
from unittest.mock import Mock, patch

import pytest
import requests

from sling.builder import ReceiveResult, RequestBuilder
from sling.codecs import UnmarshalFunc
from sling.errors import ResponseDecodeError, UnsupportedContentTypeError
from sling.middleware import DoerFunc
from sling.options import (
    add_header,
    get,
    relative_url,
    timeout,
    url,
    use,
    with_doer,
    with_unmarshaler,
)

JSON_BODY = b'{"color":"red","count":30}'


@dataclass
class TestModel:
    __test__ = False

    color: str = ""
    count: int = 0


def _response(
    *,
    status: int = 200,
    content: bytes = JSON_BODY,
    content_type: str = "application/json",
    url: str = "http://blue.com/model.json",
):
    response = requests.Response()
    response.status_code = status
    response.headers["Content-Type"] = content_type
    response.raw = io.BytesIO(content)
    response.url = url
    response.encoding = "utf-8"
    return response


class RecordingDoer:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.kwargs = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        self.kwargs.append(kwargs)
        return self.responses.pop(0)


def _builder(*responses):
    doer = RecordingDoer(*responses)
    return RequestBuilder(url("http://blue.com/model.json"), with_doer(doer)), doer


def test_do_sends_materialized_request():
    builder, doer = _builder(_response(status=204, content=b""))
    builder.apply(add_header("color", "red"))

    response = builder.do()

    assert response.status_code == 204
    assert doer.requests[0].headers["Color"] == "red"
    assert doer.requests[0].url == "http://blue.com/model.json"
    assert doer.kwargs[0] == {"timeout": None, "stream": True}


def test_do_leaves_body_unread():
    builder, _ = _builder(_response())

    with builder.do() as response:
        assert response.raw.read() == JSON_BODY


def test_do_threads_timeout_to_sender():
    builder, doer = _builder(_response(), _response())
    builder.apply(timeout(3.0))

    builder.do()
    builder.do(timeout=(1.0, 2.0))

    assert doer.kwargs[0]["timeout"] == 3.0
    assert doer.kwargs[1]["timeout"] == (1.0, 2.0)


def test_do_per_call_doer_does_not_leak():
    builder, base_doer = _builder(_response())
    other = RecordingDoer(_response(status=201))

    response = builder.do(with_doer(other))

    assert response.status_code == 201
    assert len(other.requests) == 1
    assert base_doer.requests == []
    assert builder.doer is base_doer


def test_do_uses_default_client_when_no_doer():
    builder = RequestBuilder(get("http://blue.com/red"))
    sender = Mock()
    sender.send.return_value = _response(status=204, content=b"")

    with patch("sling.builder.default_client", return_value=sender):
        response = builder.do()

    assert response.status_code == 204
    sender.send.assert_called_once()


def test_middleware_runs_in_registration_order():
    calls = []

    def layer(name):
        def middleware(next_doer):
            def send(request, **kwargs):
                calls.append(f"{name}:request")
                response = next_doer.send(request, **kwargs)
                calls.append(f"{name}:response")
                return response

            return DoerFunc(send)

        return middleware

    builder, _ = _builder(_response())
    builder.apply(use(layer("outer"), layer("middle")))

    builder.do(use(layer("inner")))

    assert calls == [
        "outer:request",
        "middle:request",
        "inner:request",
        "inner:response",
        "middle:response",
        "outer:response",
    ]
    assert len(builder.middleware) == 2


def test_middleware_can_change_request():
    def stamp(next_doer):
        def send(request, **kwargs):
            request.headers["X-Stamp"] = "1"
            return next_doer.send(request, **kwargs)

        return DoerFunc(send)

    builder, doer = _builder(_response())

    builder.do(use(stamp))

    assert doer.requests[0].headers["X-Stamp"] == "1"


@pytest.mark.parametrize(
    ("succ", "fail"), [(True, True), (True, False), (False, True), (False, False)]
)
def test_receive_routes_by_status(succ, fail):
    success_builder, _ = _builder(_response(status=206))
    failure_builder, _ = _builder(_response(status=500))
    failure_builder.apply(relative_url("/err"))

    success_target = TestModel() if succ else None
    failure_target = TestModel() if fail else None

    result = success_builder.receive(success=success_target, failure=failure_target)
    assert result.status_code == 206
    assert result.body == JSON_BODY
    if succ:
        assert result.value is success_target
        assert success_target == TestModel("red", 30)
    else:
        assert result.value is None
    if fail:
        assert failure_target == TestModel()

    success_target = TestModel() if succ else None
    result = failure_builder.receive(success=success_target, failure=failure_target)
    assert result.status_code == 500
    assert result.body == JSON_BODY
    if fail:
        assert failure_target == TestModel("red", 30)
    else:
        assert result.value is None
    if succ:
        assert success_target == TestModel()


def test_receive_constructs_class_targets():
    builder, _ = _builder(_response())

    result = builder.receive(success=TestModel)

    assert isinstance(result, ReceiveResult)
    assert result.value == TestModel("red", 30)


def test_receive_string_target_bypasses_unmarshaler():
    unmarshal = Mock()
    builder, _ = _builder(_response(content=b"plain text", content_type="text/plain"))
    builder.apply(with_unmarshaler(UnmarshalFunc(unmarshal)))

    result = builder.receive(success=str)

    assert result.value == "plain text"
    unmarshal.assert_not_called()


def test_receive_uses_configured_unmarshaler():
    seen = []

    def unmarshal(data, content_type, target):
        seen.append((data, content_type, target))
        return "decoded"

    builder, _ = _builder(_response(content_type="application/x-custom"))

    result = builder.receive(
        with_unmarshaler(UnmarshalFunc(unmarshal)), success=dict
    )

    assert result.value == "decoded"
    assert seen == [(JSON_BODY, "application/x-custom", dict)]


def test_receive_skips_decoding_empty_body():
    builder, _ = _builder(_response(status=204, content=b""))

    result = builder.receive(success=TestModel)

    assert result.value is None
    assert result.body == b""


def test_receive_decode_error_keeps_body():
    builder, _ = _builder(_response(content=b"<html/>", content_type="text/html"))

    with pytest.raises(ResponseDecodeError) as excinfo:
        builder.receive(success=dict)

    assert excinfo.value.body == b"<html/>"
    assert excinfo.value.response.status_code == 200
    assert isinstance(excinfo.value.__cause__, UnsupportedContentTypeError)


def test_receive_closes_response_on_success_and_decode_failure():
    for content_type in ("application/json", "text/html"):
        response = Mock()
        response.status_code = 200
        response.content = JSON_BODY
        response.headers = {"Content-Type": content_type}
        response.__enter__ = Mock(return_value=response)
        response.__exit__ = Mock(return_value=False)
        builder = RequestBuilder(
            url("http://blue.com/"), with_doer(DoerFunc(lambda r, **kw: response))
        )

        try:
            builder.receive(success=dict)
        except ResponseDecodeError:
            pass

        response.__exit__.assert_called_once()


def test_receive_closes_response_on_read_failure():
    response = _response()
    response.raw = Mock(spec=["read", "close"])
    response.raw.read.side_effect = requests.exceptions.ChunkedEncodingError("cut")
    builder = RequestBuilder(
        url("http://blue.com/"), with_doer(DoerFunc(lambda r, **kw: response))
    )

    with patch.object(response, "close", wraps=response.close) as close:
        with pytest.raises(requests.exceptions.ChunkedEncodingError):
            builder.receive(success=dict)

    close.assert_called_once()


def test_receive_propagates_transport_errors_unchanged():
    def fail(request, **kwargs):
        raise requests.exceptions.ConnectTimeout("slow")

    builder = RequestBuilder(url("http://blue.com/"), with_doer(DoerFunc(fail)))

    with pytest.raises(requests.exceptions.ConnectTimeout, match="slow"):
        builder.receive(success=dict)
