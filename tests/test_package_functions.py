# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
import io
from unittest.mock import Mock

import pytest
import requests

import sling


def _response(*, status: int = 200, content: bytes = b'{"count":25}'):
    response = requests.Response()
    response.status_code = status
    response.headers["Content-Type"] = sling.CONTENT_TYPE_JSON
    response.raw = io.BytesIO(content)
    return response


def test_new():
    builder = sling.new(sling.get("http://blue.com/red"))

    assert isinstance(builder, sling.RequestBuilder)
    assert builder.method == "GET"


def test_request():
    prepared = sling.request(sling.get("http://blue.com/red"))

    assert prepared.url == "http://blue.com/red"
    assert prepared.method == "GET"


def test_request_option_error():
    with pytest.raises(sling.OptionError):
        sling.request(sling.get("cache_object:foo/bar"))


def test_do():
    doer = Mock()
    doer.send.return_value = _response(status=204, content=b"")

    response = sling.do(sling.get("http://blue.com/red"), sling.with_doer(doer))

    assert response.status_code == 204
    sent = doer.send.call_args.args[0]
    assert sent.url == "http://blue.com/red"


def test_do_with_timeout():
    doer = Mock()
    doer.send.return_value = _response(status=204, content=b"")

    sling.do(sling.get("http://blue.com/red"), sling.with_doer(doer), timeout=2.0)

    assert doer.send.call_args.kwargs["timeout"] == 2.0


def test_receive():
    doer = Mock()
    doer.send.return_value = _response(status=205)

    result = sling.receive(
        sling.get("http://blue.com/red"), sling.with_doer(doer), success=dict
    )

    assert result.status_code == 205
    assert result.body == b'{"count":25}'
    assert result.value == {"count": 25}


def test_receive_failure_target():
    doer = Mock()
    doer.send.return_value = _response(status=404, content=b'{"message":"gone"}')
    failure: dict = {}

    result = sling.receive(
        sling.get("http://blue.com/red"),
        sling.with_doer(doer),
        success=dict,
        failure=failure,
    )

    assert result.value is failure
    assert failure == {"message": "gone"}
