# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
# pyright: reportUnknownVariableType=false, reportMissingParameterType=false
# pyright: reportUnknownArgumentType=false
from unittest.mock import Mock, patch

import pytest
import requests

from sling.builder import RequestBuilder
from sling.client import HttpClient, default_client
from sling.config import HttpClientConfig
from sling.options import client, get, header


@pytest.fixture
def config():
    return HttpClientConfig(
        user_agent="TestAgent/1.0",
        default_headers={"X-Test": "yes"},
        timeout_seconds=5.0,
    )


@pytest.fixture
def http_client(config):
    return HttpClient(config)


def _prepared(url: str = "http://example.com/", headers=None):
    return requests.Request("GET", url, headers=headers).prepare()


def _mock_response(*, status: int = 200):
    response = Mock()
    response.status_code = status
    response.headers = {"Content-Type": "application/json"}
    return response


@patch("requests.Session.send")
def test_send_fills_default_headers(mock_send, http_client):
    mock_send.return_value = _mock_response()
    request = _prepared()

    result = http_client.send(request)

    assert result is mock_send.return_value
    assert request.headers["User-Agent"] == "TestAgent/1.0"
    assert request.headers["X-Test"] == "yes"


@patch("requests.Session.send")
def test_send_keeps_explicit_headers(mock_send, http_client):
    mock_send.return_value = _mock_response()
    request = _prepared(headers={"user-agent": "Mine/2.0", "x-test": "no"})

    http_client.send(request)

    assert request.headers["User-Agent"] == "Mine/2.0"
    assert request.headers["X-Test"] == "no"


@patch("requests.Session.send")
def test_send_passes_transport_settings(mock_send, http_client):
    mock_send.return_value = _mock_response()
    request = _prepared()

    http_client.send(request, stream=True)

    mock_send.assert_called_once_with(
        request,
        timeout=5.0,
        stream=True,
        verify=True,
        allow_redirects=True,
    )


@patch("requests.Session.send")
def test_send_uses_override_timeout(mock_send, http_client):
    mock_send.return_value = _mock_response()

    http_client.send(_prepared(), timeout=2.5)

    assert mock_send.call_args.kwargs["timeout"] == 2.5


def test_send_rejects_non_positive_timeout_override(http_client):
    with pytest.raises(ValueError):
        http_client.send(_prepared(), timeout=0)

    with pytest.raises(ValueError):
        http_client.send(_prepared(), timeout=-1)

    with pytest.raises(ValueError):
        http_client.send(_prepared(), timeout=(1.0, 0))


@patch("requests.Session.send")
def test_send_uses_connect_read_timeout_tuple(mock_send):
    http_client = HttpClient(
        HttpClientConfig(connect_timeout_seconds=1.0, read_timeout_seconds=3.0)
    )
    mock_send.return_value = _mock_response()

    http_client.send(_prepared())

    assert mock_send.call_args.kwargs["timeout"] == (1.0, 3.0)


@patch("requests.Session.send")
def test_send_respects_verify_tls_and_redirect_settings(mock_send):
    http_client = HttpClient(
        HttpClientConfig(verify_tls=False, follow_redirects=False)
    )
    mock_send.return_value = _mock_response()

    http_client.send(_prepared())

    assert mock_send.call_args.kwargs["verify"] is False
    assert mock_send.call_args.kwargs["allow_redirects"] is False


@patch("requests.Session.send")
def test_send_propagates_transport_errors(mock_send, http_client):
    mock_send.side_effect = requests.exceptions.Timeout("Timed out")

    with pytest.raises(requests.exceptions.Timeout):
        http_client.send(_prepared())


def test_session_configuration():
    http_client = HttpClient(
        HttpClientConfig(
            max_redirects=3,
            proxy_url="http://proxy.local:8080",
            trust_env=False,
            cookies=False,
        )
    )

    session = http_client._session
    assert session.max_redirects == 3
    assert session.proxies == {
        "http": "http://proxy.local:8080",
        "https": "http://proxy.local:8080",
    }
    assert session.trust_env is False
    assert session.cookies.get_policy().allowed_domains() == ()


def test_default_client_is_shared():
    assert default_client() is default_client()
    assert isinstance(default_client(), HttpClient)


@patch("requests.Session.send")
def test_client_option_installs_http_client(mock_send, config):
    mock_send.return_value = _mock_response(status=204)
    builder = RequestBuilder(
        get("http://example.com/"), client(config), header("X-Test", "explicit")
    )

    response = builder.do()

    assert isinstance(builder.doer, HttpClient)
    assert response.status_code == 204
    sent = mock_send.call_args.args[0]
    assert sent.headers["User-Agent"] == "TestAgent/1.0"
    assert sent.headers["X-Test"] == "explicit"
    assert mock_send.call_args.kwargs["timeout"] == 5.0
    assert mock_send.call_args.kwargs["stream"] is True
