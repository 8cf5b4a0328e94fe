import http.client
import json
from http import HTTPStatus

import pytest

from daqstream.control_server import ControlResponse, ControlServer, handle_request


def _request(**fields):
    return json.dumps(fields)


def test_non_post_is_bad_request():
    response = handle_request("GET", "")
    assert response == ControlResponse(HTTPStatus.BAD_REQUEST, "text/html", "Unknown HTTP-method")


def test_missing_id():
    response = handle_request("POST", _request(method="s.subscribe", params=["a"]))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.body == "json rpc request without id"


def test_missing_method():
    response = handle_request("POST", _request(id=1, params=["a"]))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.body == "json rpc request without method"


def test_method_without_delimiter():
    response = handle_request("POST", _request(id=1, method="subscribe", params=["a"]))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert "'subscribe'" in response.body
    assert "Expecting <stream id>.<command>" in response.body


def test_missing_params():
    response = handle_request("POST", _request(id=1, method="s.subscribe"))
    assert response.body == "json rpc request without parameters"


def test_params_not_array():
    response = handle_request("POST", _request(id=1, method="s.subscribe", params={"a": 1}))
    assert response.status == HTTPStatus.BAD_REQUEST
    assert response.body == "Expecting an array of signal ids as parameters"


def test_invalid_json_is_bad_request():
    response = handle_request("POST", "{not json")
    assert response.status == HTTPStatus.BAD_REQUEST


def test_valid_request():
    body = _request(jsonrpc="2.0", id=1, method="stream.subscribe", params=["a", "b"])
    response = handle_request("POST", body.encode("utf-8"))
    assert response.status == HTTPStatus.OK
    assert response.content_type == "application/json"
    assert json.loads(response.body) is None


@pytest.fixture
def server():
    control = ControlServer("127.0.0.1", 0)
    control.start()
    yield control
    control.stop()


def _send(server, method, body):
    host, port = server.server_address
    conn = http.client.HTTPConnection(host, port, timeout=10)
    try:
        conn.request(method, "/", body=body, headers={"Content-Type": "application/json"})
        response = conn.getresponse()
        return response.status, response.getheader("Content-Type"), response.read().decode()
    finally:
        conn.close()


def test_server_answers_valid_request(server):
    body = _request(jsonrpc="2.0", id=3, method="stream.unsubscribe", params=["x"])
    status, content_type, text = _send(server, "POST", body)
    assert status == HTTPStatus.OK
    assert content_type == "application/json"
    assert json.loads(text) is None


def test_server_rejects_get(server):
    status, content_type, text = _send(server, "GET", None)
    assert status == HTTPStatus.BAD_REQUEST
    assert text == "Unknown HTTP-method"


def test_start_twice_raises(server):
    with pytest.raises(RuntimeError):
        server.start()


def test_address_after_stop_raises():
    control = ControlServer("127.0.0.1", 0)
    with control:
        assert control.server_address[1] > 0
    with pytest.raises(RuntimeError):
        control.server_address