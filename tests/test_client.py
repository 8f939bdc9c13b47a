"""
Tests for the JSON API client.

The HTTP session is replaced by a mock; no server is started.
"""
from unittest import mock

import pytest
import requests

from ezcalc.client import CalcClient, CalcClientException


def make_response(status_code=200, payload=None, json_error=None):
    response = mock.Mock(status_code=status_code)
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status_code} Error"
        )
    return response


@pytest.fixture
def client():
    calc_client = CalcClient("http://calc.test/")
    calc_client._http_session = mock.Mock()
    return calc_client


class TestRequests:
    def test_strips_trailing_slash(self, client):
        assert client.server_url == "http://calc.test"

    def test_calculate_posts_json(self, client):
        client._http_session.request.return_value = make_response(
            payload={"success": True, "result": 15.0}
        )
        assert client.calculate(10, 5, "add")["result"] == 15.0
        args, kwargs = client._http_session.request.call_args
        assert args == ("POST", "http://calc.test/api/calculate")
        assert kwargs["json"] == {"operand1": 10, "operand2": 5, "operator": "add"}

    def test_rejected_calculation_is_returned(self, client):
        client._http_session.request.return_value = make_response(
            400, {"success": False, "result": None, "message": "Cannot divide by zero"}
        )
        payload = client.calculate(10, 0, "divide")
        assert payload["success"] is False
        assert payload["message"] == "Cannot divide by zero"

    def test_recent_history(self, client):
        client._http_session.request.return_value = make_response(
            payload={"history": [{"id": 1}]}
        )
        assert client.recent_history(5) == [{"id": 1}]
        _, kwargs = client._http_session.request.call_args
        assert kwargs["params"] == {"limit": 5}

    def test_clear_history(self, client):
        client._http_session.request.return_value = make_response(
            payload={"success": True, "deleted": 3}
        )
        assert client.clear_history() == 3
        args, _ = client._http_session.request.call_args
        assert args == ("DELETE", "http://calc.test/api/history")

    def test_health(self, client):
        client._http_session.request.return_value = make_response(
            payload={"status": "healthy", "records": 0}
        )
        assert client.health()["status"] == "healthy"


class TestErrors:
    @pytest.mark.parametrize(
        "exc",
        [
            requests.exceptions.ConnectionError("refused"),
            requests.exceptions.Timeout("slow"),
            requests.exceptions.RetryError("too many 503 error responses"),
        ],
    )
    def test_transport_errors(self, client, exc):
        client._http_session.request.side_effect = exc
        with pytest.raises(CalcClientException):
            client.health()

    def test_http_error(self, client):
        client._http_session.request.return_value = make_response(500, {})
        with pytest.raises(CalcClientException, match="HTTP error"):
            client.recent_history()

    def test_400_outside_calculate_is_error(self, client):
        client._http_session.request.return_value = make_response(400, {"error": "bad"})
        with pytest.raises(CalcClientException):
            client.recent_history(-1)

    def test_invalid_json(self, client):
        client._http_session.request.return_value = make_response(
            json_error=ValueError("Expecting value")
        )
        with pytest.raises(CalcClientException, match="Invalid JSON"):
            client.health()


class TestSession:
    def test_retry_adapter_mounted(self):
        calc_client = CalcClient("http://calc.test")
        adapter = calc_client._http_session.get_adapter("http://calc.test/")
        assert adapter.max_retries.total == 3
        assert 503 in adapter.max_retries.status_forcelist

    def test_context_manager_closes_session(self):
        with CalcClient("http://calc.test") as calc_client:
            calc_client._http_session = mock.Mock()
        calc_client._http_session.close.assert_called_once_with()
