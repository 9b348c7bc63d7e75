"""
Tests for the remote endpoint client — survey/remote.py

All requests go through a MagicMock session; no network calls are made.
"""
import pytest
import requests

from conftest import make_record, make_response
from survey.errors import MalformedResponseError, ServerReportedError, TransportError
from survey.models import ENTRY_FIELDS, Entry


# ── fetch_all ────────────────────────────────────────────────────────────────

class TestFetchAll:
    def test_returns_data_array(self, remote, session):
        records = [make_record(1, "01711000001")]
        session.get.return_value = make_response({"status": "success", "data": records})
        assert remote.fetch_all() == records

    def test_request_shape(self, remote, session):
        remote.fetch_all()
        args, kwargs = session.get.call_args
        assert args[0] == remote.endpoint_url
        assert kwargs["params"] == {"action": "getData", "t": 1760779800000}
        assert kwargs["headers"]["Accept"] == "application/json"
        assert kwargs["headers"]["Cache-Control"] == "no-cache"
        assert kwargs["timeout"] == remote.timeout

    def test_server_reported_error(self, remote, session):
        session.get.return_value = make_response({"status": "error", "message": "Sheet not found"})
        with pytest.raises(ServerReportedError) as exc_info:
            remote.fetch_all()
        assert exc_info.value.server_message == "Sheet not found"

    @pytest.mark.parametrize(
        "payload",
        [
            {"status": "success"},
            {"status": "success", "data": {"rows": []}},
            {"status": "pending", "data": []},
            [{"status": "success"}],
        ],
    )
    def test_unexpected_shapes_are_malformed(self, remote, session, payload):
        session.get.return_value = make_response(payload)
        with pytest.raises(MalformedResponseError):
            remote.fetch_all()

    def test_non_json_body(self, remote, session):
        session.get.return_value = make_response(text="<html>Sign in</html>")
        with pytest.raises(MalformedResponseError) as exc_info:
            remote.fetch_all()
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_http_error_status(self, remote, session):
        session.get.return_value = make_response(text="oops", status_code=503)
        with pytest.raises(TransportError) as exc_info:
            remote.fetch_all()
        assert exc_info.value.status_code == 503

    @pytest.mark.parametrize("exc", [requests.ConnectionError("down"), requests.Timeout("slow")])
    def test_network_failure(self, remote, session, exc):
        session.get.side_effect = exc
        with pytest.raises(TransportError) as exc_info:
            remote.fetch_all()
        assert exc_info.value.status_code is None


# ── submit ───────────────────────────────────────────────────────────────────

class TestSubmit:
    def test_posts_form_fields(self, remote, session):
        record = make_record(9, "01711000001", name="করিম")
        remote.submit(record)
        args, kwargs = session.post.call_args
        assert args[0] == remote.endpoint_url
        assert set(kwargs["data"]) == set(ENTRY_FIELDS)
        assert kwargs["data"]["id"] == "9"
        assert kwargs["data"]["name"] == "করিম"

    def test_accepts_entry_objects(self, remote, session):
        remote.submit(Entry(id=3, phone_number="017", profession="p", use_mygp="no"))
        assert session.post.call_args.kwargs["data"]["phoneNumber"] == "017"

    def test_server_reported_error(self, remote, session):
        session.post.return_value = make_response({"status": "error", "message": "quota"})
        with pytest.raises(ServerReportedError):
            remote.submit(make_record(1, "1"))

    def test_missing_status_is_malformed(self, remote, session):
        session.post.return_value = make_response({"ok": True})
        with pytest.raises(MalformedResponseError):
            remote.submit(make_record(1, "1"))

    def test_network_failure(self, remote, session):
        session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(TransportError):
            remote.submit(make_record(1, "1"))

    def test_not_retried(self, remote, session):
        session.post.side_effect = requests.ConnectionError("down")
        with pytest.raises(TransportError):
            remote.submit(make_record(1, "1"))
        assert session.post.call_count == 1


class TestSession:
    def test_close_releases_session(self, remote, session):
        remote.close()
        session.close.assert_called_once()
