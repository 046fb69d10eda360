import datetime as dt
import json
from typing import Any, Dict, List, Optional

import pytest
import requests

from azure_email import AzureEmailSender, ClientConfig
from azure_email.errors import (
    ConfigError,
    RateLimitError,
    SendError,
    SigningError,
    TransportError,
)
from azure_email.signing import compute_content_hash, generate_auth_info

ENDPOINT = "https://contoso.communication.azure.com"
KEY = "Y29udG9zby1zZWNyZXQta2V5"
MAIL_FROM = "DoNotReply@contoso.azurecomm.net"
MOMENT = dt.datetime(2026, 10, 15, 12, 0, 0, tzinfo=dt.timezone.utc)


def _fixed_clock() -> dt.datetime:
    return MOMENT


def make_response(
    status: int,
    body: str = "",
    reason: str = "",
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.headers.update(headers or {})
    return response


class FakeSession:
    """Stands in for ``requests.Session`` and records each POST."""

    def __init__(
        self,
        response: Optional[requests.Response] = None,
        error: Optional[Exception] = None,
    ) -> None:
        self.response = response
        self.error = error
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    def post(self, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append({"url": url, **kwargs})
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


def make_sender(session: FakeSession, **settings: Any) -> AzureEmailSender:
    access_key = settings.pop("access_key", KEY)
    return AzureEmailSender.from_options(
        mail_from=MAIL_FROM,
        endpoint=ENDPOINT,
        access_key=access_key,
        session=session,  # type: ignore[arg-type]
        clock=_fixed_clock,
        **settings,
    )


def test_accepted_response_returns_none() -> None:
    session = FakeSession(
        make_response(202, '{"id": "op-1", "status": "Running"}', "Accepted")
    )
    sender = make_sender(session)

    assert sender.send_mail("alice@example.com", "Hello", "<p>Hi</p>") is None
    assert len(session.calls) == 1


def test_ok_response_returns_none() -> None:
    session = FakeSession(make_response(200, "", "OK"))
    make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")


def test_request_url_headers_and_body() -> None:
    session = FakeSession(make_response(202, "{}", "Accepted"))
    make_sender(session, timeout=3).send_mail(
        "alice@example.com", "Hello", "<p>Hi</p>"
    )

    call = session.calls[0]
    body = call["data"]
    headers = call["headers"]

    assert call["url"] == ENDPOINT + "/emails:send?api-version=2023-03-31"
    assert call["timeout"] == 3
    assert headers["Content-Type"] == "application/json"
    assert headers["x-ms-date"] == "Thu, 15 Oct 2026 12:00:00 GMT"
    assert headers["x-ms-content-sha256"] == compute_content_hash(body)

    expected = generate_auth_info(
        "POST",
        "contoso.communication.azure.com",
        "/emails:send",
        {"api-version": ["2023-03-31"]},
        KEY,
        body,
        clock=_fixed_clock,
    )
    assert headers["Authorization"] == expected.authorization

    data = json.loads(body)
    assert data["senderAddress"] == MAIL_FROM
    assert data["recipients"]["to"] == [{"address": "alice@example.com"}]
    assert data["content"] == {"subject": "Hello", "html": "<p>Hi</p>"}


def test_custom_api_version_is_signed_and_sent() -> None:
    session = FakeSession(make_response(202, "{}", "Accepted"))
    make_sender(session, api_version="2024-01-01").send_mail("a@example.com", "s", "h")
    assert session.calls[0]["url"].endswith("/emails:send?api-version=2024-01-01")


def test_rate_limited_response() -> None:
    session = FakeSession(
        make_response(429, "slow down", "Too Many Requests", {"Retry-After": "30"})
    )
    with pytest.raises(RateLimitError) as excinfo:
        make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")

    assert not isinstance(excinfo.value, SendError)
    assert excinfo.value.retry_after == 30.0
    assert excinfo.value.body == "slow down"


def test_rate_limited_without_retry_after() -> None:
    session = FakeSession(make_response(429, "", "Too Many Requests"))
    with pytest.raises(RateLimitError) as excinfo:
        make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")
    assert excinfo.value.retry_after is None


def test_service_unavailable_response() -> None:
    session = FakeSession(
        make_response(503, "service unavailable", "Service Unavailable")
    )
    with pytest.raises(SendError) as excinfo:
        make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")

    error = excinfo.value
    assert error.status_code == 503
    assert error.body == "service unavailable"
    assert "503" in str(error)
    assert "service unavailable" in str(error)


def test_transport_error_is_wrapped_and_not_retried() -> None:
    cause = requests.ConnectionError("connection refused")
    session = FakeSession(error=cause)

    with pytest.raises(TransportError) as excinfo:
        make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")

    assert excinfo.value.__cause__ is cause
    assert len(session.calls) == 1


def test_timeout_is_a_transport_error() -> None:
    session = FakeSession(error=requests.Timeout("read timed out"))
    with pytest.raises(TransportError):
        make_sender(session).send_mail("alice@example.com", "Hello", "<p>Hi</p>")


def test_bad_access_key_fails_before_sending() -> None:
    session = FakeSession(make_response(202, "{}", "Accepted"))
    sender = make_sender(session, access_key="not base64!!")

    with pytest.raises(SigningError):
        sender.send_mail("alice@example.com", "Hello", "<p>Hi</p>")
    assert session.calls == []


@pytest.mark.parametrize("missing", ["mail_from", "endpoint", "access_key"])
def test_missing_option_makes_no_network_call(
    missing: str, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _no_session() -> None:
        raise AssertionError("no session should be created")

    monkeypatch.setattr(requests, "Session", _no_session)
    options = {"mail_from": MAIL_FROM, "endpoint": ENDPOINT, "access_key": KEY}
    options[missing] = ""

    with pytest.raises(ConfigError):
        AzureEmailSender.from_options(**options)


def test_optional_text_and_display_name() -> None:
    session = FakeSession(make_response(202, "{}", "Accepted"))
    make_sender(session).send_mail(
        "bob@example.com", "Hi", "<b>hi</b>", text="hi", display_name="Bob"
    )
    data = json.loads(session.calls[0]["data"])
    assert data["recipients"]["to"][0]["displayName"] == "Bob"
    assert data["content"]["plainText"] == "hi"


def test_injected_session_is_not_closed() -> None:
    session = FakeSession(make_response(202, "{}", "Accepted"))
    with make_sender(session) as sender:
        sender.send_mail("a@example.com", "s", "h")
    assert session.closed is False


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ACS_MAIL_FROM", MAIL_FROM)
    monkeypatch.setenv("ACS_ENDPOINT", ENDPOINT)
    monkeypatch.setenv("ACS_ACCESS_KEY", KEY)
    monkeypatch.delenv("ACS_CONNECTION_STRING", raising=False)
    monkeypatch.delenv("ACS_API_VERSION", raising=False)
    monkeypatch.delenv("ACS_TIMEOUT", raising=False)
    session = FakeSession(make_response(202, "{}", "Accepted"))

    sender = AzureEmailSender.from_env(session=session, clock=_fixed_clock)

    assert isinstance(sender.config, ClientConfig)
    assert sender.config.mail_from == MAIL_FROM
    assert sender.send_url == ENDPOINT + "/emails:send?api-version=2023-03-31"


def test_owned_session_is_closed(monkeypatch: pytest.MonkeyPatch) -> None:
    created: List[FakeSession] = []

    def _session() -> FakeSession:
        session = FakeSession(make_response(202, "{}", "Accepted"))
        created.append(session)
        return session

    monkeypatch.setattr(requests, "Session", _session)
    config = ClientConfig(mail_from=MAIL_FROM, endpoint=ENDPOINT, access_key=KEY)

    with AzureEmailSender(config, clock=_fixed_clock) as sender:
        sender.send_mail("a@example.com", "s", "h")
        assert created[0].closed is False

    assert len(created) == 1
    assert created[0].closed is True


def test_close_closes_owned_session(monkeypatch: pytest.MonkeyPatch) -> None:
    session = FakeSession()
    monkeypatch.setattr(requests, "Session", lambda: session)
    sender = AzureEmailSender(
        ClientConfig(mail_from=MAIL_FROM, endpoint=ENDPOINT, access_key=KEY)
    )

    sender.close()

    assert session.closed is True
