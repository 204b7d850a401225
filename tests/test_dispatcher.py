"""Tests for alert dispatch and webhook delivery."""

import json

import httpx
import pytest

from log_sentinel.alerter import AlertDispatcher, WebhookClient, WebhookFamily, resolve_family, trim

SLACK_URL = "https://hooks.slack.com/services/T000/B000/XXXX"
LARK_URL = "https://open.feishu.cn/open-apis/bot/v2/hook/abc"


def recording_client(requests: list, status_code: int = 200) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code)

    return httpx.Client(transport=httpx.MockTransport(handler))


class TestResolveFamily:
    def test_slack(self):
        """Slack URLs use the Slack payload."""
        assert resolve_family(SLACK_URL) is WebhookFamily.SLACK

    def test_lark(self):
        """Feishu and Lark URLs use the Lark payload."""
        assert resolve_family(LARK_URL) is WebhookFamily.LARK
        assert resolve_family("https://open.larksuite.com/hook/x") is WebhookFamily.LARK

    def test_unknown_defaults_to_slack(self):
        """Other URLs default to the Slack payload."""
        assert resolve_family("https://example.com/hook") is WebhookFamily.SLACK


class TestWebhookClient:
    def test_slack_payload(self):
        """Slack payload carries text and the channel override."""
        requests = []
        client = WebhookClient(SLACK_URL, channel="#ops", client=recording_client(requests))
        assert client.send("hello") is True

        [request] = requests
        assert request.method == "POST"
        assert json.loads(request.content) == {"text": "hello", "channel": "#ops"}

    def test_slack_without_channel(self):
        """No channel key is sent without an override."""
        assert WebhookClient(SLACK_URL, client=recording_client([])).payload("hi") == {"text": "hi"}

    def test_lark_payload(self):
        """Lark payload wraps text and drops the channel."""
        requests = []
        client = WebhookClient(LARK_URL, channel="#ignored", client=recording_client(requests))
        assert client.send("hello") is True
        assert json.loads(requests[0].content) == {"msg_type": "text", "content": {"text": "hello"}}

    def test_http_error_contained(self):
        """A non-2xx response returns False instead of raising."""
        client = WebhookClient(SLACK_URL, client=recording_client([], status_code=500))
        assert client.send("hello") is False

    def test_network_error_contained(self):
        """A connection failure returns False instead of raising."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = WebhookClient(SLACK_URL, client=httpx.Client(transport=httpx.MockTransport(handler)))
        assert client.send("hello") is False


class TestAlertDispatcher:
    def test_trim(self):
        """Trimming marks cut text with an ellipsis."""
        assert trim("abc", 5) == "abc"
        assert trim("abcdef", 3) == "abc…"

    def test_alert_console_only(self, sink):
        """Without a webhook only the console line is written."""
        dispatcher = AlertDispatcher(sink=sink)
        assert dispatcher.alert_now("api", "Error: boom") is None
        assert sink.err.getvalue() == "[ALERT] api: Error: boom\n"

    def test_console_line_trimmed(self, sink):
        """Console alert lines are cut to 200 characters."""
        AlertDispatcher(sink=sink).alert_now("api", "x" * 1000)
        assert sink.err.getvalue() == f"[ALERT] api: {'x' * 200}…\n"

    def test_alert_forwarded_to_webhook(self, sink):
        """The webhook gets the longer, fenced rendering."""
        requests = []
        webhook = WebhookClient(SLACK_URL, client=recording_client(requests))
        dispatcher = AlertDispatcher(sink=sink, webhook=webhook, max_line_length=10)

        future = dispatcher.alert_now("api", "Error: something long happened")
        assert future.result(timeout=5) is True
        dispatcher.close()

        text = json.loads(requests[0].content)["text"]
        assert text == "🚨 *api* error\n```\nError: som…\n```"

    def test_webhook_failure_does_not_lose_local_alert(self, sink):
        """A failed webhook still leaves the console alert."""
        webhook = WebhookClient(SLACK_URL, client=recording_client([], status_code=503))
        dispatcher = AlertDispatcher(sink=sink, webhook=webhook)

        future = dispatcher.alert_now("api", "Error: boom")
        assert future.result(timeout=5) is False
        dispatcher.close()
        assert "[ALERT] api: Error: boom" in sink.err.getvalue()

    def test_unexpected_webhook_exception_contained(self, sink, monkeypatch):
        """Bugs in delivery never reach the caller."""
        webhook = WebhookClient(SLACK_URL, client=recording_client([]))

        def explode(text):
            raise RuntimeError("bug")

        monkeypatch.setattr(webhook, "send", explode)
        dispatcher = AlertDispatcher(sink=sink, webhook=webhook)
        assert dispatcher.alert_now("api", "Error").result(timeout=5) is False
        dispatcher.close()

    def test_summary_goes_to_stdout(self, sink):
        """Summaries go to stdout, alerts to stderr."""
        AlertDispatcher(sink=sink).send_summary("summary text")
        assert sink.out.getvalue() == "summary text\n"
        assert sink.err.getvalue() == ""


@pytest.mark.parametrize("status_code", [200, 204])
def test_success_statuses(status_code):
    """Any 2xx status counts as delivered."""
    client = WebhookClient(SLACK_URL, client=recording_client([], status_code=status_code))
    assert client.send("ok") is True
