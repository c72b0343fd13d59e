"""Tests for the rollout tracker and Slack adapters over MockHttpClient."""

from __future__ import annotations

from cdp.adapters.slack import SlackNotifier
from cdp.adapters.tracker import API_KEY_HEADER, RolloutTracker, build_release_payload
from cdp.core.config import RolloutStep, TrackerConfig
from cdp.core.result import Err, Ok
from cdp.pipeline.model import ImageRef
from cdp.platform.http import HttpError, MockHttpClient

TRACKER_URL = "https://tracker.local/api/release"
SLACK_URL = "https://slack.local/api/chat.postMessage"
IMAGE = ImageRef(repository="payments", tag="1.3.0")


def _tracker_config(**kw: object) -> TrackerConfig:
    defaults: dict[str, object] = {
        "url": TRACKER_URL,
        "api_key": "secret",
        "release_manager": "ops@example.com",
        "cluster": "eks-main",
        "rollout": (RolloutStep(rollout=50, cooloff=2, pods=1),),
    }
    defaults.update(kw)
    return TrackerConfig(**defaults)  # type: ignore[arg-type]


class TestReleasePayload:
    def test_fields(self) -> None:
        payload = build_release_payload(
            _tracker_config(), service_name="payments", version="1.3.0", image=IMAGE
        )

        assert payload["service"] == ["payments"]
        assert payload["new_version"] == "1.3.0"
        assert payload["docker_image"] == "1.3.0"
        assert payload["release_manager"] == "ops@example.com"
        assert payload["rollout_strategy"] == [{"rollout": 50, "cooloff": 2, "pods": 1}]
        assert payload["is_infra_approval_required"] is False
        assert payload["mode"] == "AUTO"
        assert payload["env"] == "UAT"

    def test_configured_services_win(self) -> None:
        payload = build_release_payload(
            _tracker_config(service=("a", "b")), service_name="payments", version="1", image=IMAGE
        )
        assert payload["service"] == ["a", "b"]


class TestRolloutTracker:
    def test_register_posts_with_api_key(self) -> None:
        http = MockHttpClient()
        http.set_json(TRACKER_URL, {"id": "rel-9"})
        tracker = RolloutTracker(http, _tracker_config(), service_name="payments")

        result = tracker.register("1.3.0", IMAGE, timeout=600.0)

        assert result == Ok({"id": "rel-9"})
        (post,) = http.posts_to(TRACKER_URL)
        assert post.headers == {API_KEY_HEADER: "secret"}
        assert post.payload["new_version"] == "1.3.0"

    def test_missing_url(self) -> None:
        http = MockHttpClient()
        tracker = RolloutTracker(http, _tracker_config(url=None), service_name="payments")

        result = tracker.register("1.3.0", IMAGE)

        assert isinstance(result, Err)
        assert result.error.kind == "config"
        assert http.posts == []

    def test_missing_api_key(self) -> None:
        tracker = RolloutTracker(
            MockHttpClient(), _tracker_config(api_key=None), service_name="payments"
        )

        result = tracker.register("1.3.0", IMAGE)

        assert isinstance(result, Err)
        assert result.error.hint == "set CDP_TRACKER_API_KEY"

    def test_http_failure(self) -> None:
        http = MockHttpClient()
        http.set_json(TRACKER_URL, HttpError(TRACKER_URL, 502, "Bad Gateway"))
        tracker = RolloutTracker(http, _tracker_config(), service_name="payments")

        result = tracker.register("1.3.0", IMAGE)

        assert isinstance(result, Err)
        assert result.error.kind == "stage_action"
        assert "HTTP 502" in result.error.message


class TestSlackNotifier:
    def _notifier(self, http: MockHttpClient) -> SlackNotifier:
        return SlackNotifier(http, token="xoxb-1", api_url=SLACK_URL)

    def test_top_level_post(self) -> None:
        http = MockHttpClient()
        http.set_json(SLACK_URL, {"ok": True, "ts": "171.001"})

        result = self._notifier(http).send("C1", "good", "released 1.3.0")

        assert result == Ok("171.001")
        (post,) = http.posts
        assert post.payload == {
            "channel": "C1",
            "attachments": [{"color": "good", "text": "released 1.3.0"}],
        }
        assert post.headers["Authorization"] == "Bearer xoxb-1"

    def test_threaded_reply(self) -> None:
        http = MockHttpClient()
        http.set_json(SLACK_URL, {"ok": True, "ts": "171.002"})

        self._notifier(http).send("C1", "good", "COMMIT BUILT : abc", thread="171.001")

        assert http.posts[0].payload["thread_ts"] == "171.001"

    def test_rejected(self) -> None:
        http = MockHttpClient()
        http.set_json(SLACK_URL, {"ok": False, "error": "channel_not_found"})

        result = self._notifier(http).send("C404", "danger", "failed")

        assert isinstance(result, Err)
        assert result.error.kind == "notification"
        assert "channel_not_found" in result.error.message

    def test_missing_ts(self) -> None:
        http = MockHttpClient()
        http.set_json(SLACK_URL, {"ok": True})

        assert isinstance(self._notifier(http).send("C1", "good", "x"), Err)

    def test_transport_failure(self) -> None:
        result = self._notifier(MockHttpClient()).send("C1", "good", "x")

        assert isinstance(result, Err)
        assert "404" in result.error.message
