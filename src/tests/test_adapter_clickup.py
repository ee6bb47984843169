"""Tests for the ClickUp task-listing adapter."""

from unittest.mock import Mock, patch

import pytest
import requests

from adapters import ClickUpAdapter, PageRequest, get_adapter
from exceptions import RateLimited, ServerConfigurationError, UpstreamFailure, UpstreamTimeout
from fakes import json_response, text_response


class TestClickUpAdapter:
    """Request construction, payload normalization and error mapping."""

    def setup_method(self):
        self.mock_http = Mock()
        self.adapter = ClickUpAdapter("pk_test", http=self.mock_http, timeout=5.0)

    def test_registry_builds_clickup(self):
        adapter = get_adapter("ClickUp", api_key="pk_test", http=self.mock_http)
        assert isinstance(adapter, ClickUpAdapter)

    def test_registry_unknown_name(self):
        with pytest.raises(ValueError, match="Unknown adapter"):
            get_adapter("jira")

    def test_build_request_first_page(self):
        url, params, headers = self.adapter._build_request(page=PageRequest(team_id="9001"))

        assert url == "https://api.clickup.com/api/v2/team/9001/task"
        assert headers == {"Authorization": "pk_test"}
        assert params == [("page", "0"), ("subtasks", "true"), ("include_closed", "true")]

    def test_custom_items_repeat_in_order(self):
        page = PageRequest(team_id="9001", page_index=3, custom_item_types=("1002", "1001"))
        _, params, _ = self.adapter._build_request(page=page)

        assert ("page", "3") in params
        assert [v for k, v in params if k == "custom_items[]"] == ["1002", "1001"]

    def test_base_url_override(self):
        adapter = ClickUpAdapter("pk_test", http=self.mock_http, base_url="http://localhost:9000/v2/")
        url, _, _ = adapter._build_request(page=PageRequest(team_id="1"))
        assert url == "http://localhost:9000/v2/team/1/task"

    def test_missing_api_key_fails_before_network(self):
        adapter = ClickUpAdapter(None, http=self.mock_http)
        with pytest.raises(ServerConfigurationError, match="CLICKUP_API_KEY"):
            adapter.fetch_page(PageRequest(team_id="9001"))
        self.mock_http.assert_not_called()

    def test_missing_team_id(self):
        with pytest.raises(ServerConfigurationError, match="CLICKUP_TEAM_ID"):
            self.adapter.fetch_page(PageRequest(team_id=""))
        self.mock_http.assert_not_called()

    def test_fetch_page_returns_tasks(self):
        self.mock_http.return_value = json_response({"tasks": [{"id": "a"}, {"id": "b"}]})

        tasks = self.adapter.fetch_page(PageRequest(team_id="9001"))

        assert tasks == [{"id": "a"}, {"id": "b"}]
        _, kwargs = self.mock_http.call_args
        assert kwargs["timeout"] == 5.0
        assert kwargs["headers"]["Authorization"] == "pk_test"

    def test_missing_or_null_tasks_is_empty_page(self):
        self.mock_http.return_value = json_response({"tasks": None})
        assert self.adapter.fetch_page(PageRequest(team_id="9001")) == []
        self.mock_http.return_value = json_response({})
        assert self.adapter.fetch_page(PageRequest(team_id="9001")) == []

    def test_non_list_tasks_is_malformed(self):
        self.mock_http.return_value = json_response({"tasks": {"id": "a"}})
        with pytest.raises(UpstreamFailure, match="expected list"):
            self.adapter.fetch_page(PageRequest(team_id="9001"))

    def test_non_object_payload_is_malformed(self):
        self.mock_http.return_value = json_response([{"id": "a"}])
        with pytest.raises(UpstreamFailure, match="unexpected payload type"):
            self.adapter.fetch_page(PageRequest(team_id="9001"))

    def test_non_json_body_is_malformed(self):
        self.mock_http.return_value = text_response("<html>gateway</html>", 200)
        with pytest.raises(UpstreamFailure, match="malformed payload"):
            self.adapter.fetch_page(PageRequest(team_id="9001"))

    def test_429_raises_rate_limited(self):
        self.mock_http.return_value = json_response({"err": "Rate limit reached"}, status=429)
        with pytest.raises(RateLimited):
            self.adapter.fetch_page(PageRequest(team_id="9001"))

    def test_error_status_carries_upstream_text(self):
        self.mock_http.return_value = json_response({"err": "Team not authorized", "ECODE": "OAUTH_027"}, status=401)
        with pytest.raises(UpstreamFailure, match="HTTP 401: Team not authorized") as exc:
            self.adapter.fetch_page(PageRequest(team_id="9001"))
        assert "pk_test" not in str(exc.value)

    def test_timeout_maps_to_upstream_timeout(self):
        self.mock_http.side_effect = requests.ReadTimeout("read timed out")
        with pytest.raises(UpstreamTimeout) as exc:
            self.adapter.fetch_page(PageRequest(team_id="9001"))
        assert exc.value.status_code == 504

    def test_connection_error_maps_to_upstream_failure(self):
        self.mock_http.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(UpstreamFailure, match="connection refused"):
            self.adapter.fetch_page(PageRequest(team_id="9001"))

    def test_single_attempt_per_fetch(self):
        self.mock_http.side_effect = requests.ConnectTimeout("connect timed out")
        with pytest.raises(UpstreamTimeout):
            self.adapter.fetch_page(PageRequest(team_id="9001"))
        assert self.mock_http.call_count == 1

    def test_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("RELAY_API_TIMEOUT", "12")
        monkeypatch.setenv("RELAY_CLICKUP_TIMEOUT", "7.5")
        assert ClickUpAdapter("pk_test", http=self.mock_http).timeout == 7.5
        monkeypatch.delenv("RELAY_CLICKUP_TIMEOUT")
        assert ClickUpAdapter("pk_test", http=self.mock_http).timeout == 12.0

    def test_malformed_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("RELAY_CLICKUP_TIMEOUT", "30s")
        assert ClickUpAdapter("pk_test", http=self.mock_http).timeout == 30.0

    @patch("adapters.base.time.sleep")
    def test_request_pacing_from_env(self, mock_sleep, monkeypatch):
        monkeypatch.setenv("RELAY_CLICKUP_RPS", "1")
        self.mock_http.return_value = json_response({"tasks": []})
        adapter = ClickUpAdapter("pk_test", http=self.mock_http)

        adapter.fetch_page(PageRequest(team_id="9001"))
        adapter.fetch_page(PageRequest(team_id="9001"))

        assert mock_sleep.called


def test_next_page_keeps_filters():
    page = PageRequest(team_id="9001", custom_item_types=("1001",))
    nxt = page.next_page()
    assert nxt.page_index == 1
    assert nxt.custom_item_types == ("1001",)
    assert page.page_index == 0
