"""Tests for artisanhub.services.advisor — AI calls never block callers."""

from unittest.mock import MagicMock, patch

import pytest

from artisanhub.services import advisor as advisor_mod
from artisanhub.services.advisor import Advisor, build_advisor


class TestAdvisor:
    def test_disabled_without_client(self):
        advisor = Advisor(None)
        assert advisor.enabled is False
        assert advisor.ask("system", "user") is None

    def test_returns_stripped_text(self):
        client = MagicMock(model="test-model")
        client.generate.return_value = ("  id1, id2 \n", 12)
        advisor = Advisor(client)
        assert advisor.enabled is True
        assert advisor.model == "test-model"
        assert advisor.ask("system", "user") == "id1, id2"
        client.generate.assert_called_once_with(system="system", user="user")

    def test_blank_reply_is_none(self):
        client = MagicMock()
        client.generate.return_value = ("   ", 3)
        assert Advisor(client).ask("s", "u") is None

    @pytest.mark.parametrize(
        "error",
        [TimeoutError("slow"), ConnectionError("down"), RuntimeError("rate limited"), ValueError("bad")],
    )
    def test_failures_become_none(self, error):
        client = MagicMock()
        client.generate.side_effect = error
        assert Advisor(client).ask("s", "u") is None

    def test_failure_recorded_in_metrics(self):
        client = MagicMock()
        client.generate.side_effect = TimeoutError("slow")
        with patch.object(advisor_mod, "record_ai_event") as record:
            Advisor(client).ask("s", "u")
        record.assert_called_once_with("failed")


class TestBuildAdvisor:
    def test_missing_key_disables_ai(self):
        with patch.dict(advisor_mod._PROVIDER_KEYS, {"gemini": None}):
            assert build_advisor("gemini").enabled is False

    def test_client_error_disables_ai(self):
        with patch.dict(advisor_mod._PROVIDER_KEYS, {"openai": "sk-test"}), patch.object(
            advisor_mod, "get_llm_client", side_effect=ImportError("openai package required")
        ):
            assert build_advisor("openai").enabled is False

    def test_configured_provider(self):
        client = MagicMock(model="claude-test")
        with patch.dict(advisor_mod._PROVIDER_KEYS, {"anthropic": "key"}), patch.object(
            advisor_mod, "get_llm_client", return_value=client
        ):
            advisor = build_advisor("anthropic")
        assert advisor.enabled is True
        assert advisor.client is client
