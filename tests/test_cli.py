"""Tests for CLI commands (chat, demo, models) and utilities."""

import argparse
import json
import logging
from unittest.mock import MagicMock, patch

import pytest

import cli
from agent import Agent
from context_manager import ContextManager
from usage import UsageTracker


# ═══════════════════════════════════════════════════════════════════════════
#  Utilities
# ═══════════════════════════════════════════════════════════════════════════

class TestTruncate:
    def test_short_unchanged(self):
        assert cli._truncate("abc", 10) == "abc"

    def test_long_truncated(self):
        assert cli._truncate("x" * 20, 5) == "xxxxx..."


class TestPrintContext:
    def test_flattens_newlines(self, capsys):
        cli._print_context([{"role": "system", "content": "line1\nline2"}])
        out = capsys.readouterr().out
        assert "[1] system: line1 line2" in out


# ═══════════════════════════════════════════════════════════════════════════
#  models
# ═══════════════════════════════════════════════════════════════════════════

class TestCmdModels:
    def test_lists_models(self, capsys):
        cli.cmd_models(argparse.Namespace())
        out = capsys.readouterr().out
        assert "gpt-4o-mini" in out
        assert "128,000" in out
        assert "0.150" in out


# ═══════════════════════════════════════════════════════════════════════════
#  gateway wiring
# ═══════════════════════════════════════════════════════════════════════════

class TestBuildGateway:
    @patch("llm.providers.provider_from_settings", side_effect=ValueError("No API key configured"))
    def test_exits_without_key(self, mock_factory, caplog):
        with caplog.at_level(logging.ERROR, logger="ctx-cli"):
            with pytest.raises(SystemExit):
                cli._build_gateway(MagicMock())
        assert "LLM_API_KEY" in caplog.text

    def test_context_uses_overrides(self, gateway):
        settings = MagicMock(
            COMPRESSION_WINDOW=10, RECENT_WINDOW=6,
            SUMMARY_TEMPERATURE=0.3, MAX_SUMMARY_TOKENS=150,
        )
        cm = cli._build_context(gateway, settings, 4, 0)
        assert (cm.compression_window, cm.recent_window) == (4, 0)
        cm = cli._build_context(gateway, settings)
        assert (cm.compression_window, cm.recent_window) == (10, 6)

    def test_zero_compression_window_is_not_replaced(self, gateway):
        settings = MagicMock(
            COMPRESSION_WINDOW=10, RECENT_WINDOW=6,
            SUMMARY_TEMPERATURE=0.3, MAX_SUMMARY_TOKENS=150,
        )
        with pytest.raises(ValueError):
            cli._build_context(gateway, settings, 0, None)


# ═══════════════════════════════════════════════════════════════════════════
#  demo
# ═══════════════════════════════════════════════════════════════════════════

class TestCmdDemo:
    def test_runs_both_scenarios(self, gateway, capsys):
        args = argparse.Namespace(compression_window=10, recent_window=6)
        with patch("cli._build_gateway", return_value=gateway):
            cli.cmd_demo(args)

        out = capsys.readouterr().out
        assert "Without compression" in out
        assert "With compression" in out
        assert "Compressed blocks:     2" in out
        # plain request + 2 summaries + compressed request
        assert gateway.complete.call_count == 4

        compressed_request = gateway.complete.call_args[0][0]
        assert compressed_request[0]["role"] == "system"
        assert len(compressed_request) == 1 + 6 + 1
        assert compressed_request[-1]["content"] == cli.RECAP_QUESTION

    def test_demo_dialog_shape(self):
        assert len(cli.DEMO_DIALOG) == 26
        assert {role for role, _ in cli.DEMO_DIALOG} == {"user", "assistant"}


# ═══════════════════════════════════════════════════════════════════════════
#  chat
# ═══════════════════════════════════════════════════════════════════════════

class TestHandleCommand:
    def _agent(self, gateway):
        return Agent(gateway, ContextManager(gateway), tracker=UsageTracker(1000, 0, 0))

    def test_quit(self, gateway, tmp_path):
        assert cli._handle_command("/quit", self._agent(gateway), str(tmp_path / "h.json")) is False

    def test_stats(self, gateway, tmp_path, capsys):
        assert cli._handle_command("/stats", self._agent(gateway), str(tmp_path / "h.json"))
        out = capsys.readouterr().out
        assert "Total messages" in out
        assert "Context usage" in out

    def test_reset(self, gateway, tmp_path):
        agent = self._agent(gateway)
        agent.context.add_message("user", "hi")
        cli._handle_command("/reset", agent, str(tmp_path / "h.json"))
        assert len(agent.context) == 0

    def test_save(self, gateway, tmp_path):
        agent = self._agent(gateway)
        agent.context.add_message("user", "hi")
        path = tmp_path / "h.json"
        cli._handle_command("/save", agent, str(path))
        assert json.loads(path.read_text(encoding="utf-8"))["history"][0]["content"] == "hi"

    def test_unknown_prints_help(self, gateway, tmp_path, caplog):
        with caplog.at_level(logging.INFO, logger="ctx-cli"):
            assert cli._handle_command("/nope", self._agent(gateway), str(tmp_path / "h.json"))
        assert "/stats" in caplog.text

    def test_save_failure_is_logged(self, gateway, tmp_path, caplog):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("", encoding="utf-8")
        with caplog.at_level(logging.ERROR, logger="ctx-cli"):
            assert cli._handle_command("/save", self._agent(gateway), str(blocker / "h.json"))
        assert "Could not save history" in caplog.text

    def test_history_prints_full_transcript(self, gateway, tmp_path, capsys):
        agent = self._agent(gateway)
        for i in range(12):
            agent.context.add_message("user" if i % 2 == 0 else "assistant", f"turn {i}")
        assert cli._handle_command("/history", agent, str(tmp_path / "h.json"))
        out = capsys.readouterr().out
        assert "Full history (12 messages)" in out
        assert "user: turn 0" in out
        assert "assistant: turn 11" in out

    def test_history_empty(self, gateway, tmp_path, capsys):
        cli._handle_command("/history", self._agent(gateway), str(tmp_path / "h.json"))
        assert "History is empty." in capsys.readouterr().out


class TestCmdChat:
    def test_conversation_saved_on_quit(self, gateway, tmp_path, capsys):
        path = tmp_path / "conv.json"
        args = argparse.Namespace(compression_window=10, recent_window=6, history=str(path))
        with patch("cli._build_gateway", return_value=gateway), \
                patch("builtins.input", side_effect=["hello", "", "/quit"]):
            cli.cmd_chat(args)

        out = capsys.readouterr().out
        assert "Assistant: summary 1" in out
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [m["content"] for m in saved["history"]] == ["hello", "summary 1"]

    def test_resumes_saved_conversation(self, gateway, tmp_path):
        path = tmp_path / "conv.json"
        path.write_text(json.dumps({
            "history": [
                {"role": "user", "content": "my name is Alex", "timestamp": "2025-01-01T00:00:00+00:00"},
                {"role": "assistant", "content": "hi Alex", "timestamp": "2025-01-01T00:00:01+00:00"},
            ],
            "saved_at": "2025-01-01T00:00:02+00:00",
        }), encoding="utf-8")
        args = argparse.Namespace(compression_window=10, recent_window=6, history=str(path))
        with patch("cli._build_gateway", return_value=gateway), \
                patch("builtins.input", side_effect=["what is my name?", EOFError]):
            cli.cmd_chat(args)

        request = gateway.complete.call_args[0][0]
        assert {"role": "user", "content": "my name is Alex"} in request

    def test_gateway_error_keeps_repl_alive(self, gateway, tmp_path, caplog):
        from llm.errors import GatewayError

        gateway.complete.side_effect = GatewayError("rate limited")
        args = argparse.Namespace(compression_window=10, recent_window=6, history=str(tmp_path / "c.json"))
        with patch("cli._build_gateway", return_value=gateway), \
                patch("builtins.input", side_effect=["hello", "/quit"]):
            with caplog.at_level(logging.ERROR, logger="ctx-cli"):
                cli.cmd_chat(args)
        assert "Request failed" in caplog.text

    def test_interrupt_during_request_still_saves(self, gateway, tmp_path):
        path = tmp_path / "conv.json"
        path.write_text(json.dumps({
            "history": [
                {"role": "user", "content": "remember 42", "timestamp": "2025-01-01T00:00:00+00:00"},
            ],
            "saved_at": "2025-01-01T00:00:01+00:00",
        }), encoding="utf-8")
        gateway.complete.side_effect = KeyboardInterrupt
        args = argparse.Namespace(compression_window=10, recent_window=6, history=str(path))
        with patch("cli._build_gateway", return_value=gateway), \
                patch("builtins.input", side_effect=["hello", "/quit"]):
            cli.cmd_chat(args)

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert [m["content"] for m in saved["history"]] == ["remember 42"]
        assert saved["saved_at"] != "2025-01-01T00:00:01+00:00"


class TestMain:
    def test_no_command_prints_help(self, capsys):
        cli.main([])
        assert "usage" in capsys.readouterr().out.lower()

    @patch("cli.cmd_models")
    def test_routes_models(self, mock_models):
        cli.main(["models"])
        mock_models.assert_called_once()
