"""Tests for the generation pipeline."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from cortexops.analysis.quality.guardrails import OFF_TOPIC_MESSAGE
from cortexops.config import Settings
from cortexops.constants import Environment, StageOutcome
from cortexops.documents.schemas import FixId
from cortexops.generation.params import TemplateParams
from cortexops.generation.router import GeneratedPlaybook
from cortexops.logger import RequestLogger
from cortexops.services.generation_service import (
    StageStatus,
    _run_stage_sync,
    run_generation,
)

NGINX_PROMPT = "Installer nginx avec SSL sur Ubuntu"


def _settings(tmp_path: Path, **overrides: object) -> Settings:
    return Settings(log_dir=tmp_path, **overrides)  # type: ignore[arg-type]


def _fake_generate(content: str) -> Callable[..., GeneratedPlaybook]:
    def fake(*args: object, **kwargs: object) -> GeneratedPlaybook:
        return GeneratedPlaybook(
            template="fake", content=content, params=TemplateParams()
        )

    return fake


class TestRunGeneration:
    def test_technical_prompt(self, tmp_path: Path) -> None:
        result = run_generation(NGINX_PROMPT, _settings(tmp_path))
        assert result.accepted
        assert result.ok
        assert [s.name for s in result.stages] == [
            "guard_rail",
            "classify",
            "deployment",
            "render",
            "validate",
        ]
        assert all(s.ok for s in result.stages)
        assert result.playbook is not None
        assert result.playbook.template == "classic-linux-basic"
        assert result.content == result.playbook.content
        assert result.fix_report is None
        assert len(result.request_id) == 12
        assert result.total_duration_ms >= 0

    def test_rejected_prompt_stops_after_guard_rail(
        self, tmp_path: Path
    ) -> None:
        result = run_generation("I love pizza", _settings(tmp_path))
        assert not result.accepted
        assert not result.ok
        assert result.content is None
        assert result.error == OFF_TOPIC_MESSAGE
        assert [s.name for s in result.stages] == ["guard_rail"]

    def test_prompt_too_long(self, tmp_path: Path) -> None:
        result = run_generation(
            NGINX_PROMPT, _settings(tmp_path, max_prompt_length=10)
        )
        assert result.stages == []
        assert result.verdict is None
        assert result.error == "Prompt exceeds 10 characters"

    def test_environment_default_and_override(self, tmp_path: Path) -> None:
        settings = _settings(
            tmp_path, default_environment=Environment.DEVELOPMENT
        )
        assert (
            run_generation(NGINX_PROMPT, settings).environment
            == Environment.DEVELOPMENT
        )
        result = run_generation(
            NGINX_PROMPT, settings, environment=Environment.STAGING
        )
        assert result.environment == Environment.STAGING
        assert result.content is not None
        assert "# Environment: staging" in result.content

    def test_request_id_passthrough(self, tmp_path: Path) -> None:
        result = run_generation(
            NGINX_PROMPT, _settings(tmp_path), request_id="req-1"
        )
        assert result.request_id == "req-1"


class TestAutoFixStage:
    def test_invalid_render_is_repaired(
        self, tmp_path: Path, missing_hosts_playbook: str
    ) -> None:
        with patch(
            "cortexops.services.generation_service.generate",
            _fake_generate(missing_hosts_playbook),
        ):
            result = run_generation(NGINX_PROMPT, _settings(tmp_path))
        assert result.stages[-1].name == "auto_fix"
        assert result.fix_report is not None
        assert FixId.ADD_HOSTS in result.fix_report.applied
        assert result.ok
        assert result.content is not None
        assert "hosts: all" in result.content

    def test_auto_fix_disabled(
        self, tmp_path: Path, missing_hosts_playbook: str
    ) -> None:
        with patch(
            "cortexops.services.generation_service.generate",
            _fake_generate(missing_hosts_playbook),
        ):
            result = run_generation(
                NGINX_PROMPT,
                _settings(tmp_path, auto_fix_enabled=False),
            )
        assert "auto_fix" not in [s.name for s in result.stages]
        assert result.content == missing_hosts_playbook
        assert not result.ok


class TestStageFailures:
    def test_render_failure_is_captured(self, tmp_path: Path) -> None:
        with patch(
            "cortexops.services.generation_service.generate",
            side_effect=RuntimeError("boom"),
        ):
            result = run_generation(NGINX_PROMPT, _settings(tmp_path))
        render = result.stages[-1]
        assert render.name == "render"
        assert render.ok is False
        assert render.outcome == StageOutcome.FAILED
        assert render.error == "boom"
        assert result.error == "boom"
        assert result.content is None

    def test_run_stage_sync_success(self) -> None:
        out, status = _run_stage_sync("s", lambda: 42)
        assert out == 42
        assert status.ok is True
        assert status.outcome == StageOutcome.COMPLETED

    def test_stages_not_needed_are_not_recorded(
        self, tmp_path: Path
    ) -> None:
        result = run_generation(NGINX_PROMPT, _settings(tmp_path))
        assert "auto_fix" not in [s.name for s in result.stages]
        assert {s.outcome for s in result.stages} == {StageOutcome.COMPLETED}
        assert set(StageOutcome) == {"completed", "failed"}

    def test_run_stage_sync_logs_exception(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        def fail() -> int:
            raise ValueError("bad")

        with caplog.at_level(logging.ERROR):
            out, status = _run_stage_sync("s", fail)
        assert out is None
        assert status == StageStatus(
            name="s", ok=False, duration_ms=status.duration_ms, error="bad"
        )
        assert "event=stage_failed stage=s" in caplog.text


class TestRequestLogging:
    def _entries(self, log_dir: Path) -> list[dict[str, object]]:
        for handler in logging.getLogger("cortexops.requests").handlers:
            handler.flush()
        text = (log_dir / "requests.log").read_text(encoding="utf-8")
        return [json.loads(line) for line in text.splitlines() if line]

    def test_stages_and_request_logged(self, tmp_path: Path) -> None:
        rl = RequestLogger(tmp_path)
        result = run_generation(
            NGINX_PROMPT, _settings(tmp_path), request_logger=rl
        )
        entries = self._entries(tmp_path)
        stages = [e for e in entries if e["type"] == "stage"]
        assert [e["stage"] for e in stages] == [s.name for s in result.stages]
        [request] = [e for e in entries if e["type"] == "request"]
        assert request["request_id"] == result.request_id
        assert request["category"] == "technical"
        assert request["context"] == "classic-linux"
        assert request["tier"] == "basic"

    def test_failure_logged_as_error(self, tmp_path: Path) -> None:
        rl = RequestLogger(tmp_path)
        with patch(
            "cortexops.services.generation_service.generate",
            side_effect=RuntimeError("boom"),
        ):
            run_generation(
                NGINX_PROMPT, _settings(tmp_path), request_logger=rl
            )
        errors = [e for e in self._entries(tmp_path) if e["type"] == "error"]
        assert errors == [
            {
                "type": "error",
                "timestamp": errors[0]["timestamp"],
                "request_id": errors[0]["request_id"],
                "component": "render",
                "error": "boom",
            }
        ]
