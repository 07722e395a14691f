"""Tests for API routes using httpx AsyncClient."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

NGINX_PROMPT = "Installer nginx avec SSL sur Ubuntu"


class TestHealthRoutes:
    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.asyncio
    async def test_health_detailed(self, client: AsyncClient) -> None:
        resp = await client.get("/api/health/detailed")
        templates = resp.json()["components"]["templates"]
        assert templates["status"] == "loaded"
        assert templates["count"] == 8
        assert "kubernetes" in templates["names"]


class TestPromptRoutes:
    @pytest.mark.asyncio
    async def test_validate_technical(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/prompts/validate", json={"prompt": NGINX_PROMPT}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["category"] == "technical"
        assert body["data"]["confidence"] == 100
        assert "formatted_error" not in body["metadata"]
        assert isinstance(body["metadata"]["suggestions"], list)

    @pytest.mark.asyncio
    async def test_validate_rejected(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/prompts/validate", json={"prompt": "I love pizza"}
        )
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["is_valid"] is False
        assert "Suggestions:" in body["metadata"]["formatted_error"]

    @pytest.mark.asyncio
    async def test_prompt_too_long(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/prompts/validate", json={"prompt": "x" * 10_001}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_classify(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/prompts/classify", json={"prompt": NGINX_PROMPT}
        )
        data = resp.json()["data"]
        assert data["intent"]["primary"]
        assert ("service", "nginx") in {
            (e["type"], e["value"]) for e in data["entities"]
        }


class TestDeploymentRoutes:
    @pytest.mark.asyncio
    async def test_classify(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/deployment/classify", json={"prompt": NGINX_PROMPT}
        )
        body = resp.json()
        assert body["data"]["context"]["context"] == "classic-linux"
        assert body["data"]["complexity"]["tier"] == "basic"
        assert body["metadata"]["role_based"] is True
        assert body["metadata"]["expected_components"]

    @pytest.mark.asyncio
    async def test_service_count_override(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/deployment/classify",
            json={"prompt": NGINX_PROMPT, "service_count": 6},
        )
        complexity = resp.json()["data"]["complexity"]
        assert complexity["indicators"]["service_count"] == 6

    @pytest.mark.asyncio
    async def test_negative_service_count(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/deployment/classify",
            json={"prompt": NGINX_PROMPT, "service_count": -1},
        )
        assert resp.status_code == 422


class TestDocumentRoutes:
    @pytest.mark.asyncio
    async def test_validate(
        self, client: AsyncClient, missing_hosts_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/validate",
            json={"content": missing_hosts_playbook},
        )
        body = resp.json()
        assert body["data"]["valid"] is False
        assert body["data"]["diagnostics"][0]["code"] == "missing_hosts"
        assert [f["fix_id"] for f in body["metadata"]["fixes"]] == [
            "add_hosts",
            "apply_all",
        ]

    @pytest.mark.asyncio
    async def test_validate_clean(
        self, client: AsyncClient, valid_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/validate", json={"content": valid_playbook}
        )
        body = resp.json()
        assert body["data"]["valid"] is True
        assert body["metadata"]["fixes"] == []

    @pytest.mark.asyncio
    async def test_validate_unbuildable_value(
        self, client: AsyncClient
    ) -> None:
        content = "---\n- name: p\n  hosts: all\n  vars:\n    d: 2020-99-99\n"
        resp = await client.post(
            "/api/documents/validate", json={"content": content}
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["data"]["valid"] is False
        assert [d["code"] for d in body["data"]["diagnostics"]] == [
            "parse_error"
        ]
        assert body["metadata"]["fixes"] == []

    @pytest.mark.asyncio
    async def test_fix(
        self, client: AsyncClient, missing_hosts_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/fix", json={"content": missing_hosts_playbook}
        )
        data = resp.json()["data"]
        assert "hosts: all" in data["content"]
        assert data["changed"] is True
        assert data["applied"] == ["add_hosts"]
        assert data["validation"]["valid"] is True

    @pytest.mark.asyncio
    async def test_fix_with_message_diagnostics(
        self, client: AsyncClient, valid_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/fix",
            json={
                "content": valid_playbook.removeprefix("---\n"),
                "diagnostics": ['Le document doit commencer par "---"'],
            },
        )
        data = resp.json()["data"]
        assert data["content"] == valid_playbook
        assert data["applied"] == ["add_separator"]

    @pytest.mark.asyncio
    async def test_fix_until_stable(
        self, client: AsyncClient, tab_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/fix",
            json={"content": tab_playbook, "until_stable": True},
        )
        data = resp.json()["data"]
        assert "\t" not in data["content"]
        assert data["passes"] == 1
        assert data["validation"]["valid"] is True

    @pytest.mark.asyncio
    async def test_max_passes_bounds(
        self, client: AsyncClient, tab_playbook: str
    ) -> None:
        resp = await client.post(
            "/api/documents/fix",
            json={"content": tab_playbook, "max_passes": 0},
        )
        assert resp.status_code == 422


class TestGenerateRoutes:
    @pytest.mark.asyncio
    async def test_generate(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/generate",
            json={"prompt": NGINX_PROMPT, "environment": "staging"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["data"]["template"] == "classic-linux-basic"
        assert body["data"]["environment"] == "staging"
        assert body["data"]["valid"] is True
        assert body["data"]["content"].startswith("---\n")
        assert body["data"]["fixes_applied"] == []
        assert body["metadata"]["history_id"]
        assert [s["name"] for s in body["metadata"]["stages"]][0] == (
            "guard_rail"
        )

    @pytest.mark.asyncio
    async def test_rejected_prompt(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/generate", json={"prompt": "I love pizza"}
        )
        body = resp.json()
        assert body["success"] is False
        assert body["data"]["verdict"]["category"] == "invalid"
        assert body["error"]
        assert "history_id" not in body["metadata"]

        history = await client.get("/api/history")
        assert history.json()["data"] == []

    @pytest.mark.asyncio
    async def test_empty_prompt(self, client: AsyncClient) -> None:
        resp = await client.post("/api/generate", json={"prompt": ""})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_environment(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/generate",
            json={"prompt": NGINX_PROMPT, "environment": "moon"},
        )
        assert resp.status_code == 422


class TestHistoryRoutes:
    @pytest.mark.asyncio
    async def test_lifecycle(self, client: AsyncClient) -> None:
        created = await client.post(
            "/api/generate", json={"prompt": NGINX_PROMPT}
        )
        record_id = created.json()["metadata"]["history_id"]

        listing = (await client.get("/api/history")).json()
        assert listing["metadata"]["count"] == 1
        assert listing["data"][0]["id"] == record_id

        one = (await client.get(f"/api/history/{record_id}")).json()
        assert one["success"] is True
        assert one["data"]["prompt"] == NGINX_PROMPT
        assert one["data"]["context"] == "classic-linux"

        deleted = (await client.delete(f"/api/history/{record_id}")).json()
        assert deleted == {
            "success": True,
            "data": {"id": record_id},
            "error": None,
            "metadata": {},
        }

        gone = (await client.get(f"/api/history/{record_id}")).json()
        assert gone["success"] is False
        assert gone["error"] == f"History entry '{record_id}' not found"

    @pytest.mark.asyncio
    async def test_delete_missing(self, client: AsyncClient) -> None:
        resp = await client.delete("/api/history/nope")
        assert resp.json()["success"] is False
