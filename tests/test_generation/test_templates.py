"""Every template must render a playbook the validator accepts."""

from __future__ import annotations

import pytest

from cortexops.analysis.deployment.complexity import should_include_feature
from cortexops.constants import ComplexityTier, Environment, Feature
from cortexops.documents.validator import parse_plays, validate_document
from cortexops.generation import templates
from cortexops.generation.params import TemplateParams
from cortexops.generation.registry import default_registry


def _params(tier: ComplexityTier = ComplexityTier.BASIC, **kw: object) -> TemplateParams:
    features = frozenset(f for f in Feature if should_include_feature(tier, f))
    return TemplateParams(tier=tier, features=features, **kw)  # type: ignore[arg-type]


class TestEveryTemplateValidates:
    @pytest.mark.parametrize("name", default_registry().names())
    @pytest.mark.parametrize("tier", list(ComplexityTier))
    def test_registry_templates(self, name: str, tier: ComplexityTier) -> None:
        spec = default_registry().get(name)
        content = spec.render(_params(tier, roles=("common", "nginx")))
        result = validate_document(content)
        assert result.valid, result.diagnostics

    @pytest.mark.parametrize("recipe", sorted(templates.BASIC_RECIPES))
    def test_basic_recipes(self, recipe: str) -> None:
        content = templates.render_basic(_params(recipe=recipe))
        assert validate_document(content).valid
        [play] = parse_plays(content)
        assert play.name == f"Configure {recipe}"
        assert play.tasks


class TestHeader:
    def test_stream_opens_with_separator(self) -> None:
        content = templates.render_basic(_params(recipe="nginx"))
        lines = content.split("\n")
        assert lines[0] == "---"
        assert lines[1].startswith("# ")
        assert "# Project: Simple Deployment" in lines
        assert "# Tier: basic" in lines

    def test_environment_in_header(self) -> None:
        content = templates.render_kubernetes(
            _params(environment=Environment.STAGING)
        )
        assert "# Environment: staging" in content


class TestBasic:
    def test_unknown_recipe_uses_generic(self) -> None:
        content = templates.render_basic(_params(recipe="unheard-of"))
        assert "ca-certificates" in content
        assert validate_document(content).valid

    def test_hosts_and_handlers(self) -> None:
        content = templates.render_basic(
            _params(recipe="nginx", hosts="web01")
        )
        [play] = parse_plays(content)
        assert play.hosts == "web01"
        assert [h.name for h in play.handlers] == ["restart nginx"]

    def test_ssl_recipe_generates_certificate(self) -> None:
        content = templates.render_basic(_params(recipe="nginx_ssl"))
        assert "openssl req -x509" in content


class TestRoleBased:
    def test_basic_tier_has_no_extras(self) -> None:
        content = templates.render_role_based(_params(roles=("common",)))
        assert "serial" not in content
        assert "pre_tasks" not in content
        assert validate_document(content).documents == 1

    def test_pro_tier_adds_serial_and_validation(self) -> None:
        content = templates.render_role_based(_params(ComplexityTier.PRO))
        assert "serial:" in content
        assert "pre_tasks:" in content
        assert "post_tasks:" not in content
        assert validate_document(content).documents == 1

    def test_enterprise_adds_reporting_and_monitoring(self) -> None:
        content = templates.render_role_based(
            _params(ComplexityTier.ENTERPRISE)
        )
        assert "post_tasks:" in content
        result = validate_document(content)
        assert result.valid
        assert result.documents == 2

    def test_default_roles(self) -> None:
        content = templates.render_role_based(_params())
        assert "- common" in content
        assert "- security" in content


class TestOtherContexts:
    def test_kubernetes_runs_locally(self) -> None:
        [play] = parse_plays(templates.render_kubernetes(_params()))
        assert play.hosts == "localhost"
        assert play.vars is not None
        assert play.vars["replicas"] == 1

    def test_kubernetes_multiserver_replicas(self) -> None:
        [play] = parse_plays(
            templates.render_kubernetes(_params(ComplexityTier.PRO))
        )
        assert play.vars is not None
        assert play.vars["replicas"] == 3
        assert any(t.name == "Wait for the rollout" for t in play.tasks)

    def test_kubernetes_enterprise_monitoring(self) -> None:
        content = templates.render_kubernetes(
            _params(ComplexityTier.ENTERPRISE)
        )
        assert "kube-prometheus-stack" in content

    def test_hybrid_three_documents(self) -> None:
        result = validate_document(templates.render_hybrid(_params()))
        assert result.valid
        assert result.documents == 3

    def test_cloud_provisioning_two_plays(self) -> None:
        plays = parse_plays(templates.render_cloud_provisioning(_params()))
        assert [p.hosts for p in plays] == ["localhost", "provisioned"]

    def test_container_uses_app_name(self) -> None:
        content = templates.render_container_simple(_params(app_name="shop"))
        assert "/opt/shop" in content
        assert "image: shop:latest" in content

    def test_serverless_runtime(self) -> None:
        content = templates.render_serverless(
            _params(python_version="3.11")
        )
        assert "python3.11" in content
