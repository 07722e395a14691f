"""Shared constants: single source of truth for cross-module values.

All magic strings and numbers that appear in 2+ files belong here.
StrEnum members are str-compatible, so downstream code (JSON
payloads, CLI output, log lines) works unchanged.
"""

from __future__ import annotations

from enum import StrEnum

# ── String Enums ─────────────────────────────────────────


class EntityType(StrEnum):
    """Typed categories for entities extracted from a prompt."""

    SERVICE = "service"
    PLATFORM = "platform"
    ENVIRONMENT = "environment"
    ACTION = "action"
    SECURITY = "security"
    INFRASTRUCTURE = "infrastructure"


class PromptCategory(StrEnum):
    """Guard-rail verdict categories."""

    TECHNICAL = "technical"
    AMBIGUOUS = "ambiguous"
    INVALID = "invalid"
    EMPTY = "empty"


class DeploymentContext(StrEnum):
    """Mutually exclusive deployment targets."""

    CLASSIC_LINUX = "classic-linux"
    KUBERNETES = "kubernetes"
    CLOUD_PROVISIONING = "cloud-provisioning"
    HYBRID = "hybrid"
    CONTAINER_SIMPLE = "container-simple"
    SERVERLESS = "serverless"


class ComplexityTier(StrEnum):
    """Playbook complexity tiers."""

    BASIC = "basic"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class Feature(StrEnum):
    """Optional playbook features gated by complexity tier."""

    MONITORING = "monitoring"
    CICD = "cicd"
    REPORTING = "reporting"
    VALIDATION = "validation"
    MULTISERVER = "multiserver"


class Environment(StrEnum):
    """Target environments accepted by the generator."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"


class StageOutcome(StrEnum):
    """Outcome of an individual pipeline stage execution."""

    COMPLETED = "completed"
    FAILED = "failed"


# ── Confidence Values ────────────────────────────────────


class Confidence:
    """Named confidence values, single source of truth."""

    INTENT_FALLBACK = 0.3  # No intent keyword matched
    INTENT_FLOOR = 0.5  # At least one intent matched
    CONTEXT_SERVERLESS = 0.95
    CONTEXT_CONTAINER_SIMPLE = 0.90
    CONTEXT_KUBERNETES = 0.95
    CONTEXT_HYBRID = 0.90
    CONTEXT_CLOUD_PROVISIONING = 0.85
    CONTEXT_CLASSIC_LINUX = 0.90
    CONTEXT_DEFAULT = 0.50  # Catch-all branch
    TIER_BASIC = 0.90
    TIER_PRO = 0.85
    TIER_ENTERPRISE = 0.95


# ── Guard Rail Weights ───────────────────────────────────


class GuardRailWeight:
    """Per-match weight of each guard-rail vocabulary category."""

    SERVICE = 10
    CLOUD = 10
    SYSTEM = 9
    OS = 8
    INFRA = 5
    AMBIGUOUS = 3
    INVALID = 5


GUARDRAIL_TECHNICAL_THRESHOLD = 10
GUARDRAIL_AMBIGUOUS_THRESHOLD = 5
GUARDRAIL_AMBIGUOUS_VALID_CONFIDENCE = 60
GUARDRAIL_AMBIGUOUS_INVALID_CONFIDENCE = 30
GUARDRAIL_CONFIDENCE_MULTIPLIER = 5
GUARDRAIL_MAX_CONFIDENCE = 100

# ── Intent Scoring ───────────────────────────────────────

INTENT_START_BONUS = 2
INTENT_PARTIAL_FACTOR = 0.5
INTENT_MAX_SECONDARY = 3
FALLBACK_INTENT = "deployment"

# ── Complexity Scoring ───────────────────────────────────

COMPLEXITY_FEW_SERVICES_POINTS = 3
COMPLEXITY_MANY_SERVICES_POINTS = 6
COMPLEXITY_MANY_SERVICES_MIN = 4
COMPLEXITY_MULTI_HOST_POINTS = 2
COMPLEXITY_MONITORING_POINTS = 2
COMPLEXITY_CICD_POINTS = 2
COMPLEXITY_CUSTOM_LOGIC_POINTS = 1
COMPLEXITY_SECURITY_POINTS = 1
COMPLEXITY_BASIC_MAX = 3
COMPLEXITY_PRO_MAX = 8

# ── Normalization ────────────────────────────────────────

# Terms this short only match whole tokens ("do" must not hit "docker")
SHORT_TERM_MAX_LENGTH = 3

# ── Documents ────────────────────────────────────────────

DOCUMENT_SEPARATOR = "---"
TEMPLATE_OPEN = "{{"
TEMPLATE_CLOSE = "}}"
TAB_REPLACEMENT = "  "
DEFAULT_HOSTS = "all"
PLACEHOLDER_PLAY_NAME = "Generated play"
PLACEHOLDER_TASK_NAME = "Generated task"
NOOP_MODULE = "debug"
NOOP_MESSAGE = "Task to be implemented"

TASK_SECTIONS = ("tasks", "handlers", "pre_tasks", "post_tasks")

TASK_CONTROL_KEYWORDS = frozenset({
    "name",
    "become",
    "become_user",
    "when",
    "register",
    "tags",
    "notify",
    "loop",
    "with_items",
    "ignore_errors",
    "changed_when",
    "failed_when",
    "vars",
})

PLAY_HEADER_KEYS = (
    "hosts",
    "become",
    "become_user",
    "become_method",
    "gather_facts",
    "check_mode",
    "remote_user",
    "vars",
    "vars_files",
    "roles",
    "serial",
    "environment",
)

# ── API / Misc ───────────────────────────────────────────

ID_HEX_LENGTH = 12
ERROR_TRUNCATION_CHARS = 200

API_KEY_HEADER = "X-API-Key"
AUTH_ERROR_MESSAGE = "Invalid or missing API key"

# Routes served without a key; the docs routes come from the app itself
PUBLIC_PATH_PREFIXES = ("/api/health",)
