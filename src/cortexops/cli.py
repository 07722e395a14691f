"""CLI entry point: ``cortexops check|classify|generate|lint|serve``."""

from __future__ import annotations

from cortexops.logging_config import setup_logging

setup_logging("WARNING")

import argparse  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from dataclasses import asdict  # noqa: E402
from pathlib import Path  # noqa: E402
from typing import Any  # noqa: E402

from cortexops import __version__  # noqa: E402
from cortexops.analysis.quality.guardrails import (  # noqa: E402
    format_validation_error,
)
from cortexops.config import Settings  # noqa: E402
from cortexops.constants import Environment  # noqa: E402
from cortexops.core import (  # noqa: E402
    classify_deployment,
    classify_prompt,
    validate_prompt,
)
from cortexops.documents.fixes import fix_until_stable  # noqa: E402
from cortexops.documents.validator import validate_document  # noqa: E402
from cortexops.logging_config import set_level  # noqa: E402


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"cortexops {__version__}")
        return

    if args.verbose:
        set_level("DEBUG")

    if args.command == "check":
        _run_check(args)
    elif args.command == "classify":
        _run_classify(args)
    elif args.command == "generate":
        _run_generate(args)
    elif args.command == "lint":
        _run_lint(args)
    elif args.command == "serve":
        _run_serve(args)
    else:
        parser.print_help()


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cortexops",
        description=(
            "Validate infrastructure prompts, classify deployments "
            "and lint Ansible playbooks."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging",
    )

    sub = parser.add_subparsers(dest="command")

    check = sub.add_parser(
        "check",
        help="Run the guard rail on a prompt",
    )
    check.add_argument("prompt", type=str, help="Prompt text")

    classify = sub.add_parser(
        "classify",
        help="Classify intent, entities, context and complexity",
    )
    classify.add_argument("prompt", type=str, help="Prompt text")
    classify.add_argument(
        "--services",
        type=int,
        default=None,
        help="Service count override for the complexity score",
    )

    generate = sub.add_parser(
        "generate",
        help="Generate a validated playbook from a prompt",
    )
    generate.add_argument("prompt", type=str, help="Prompt text")
    generate.add_argument(
        "--environment",
        "-e",
        choices=[e.value for e in Environment],
        default=None,
        help="Target environment (default: from settings)",
    )
    generate.add_argument(
        "--output",
        "-o",
        default=None,
        help="Write the playbook to this file instead of stdout",
    )

    lint = sub.add_parser(
        "lint",
        help="Validate a playbook file",
    )
    lint.add_argument("path", type=str, help="Playbook file")
    lint.add_argument(
        "--fix",
        action="store_true",
        help="Apply automatic fixes and print the result",
    )
    lint.add_argument(
        "--write",
        action="store_true",
        help="With --fix, write the fixed playbook back to the file",
    )

    serve = sub.add_parser(
        "serve",
        help="Start the HTTP API",
    )
    serve.add_argument(
        "--host",
        default="127.0.0.1",
        help="Bind address (default: 127.0.0.1)",
    )
    serve.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port (default: 8000)",
    )

    return parser


def _emit(args: argparse.Namespace, payload: dict[str, Any], text: str) -> None:
    if args.json:
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(text)


def _run_check(args: argparse.Namespace) -> None:
    """Execute the check command."""
    verdict = validate_prompt(args.prompt)
    text = (
        f"OK ({verdict.category}, confidence {verdict.confidence})"
        if verdict.is_valid
        else format_validation_error(verdict)
    )
    _emit(args, verdict.model_dump(mode="json"), text)
    if not verdict.is_valid:
        sys.exit(1)


def _run_classify(args: argparse.Namespace) -> None:
    """Execute the classify command."""
    prompt = classify_prompt(args.prompt)
    deployment = classify_deployment(args.prompt, args.services)
    payload = {
        "intent": asdict(prompt.intent),
        "entities": [asdict(e) for e in prompt.entities],
        "context": deployment.context.model_dump(mode="json"),
        "complexity": deployment.complexity.model_dump(mode="json"),
    }
    intent = prompt.intent
    lines = [
        f"Intent:     {intent.primary} ({intent.confidence:.2f})",
        f"Secondary:  {', '.join(intent.secondary) or '-'}",
        "Entities:   "
        + (", ".join(f"{e.type}:{e.value}" for e in prompt.entities) or "-"),
        f"Context:    {deployment.context.context} "
        f"({deployment.context.confidence:.2f})",
        f"Complexity: {deployment.complexity.tier} "
        f"(score {deployment.complexity.score})",
    ]
    _emit(args, payload, "\n".join(lines))


def _run_generate(args: argparse.Namespace) -> None:
    """Execute the generate command."""
    from cortexops.services.generation_service import run_generation

    settings = Settings()
    environment = Environment(args.environment) if args.environment else None
    result = run_generation(args.prompt, settings, environment=environment)

    if result.content is None:
        print(
            f"Error: {result.error or 'generation failed'}",
            file=sys.stderr,
        )
        sys.exit(1)

    if args.verbose:
        for stage in result.stages:
            status = "ok" if stage.ok else "FAILED"
            print(
                f"  [{status}] {stage.name} ({stage.duration_ms:.0f}ms)",
                file=sys.stderr,
            )

    if args.output:
        Path(args.output).write_text(result.content, encoding="utf-8")
        print(
            f"Wrote {args.output} "
            f"({result.playbook.template if result.playbook else '-'})",
            file=sys.stderr,
        )
    elif args.json:
        print(
            json.dumps(
                {
                    "content": result.content,
                    "template": (
                        result.playbook.template if result.playbook else None
                    ),
                    "valid": result.ok,
                },
                indent=2,
            )
        )
    else:
        print(result.content, end="")

    if not result.ok:
        sys.exit(1)


def _run_lint(args: argparse.Namespace) -> None:
    """Execute the lint command."""
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: {path} does not exist", file=sys.stderr)
        sys.exit(1)
    if args.write and not args.fix:
        print("Error: --write requires --fix", file=sys.stderr)
        sys.exit(1)

    text = path.read_text(encoding="utf-8")
    validation = validate_document(text)

    if args.fix and not validation.valid:
        report = fix_until_stable(
            text, max_passes=Settings().auto_fix_max_passes
        )
        validation = validate_document(report.text)
        if args.write:
            path.write_text(report.text, encoding="utf-8")
            print(
                f"Fixed {path}: {', '.join(report.applied) or 'no changes'}",
                file=sys.stderr,
            )
        else:
            print(report.text, end="")

    # Fixed text owns stdout when it is printed rather than written
    stream = sys.stderr if args.fix and not args.write else sys.stdout
    lines = [
        f"{path}:{d.line or 0}: [{d.code}] {d.message}"
        + (" (fixable)" if d.fixable else "")
        for d in validation.diagnostics
    ]
    if not lines:
        lines.append(f"{path}: OK")
    if args.json:
        print(
            json.dumps(validation.model_dump(mode="json"), indent=2),
            file=stream,
        )
    else:
        print("\n".join(lines), file=stream)

    if not validation.valid:
        sys.exit(1)


def _run_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI app under uvicorn."""
    import uvicorn

    uvicorn.run(
        "cortexops.main:app",
        host=args.host,
        port=args.port,
        log_level=Settings().log_level.lower(),
    )
