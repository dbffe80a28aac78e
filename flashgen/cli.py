"""
Command line interface for flashcard generation.

Usage:
    python -m flashgen.cli generate --file notes.txt --user alice
    python -m flashgen.cli generate --file notes.txt --user alice --accept --json
    python -m flashgen.cli --config config/flashgen.yaml config
    python -m flashgen.cli check
"""

import argparse
import json
import sys
import time
from pathlib import Path

from .config import GenerationSettings, load_settings
from .errors import GenerationError, SourceTextError, user_message_for
from .generators import build_generator
from .llm.gateway import GatewayClient
from .orchestrator import GenerationOrchestrator, GenerationResult, validate_source_text
from .persistence import JsonlGenerationStore


CHECK_PROMPT = "Respond with the single word: OK"


def print_generation_report(result: GenerationResult) -> None:
    print("Flashcard Generation")
    print("=" * 60)
    print()
    print(f"Generation: {result.generation_id} (model: {result.record.model})")
    print(f"Duration: {result.record.generation_duration}ms")
    print()

    for index, proposal in enumerate(result.proposals, start=1):
        print(f"{index}. Q: {proposal.front}")
        print(f"   A: {proposal.back}")

    print()
    print(f"Generated: {result.generated_count} flashcards")


def print_config_report(settings: GenerationSettings) -> None:
    print("Generation Configuration")
    print("=" * 60)
    for key, value in settings.describe().items():
        print(f"  {key}: {value}")


def run_generate(args) -> int:
    settings = load_settings(args.config)
    store = JsonlGenerationStore(args.store_dir or settings.store_dir)
    orchestrator = GenerationOrchestrator(build_generator(settings), store)

    try:
        try:
            source_text = Path(args.file).read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise SourceTextError("Source text must be UTF-8 encoded") from e
        validate_source_text(source_text)
        result = orchestrator.generate(source_text, args.user)
    except GenerationError as e:
        print(f"Error: {user_message_for(e)}", file=sys.stderr)
        return 1

    if args.accept:
        store.save_flashcards(result.proposals, result.generation_id, args.user)

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print_generation_report(result)
    return 0


def run_config(args) -> int:
    settings = load_settings(args.config)
    if args.json:
        print(json.dumps(settings.describe(), indent=2))
    else:
        print_config_report(settings)
    return 0


def run_check(args) -> int:
    """Send a minimal prompt through the gateway and report latency."""
    settings = load_settings(args.config)
    status = {"model": settings.model, "healthy": False, "latency_ms": None, "error": None}

    start_time = time.time()
    try:
        client = GatewayClient(
            api_key=settings.api_key,
            base_url=settings.base_url,
            default_model=settings.model,
            timeout_s=settings.timeout_s,
            max_retries=1,
            default_params=settings.parameters,
        )
        reply = client.send(CHECK_PROMPT)
        status["healthy"] = bool(reply and reply.strip())
        if not status["healthy"]:
            status["error"] = "Empty response from provider"
    except GenerationError as e:
        status["error"] = str(e)
    status["latency_ms"] = int((time.time() - start_time) * 1000)

    if args.json:
        print(json.dumps(status, indent=2))
    elif status["healthy"]:
        print(f"✓ {settings.model} - Healthy (latency: {status['latency_ms']}ms)")
    else:
        print(f"✗ {settings.model} - Unhealthy: {status['error']}")

    return 0 if status["healthy"] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flashgen",
        description="Generate flashcard proposals from source text",
    )
    parser.add_argument(
        "--config",
        help="Path to YAML configuration file (default: environment only)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate flashcards from a text file")
    generate.add_argument("--file", required=True, help="Source text file")
    generate.add_argument("--user", required=True, help="Requester identifier")
    generate.add_argument("--store-dir", help="Directory for generation records")
    generate.add_argument(
        "--accept",
        action="store_true",
        help="Save every proposal as a flashcard",
    )
    generate.add_argument("--json", action="store_true", help="Output results as JSON")
    generate.set_defaults(handler=run_generate)

    config = subparsers.add_parser("config", help="Show effective configuration")
    config.add_argument("--json", action="store_true", help="Output results as JSON")
    config.set_defaults(handler=run_config)

    check = subparsers.add_parser("check", help="Check connectivity to the gateway")
    check.add_argument("--json", action="store_true", help="Output results as JSON")
    check.set_defaults(handler=run_check)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    try:
        return args.handler(args)
    except (FileNotFoundError, GenerationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
