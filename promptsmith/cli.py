"""Interactive shell for the promptsmith request orchestrator."""

from __future__ import annotations

import argparse
import json
import sys

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Optional

from dotenv import load_dotenv

from promptsmith.configuration import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_MAX_PROMPT_CHARS,
    SamplingConfigStore,
    Settings,
    build_settings,
    execute_config_command,
    is_config_command,
    load_config_file,
    validate_field,
)
from promptsmith.exceptions import ValidationError
from promptsmith.llm.providers import LLMProvider, load_provider
from promptsmith.logging import configure_logging
from promptsmith.orchestrator import (
    RequestOrchestrator,
    RequestResult,
    validate_prompt,
)
from promptsmith.prompting import PromptBuilder, PromptManager

EXIT_COMMANDS = {"exit", "quit"}

BANNER = """Enhanced Structured Output Assistant - Type 'exit' to quit.

Commands:
  /json <prompt>     - Get structured JSON output
  /config show       - Display current sampling parameters
  /config top_p 0.8  - Set Top P nucleus sampling (0-1)
  /config top_k 50   - Set Top K (1-1000, provider dependent)
  /config temp 1.2   - Set temperature (0-2)
  /config tokens 800 - Set max tokens (1-4096)
  /config stop a,b   - Set stop sequences (comma-separated)

Adaptive Sampling: Parameters auto-adjust based on task type
"""


@dataclass
class SessionStats:
    total_requests: int = 0
    total_response_time_ms: float = 0.0

    def record(self, result: RequestResult) -> None:
        self.total_requests += 1
        self.total_response_time_ms += result.response_time_ms or 0.0

    @property
    def average_response_time_ms(self) -> float:
        if not self.total_requests:
            return 0.0
        return self.total_response_time_ms / self.total_requests


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Chat with an LLM using adaptive sampling and structured output."
    )
    parser.add_argument(
        "--config",
        type=str,
        required=False,
        help=(
            "Path to a YAML config. If omitted, uses "
            "configs/default_config.yaml when present."
        ),
    )
    parser.add_argument(
        "--provider",
        type=str,
        help="Override the LLM provider (e.g., groq, openai, anthropic, echo).",
    )
    parser.add_argument(
        "--model",
        type=str,
        help="Override the model name (takes precedence over LLM_MODEL).",
    )
    parser.add_argument(
        "--api-base",
        type=str,
        help="Override base URL for OpenAI-compatible providers.",
    )
    parser.add_argument(
        "--api-key-env",
        type=str,
        help="Override API key environment variable name for provider.",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this rotating log file.",
    )
    parser.add_argument(
        "--prompt",
        type=str,
        help="Run a single prompt non-interactively and exit.",
    )
    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    if args.config:
        config_path = Path(args.config)
        config = load_config_file(config_path)
    else:
        config_path = DEFAULT_CONFIG_PATH
        config = load_config_file(config_path) if config_path.exists() else {}
    config_root = config_path.resolve().parent
    llm_cfg = dict(config.get("llm") or {})
    config["llm"] = llm_cfg
    if args.provider:
        llm_cfg["provider"] = args.provider
    if args.api_base:
        llm_cfg["base_url"] = args.api_base
    if args.api_key_env:
        llm_cfg["api_key_env"] = args.api_key_env
    if args.log_file:
        logging_cfg = dict(config.get("logging") or {})
        logging_cfg["file"] = str(Path(args.log_file).resolve())
        config["logging"] = logging_cfg
    settings = build_settings(config, config_root=config_root)
    if args.model:
        sampling = replace(
            settings.sampling, model=validate_field("model", args.model)
        )
        settings = replace(settings, sampling=sampling)
    return settings


def _print_result(result: RequestResult) -> None:
    if result.structured:
        print("Assistant (Structured JSON):")
        print(json.dumps(result.data, indent=2, ensure_ascii=False))
    else:
        print(f"Assistant:\n{result.data}\n")
    print(f"Response Time: {result.response_time_ms:.2f}ms")
    print(f"Tokens Used: {result.tokens_used}")
    sampling = result.sampling
    if sampling is not None:
        print(
            f"Sampling - Temp: {sampling.temperature}, Top-P: {sampling.top_p}\n"
        )


def _print_stats(stats: SessionStats) -> None:
    if not stats.total_requests:
        return
    print("\nSession Statistics:")
    print(f"Total Requests: {stats.total_requests}")
    print(f"Average Response Time: {stats.average_response_time_ms:.2f}ms")


def run_shell(
    orchestrator: RequestOrchestrator,
    *,
    input_fn: Callable[[str], str] = input,
    max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS,
) -> SessionStats:
    """Read prompts until ``exit`` or EOF and print each result."""

    print(BANNER)
    stats = SessionStats()
    while True:
        try:
            line = input_fn("You: ")
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if line.strip().lower() in EXIT_COMMANDS:
            break

        if is_config_command(line):
            try:
                print(f"\n{execute_config_command(orchestrator.store, line)}\n")
            except ValidationError as exc:
                print(f"\nConfig Error: {exc}", file=sys.stderr)
            continue

        try:
            prompt = validate_prompt(line, max_prompt_chars)
        except ValidationError as exc:
            print(f"\nValidation Error: {exc}", file=sys.stderr)
            continue

        print("\nGenerating response...")
        result = orchestrator.handle(prompt)
        if result.success:
            _print_result(result)
            stats.record(result)
        else:
            print(f"\nError: {result.error_message}", file=sys.stderr)

    _print_stats(stats)
    return stats


def build_orchestrator(
    settings: Settings, provider: Optional[LLMProvider] = None
) -> RequestOrchestrator:
    store = SamplingConfigStore(settings.sampling)
    if provider is None:
        provider = load_provider(
            settings.llm.provider_config(settings.sampling.model)
        )
    prompt_manager = PromptManager(extra_dirs=settings.prompts.override_dirs)
    return RequestOrchestrator(
        provider, store, prompt_builder=PromptBuilder(prompt_manager)
    )


def main(
    argv: Optional[list[str]] = None,
    *,
    input_fn: Callable[[str], str] = input,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    load_dotenv()

    try:
        settings = _load_settings(args)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2
    key_vars = [settings.llm.api_key_env] if settings.llm.api_key_env else []
    configure_logging(
        settings.logging.level,
        settings.logging.log_file,
        extra_key_vars=key_vars,
    )

    try:
        orchestrator = build_orchestrator(settings)
    except ValueError as exc:
        print(f"Startup error: {exc}", file=sys.stderr)
        return 2

    if args.prompt is not None:
        try:
            prompt = validate_prompt(
                args.prompt, settings.prompts.max_prompt_chars
            )
        except ValidationError as exc:
            print(f"Validation Error: {exc}", file=sys.stderr)
            return 1
        result = orchestrator.handle(prompt)
        if not result.success:
            print(f"Error: {result.error_message}", file=sys.stderr)
            return 1
        _print_result(result)
        return 0

    run_shell(
        orchestrator,
        input_fn=input_fn,
        max_prompt_chars=settings.prompts.max_prompt_chars,
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
