"""Application entry point for the batch image generator."""

from __future__ import annotations

import argparse
from typing import Optional, Sequence

from config.settings import ConfigurationError, load_config, load_prompt
from modules.pipelines.generation import GenerationOrchestrator
from modules.utils.logging import setup_logging


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a batch of images from prompt.txt.")
    parser.add_argument("--env-file", default=None, help="Path to a KEY=VALUE settings file (default: .env).")
    return parser.parse_args(argv)


def main(config_path: Optional[str] = None) -> int:
    """Load configuration, run the batch and return the process exit code."""
    try:
        config = load_config(config_path)
    except ConfigurationError as exc:
        print(f"Error: {exc}")
        return 1

    logger = setup_logging(config)
    try:
        prompt = load_prompt(config.prompt_path)
        config.require_api()
    except ConfigurationError as exc:
        logger.error("Error: %s", exc)
        return 1

    logger.info("Using prompt: %s", prompt)
    orchestrator = GenerationOrchestrator(config, prompt)
    state = orchestrator.run()
    return 0 if state.is_complete else 1


if __name__ == "__main__":
    args = parse_args()
    raise SystemExit(main(args.env_file))
