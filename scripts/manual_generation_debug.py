"""One-off script for debugging a single image request against the real endpoint."""

from config.settings import load_config, load_prompt
from modules.pipelines.generation import GenerationOrchestrator
from modules.utils.logging import setup_logging


def main() -> None:
    # 1. Real configuration; IMAGE_API_ENDPOINT / IMAGE_API_KEY come from .env
    config = load_config()
    config.require_api()
    setup_logging(config)

    # 2. Fall back to a fixed prompt when prompt.txt is absent
    prompt = load_prompt(config.prompt_path) if config.prompt_path.exists() else "A red apple on a white background"

    # 3. Exactly one attempt, no retries or sleeps
    orchestrator = GenerationOrchestrator(config, prompt)
    orchestrator.storage.ensure_output_dir()
    attempt = orchestrator.request_image(0)

    print("Outcome:", attempt.outcome.value)
    print("Response saved:", attempt.response_path.resolve())
    if attempt.image_path:
        print("Image saved:", attempt.image_path.resolve())
    else:
        print("No image written:", attempt.error_code, attempt.error_message)


if __name__ == "__main__":
    main()
