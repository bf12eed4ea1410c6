#!/usr/bin/env python3
"""
Run a single generation request from a JSON file without starting the API.

Run from backend/:
    python3 scripts/generate_draft.py request.json --preset fast_draft --seed 7
"""

import argparse
import json
import random
import sys
from pathlib import Path

# ── ensure backend root is on sys.path so bare imports work ──
BACKEND_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(BACKEND_ROOT))

from pydantic import ValidationError  # noqa: E402

from api.main import Settings, provider_config_from_settings  # noqa: E402
from core.generation_presets import apply_generation_preset  # noqa: E402
from core.llm_client import create_generation_client  # noqa: E402
from models import GenerationRequest  # noqa: E402
from services.generation import GenerationFailedError, run_generation  # noqa: E402


def load_request(path: Path) -> GenerationRequest:
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)
    return GenerationRequest.model_validate(payload)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate one draft from a JSON request file.")
    parser.add_argument("request_file", type=Path, help="JSON file shaped like a POST /generate body")
    parser.add_argument("--preset", default=None, help="preset id applied on top of the request settings")
    parser.add_argument("--seed", type=int, default=None, help="seed for offline fallback sampling")
    parser.add_argument("--show-prompt", action="store_true", help="print the assembled prompt first")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        request = load_request(args.request_file)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"invalid request file: {exc}", file=sys.stderr)
        return 2

    if args.preset:
        try:
            settings = apply_generation_preset(request.settings, args.preset)
        except KeyError:
            print(f"unknown preset: {args.preset}", file=sys.stderr)
            return 2
        request = request.model_copy(update={"settings": settings})

    rng = random.Random(args.seed) if args.seed is not None else None
    client = create_generation_client(rng=rng)
    config = provider_config_from_settings(Settings())

    try:
        result = run_generation(request, client, config)
    except GenerationFailedError as exc:
        print(f"generation failed: {exc}", file=sys.stderr)
        return 1

    if args.show_prompt:
        print(result.prompt)
        print("=" * 60)
    print(result.content)
    print("=" * 60)
    print(json.dumps(result.metadata.model_dump(by_alias=True), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
