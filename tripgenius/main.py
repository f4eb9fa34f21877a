import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from tripgenius.services.generate_itinerary import generate_itinerary_action
from tripgenius.services.share_link import SharedPlanError, build_share_url, load_shared_plan
from tripgenius.utils.preferences_store import PreferencesStore
from tripgenius.utils.render import render_itinerary_text

load_dotenv()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tripgenius",
        description="TripGenius: JSON-in itinerary generator backed by Gemini",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input-file", "-i", help="Path to JSON file containing trip preferences. If omitted, reads from stdin.")
    source.add_argument("--plan", help="Shared plan token (the value of a ?plan= link).")
    source.add_argument("--last", action="store_true", help="Reuse the last submitted preferences.")
    parser.add_argument("--format", "-f", choices=["json", "text"], default="text", help="Output format (default: text).")
    parser.add_argument("--output", "-o", help="Write the itinerary to this file instead of stdout.")
    parser.add_argument("--share-url", metavar="BASE_URL", help="Print a share link for the preferences and exit.")
    parser.add_argument("--clear", action="store_true", help="Forget the saved preferences and exit.")
    parser.add_argument("--state-file", help="Where the last submitted preferences are kept.")
    return parser


def read_input_json(args: argparse.Namespace, store: PreferencesStore) -> Dict[str, Any]:
    if args.plan:
        return load_shared_plan(args.plan)
    if args.last:
        saved = store.load()
        if saved is None:
            raise ValueError("No saved preferences found.")
        return saved
    if args.input_file:
        with open(args.input_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        raw = sys.stdin.read()
        if not raw.strip():
            raise ValueError("No input provided. Pass --input-file or pipe JSON to stdin.")
        data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Preferences must be a JSON object.")
    return data


def _write(text: str, output: Optional[str]) -> None:
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        sys.stdout.write(text)


async def run(args: argparse.Namespace) -> int:
    store = PreferencesStore(args.state_file)
    if args.clear:
        store.clear()
        return 0

    try:
        prefs = read_input_json(args, store)
    except (OSError, ValueError, SharedPlanError) as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1

    if args.share_url:
        _write(build_share_url(args.share_url, prefs) + "\n", args.output)
        return 0

    try:
        store.save(prefs)
    except OSError as e:
        print(f"[error] Could not save preferences to {store.path}: {e}", file=sys.stderr)
        return 1
    result = await generate_itinerary_action(prefs)
    if isinstance(result, dict):
        print(f"[error] {result['error']}", file=sys.stderr)
        return 1

    if args.format == "json":
        _write(json.dumps(result.model_dump(mode="json"), ensure_ascii=False, indent=2) + "\n", args.output)
    else:
        _write(render_itinerary_text(str(prefs.get("destination", "")).strip(), result), args.output)
    return 0


def main(argv=None) -> int:
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "WARNING"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
