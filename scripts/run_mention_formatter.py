"""
Format mentions in a piece of text against a JSON principal fixture.

Steps:
  - Load principals (users, groups) into an in-memory store
  - Locate mention tokens
  - Resolve each token
  - Render links, labels or literal text

Usage example:
  poetry run python scripts/run_mention_formatter.py \
    --principals scripts/fixtures/principals.json \
    --text 'Ping user:"foo@bar.com" and group#7, cc user#404' \
    --absolute --host-name openproject.org --json | cat
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from mention_engine.core.mention_resolver.config import MentionSettings
from mention_engine.core.mention_resolver.models import FormattedText, RenderContext
from mention_engine.core.mention_resolver.pipeline import MentionFormattingPipeline
from mention_engine.core.mention_resolver.principal_store import InMemoryPrincipalStore


def _load_store(principals_path: Path) -> InMemoryPrincipalStore:
    payload = json.loads(principals_path.read_text(encoding="utf-8"))
    return InMemoryPrincipalStore.from_dict(payload)


def _to_report(result: FormattedText) -> Dict[str, Any]:
    return {
        "formatted_text": result.formatted_text,
        "mentions": [
            {
                "raw_match": token.raw_match,
                "kind": token.kind.value,
                "identifier": token.identifier,
                "start_pos": token.start_pos,
                "end_pos": token.end_pos,
                "status": outcome.status.value,
                "principal_id": outcome.principal.id if outcome.principal else None,
            }
            for token, outcome in zip(result.tokens, result.outcomes)
        ],
    }


def run(
    text: str,
    principals_path: Path,
    viewer_id: Optional[int],
    absolute: bool,
    host_name: Optional[str],
    workers: Optional[int],
    as_json: bool,
) -> None:
    settings = MentionSettings.from_env()
    store = _load_store(principals_path)
    viewer = store.find_user_by_id(viewer_id) if viewer_id is not None else None

    pipeline = MentionFormattingPipeline(store, settings=settings, max_workers=workers)
    context = RenderContext.from_options(
        only_path=not absolute,
        acting_viewer=viewer,
        host_name=host_name,
        settings=settings,
    )

    result = pipeline.format(text, context)
    if as_json:
        print(json.dumps(_to_report(result), ensure_ascii=False, indent=2))
    else:
        print(result.formatted_text)


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--text", default=None, help="Text to format")
    ap.add_argument("--input", default=None, help="Path to a text file to format ('-' for stdin)")
    ap.add_argument("--principals", required=True, help="Path to a JSON file with users and groups")
    ap.add_argument("--viewer-id", type=int, default=None, help="Id of the acting viewer")
    ap.add_argument("--absolute", action="store_true", help="Emit absolute user links")
    ap.add_argument("--host-name", default=None, help="Host for absolute links")
    ap.add_argument("--workers", type=int, default=None, help="Threads used to resolve mentions")
    ap.add_argument("--json", action="store_true", help="Print tokens and outcomes as JSON")
    ap.add_argument("--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    # Load environment variables (prefer local override if present)
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env.local")
    load_dotenv(project_root / ".env")

    if args.text is not None:
        text = args.text
    elif args.input == "-":
        text = sys.stdin.read()
    elif args.input:
        text = Path(args.input).read_text(encoding="utf-8")
    else:
        raise SystemExit("No text provided (use --text or --input)")

    run(
        text=text,
        principals_path=Path(args.principals),
        viewer_id=args.viewer_id,
        absolute=args.absolute,
        host_name=args.host_name,
        workers=args.workers,
        as_json=args.json,
    )


if __name__ == "__main__":
    main()
