import argparse
import json
import logging
import os
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from divergent_flow.engine import InferenceEngine
from divergent_flow.models import CapturedItem, LearningHistory, naive_local
from extraction.date_extractor import extract_date_time
from review.dashboard import next_action

logger = logging.getLogger(__name__)

_ITEMS = TypeAdapter(List[CapturedItem])


def _configure_logging() -> None:
    logging.basicConfig(
        level=os.getenv("DF_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def _read_json(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise SystemExit(f"Cannot read {path}: {exc}") from exc


def _load_history(path: Optional[str]) -> LearningHistory:
    if not path:
        return LearningHistory()
    try:
        return LearningHistory.model_validate_json(_read_json(path))
    except ValidationError as exc:
        raise SystemExit(f"Invalid learning history in {path}: {exc}") from exc


def _load_items(path: str) -> List[CapturedItem]:
    try:
        return _ITEMS.validate_json(_read_json(path))
    except ValidationError as exc:
        raise SystemExit(f"Invalid items in {path}: {exc}") from exc


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return naive_local(datetime.fromisoformat(value))
    except ValueError as exc:
        raise SystemExit(f"Invalid --now value '{value}'. Use ISO format.") from exc


def _non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be zero or more, got {number}")
    return number


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def cmd_classify(args) -> None:
    engine = InferenceEngine()
    inferred = engine.infer(args.text, _load_history(args.history), now=_parse_now(args.now))
    _print(asdict(inferred))


def cmd_extract_date(args) -> None:
    _print(asdict(extract_date_time(args.text, now=_parse_now(args.now))))


def cmd_review(args) -> None:
    engine = InferenceEngine()
    ranked = engine.review_queue(_load_items(args.items), limit=args.limit, now=_parse_now(args.now))
    _print([
        {"id": entry.item.id, "text": entry.item.text, "priority": round(entry.priority, 2), "reason": entry.reason}
        for entry in ranked
    ])


def cmd_next_action(args) -> None:
    item = next_action(_load_items(args.items), now=_parse_now(args.now))
    if item is None:
        print("No open actions.")
        return
    _print(item.model_dump(mode="json"))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="divergent-flow", description="Capture inference tools")
    sub = parser.add_subparsers(dest="command", required=True)

    classify = sub.add_parser("classify", help="Infer type, collection, priority and estimate")
    classify.add_argument("text")
    classify.add_argument("--history", help="JSON file with a learning history")
    classify.add_argument("--now", help="Reference time (ISO format)")
    classify.set_defaults(func=cmd_classify)

    extract = sub.add_parser("extract-date", help="Find a date/time expression in text")
    extract.add_argument("text")
    extract.add_argument("--now", help="Reference time (ISO format)")
    extract.set_defaults(func=cmd_extract_date)

    review = sub.add_parser("review", help="Rank captured items for review")
    review.add_argument("items", help="JSON file with a list of captured items")
    review.add_argument("--limit", type=_non_negative_int, default=None)
    review.add_argument("--now", help="Reference time (ISO format)")
    review.set_defaults(func=cmd_review)

    nxt = sub.add_parser("next-action", help="Pick the next action to work on")
    nxt.add_argument("items", help="JSON file with a list of captured items")
    nxt.add_argument("--now", help="Reference time (ISO format)")
    nxt.set_defaults(func=cmd_next_action)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    _configure_logging()
    args = build_parser().parse_args(argv)
    logger.debug("Running %s", args.command)
    args.func(args)


if __name__ == "__main__":
    main()
