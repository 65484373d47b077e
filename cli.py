import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from insights_api.errors import InsightsError
from insights_api.schemas import AstroProfile, SubjectContext
from insights_api.services.chat_advisor import ask_advisor_outcome
from insights_api.services.insight_generator import generate_insights_outcome
from insights_api.services.pipeline import resolve_astro_profile


def _load_context(path: Optional[Path], precision: str) -> SubjectContext:
    if path is None:
        return SubjectContext(birth_precision=precision)
    data = json.loads(path.read_text(encoding="utf-8"))
    # Accept either a bare AstroProfile or a full SubjectContext document
    if "ascendant_sign" in data:
        return SubjectContext(birth_precision=precision, astro_profile=AstroProfile.model_validate(data))
    data.setdefault("birth_precision", precision)
    return SubjectContext.model_validate(data)


def _cmd_profile(args: argparse.Namespace) -> int:
    profile = asyncio.run(resolve_astro_profile(args.date, args.time, args.place))
    print(profile.model_dump_json(indent=2))
    return 0


def _cmd_insights(args: argparse.Namespace) -> int:
    context = _load_context(args.context, args.precision)
    outcome = asyncio.run(generate_insights_outcome(context))
    if outcome.used_fallback:
        print(f"fallback used: {outcome.reason}", file=sys.stderr)
    print(outcome.insights.model_dump_json(indent=2))
    return 0


def _cmd_ask(args: argparse.Namespace) -> int:
    context = _load_context(args.context, args.precision)
    outcome = asyncio.run(ask_advisor_outcome(args.question, context))
    print(outcome.answer)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chart aggregation and insight pipeline.")
    parser.add_argument("-v", "--verbose", action="store_true", help="log pipeline events to stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    profile = sub.add_parser("profile", help="resolve an astro profile for a birth query")
    profile.add_argument("--date", required=True, help="YYYY-MM-DD")
    profile.add_argument("--time", required=True, help="HH:MM (24h)")
    profile.add_argument("--place", required=True, help='e.g. "Hyderabad, India"')
    profile.set_defaults(func=_cmd_profile)

    for name, func, text in (
        ("insights", _cmd_insights, "generate structured insights"),
        ("ask", _cmd_ask, "ask the advisor a question"),
    ):
        cmd = sub.add_parser(name, help=text)
        cmd.add_argument("--context", type=Path, help="JSON file with an AstroProfile or SubjectContext")
        cmd.add_argument(
            "--precision",
            default="Exact",
            choices=["Exact", "Approximate", "DateOnly", "None"],
        )
        if name == "ask":
            cmd.add_argument("question")
        cmd.set_defaults(func=func)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)
    try:
        return args.func(args)
    except InsightsError as exc:
        print(f"{exc.code}: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
