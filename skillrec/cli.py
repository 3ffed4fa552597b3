# skillrec/cli.py
"""
Batch runner for the skill-aware recommender.

Two sub-commands, neither of which starts FastAPI:

- ``extract``: read a text/HTML file (or stdin) and print one JSON line
  per extracted skill
- ``recommend``: load a snapshot, score one or more users and write a
  CSV with columns user_id, rank, course_id, title, score, reason
"""

from __future__ import annotations
import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd
from loguru import logger

from skillrec.config import (
    DIVERSITY_FACTOR,
    EXTRACT_MAX_SKILLS,
    EXTRACT_MIN_CONFIDENCE,
    MARKET_DATA_URL,
    RESULT_DEFAULT_LIMIT,
    SNAPSHOT_PATH,
    configure_logging,
)
from skillrec.engine import RecommendationEngine
from skillrec.errors import NotFound, UpstreamUnavailable
from skillrec.extraction import SkillExtractor
from skillrec.models import Recommendation, RecommendationOptions
from skillrec.stores import HttpMarketDataProvider, StaticMarketData, load_snapshot


def _read_text(path: Optional[str]) -> str:
    if not path or path == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def run_extract(args: argparse.Namespace) -> int:
    text = _read_text(args.inp)
    skills = SkillExtractor().extract(
        text,
        min_confidence=args.min_confidence,
        max_skills=args.max_skills,
        include_context=args.context,
    )
    for s in skills:
        row = {
            "name": s.name,
            "level": s.level,
            "confidence": round(s.confidence, 4),
            "methods": sorted(m.value for m in s.methods),
        }
        if args.context:
            row["context"] = s.context
        print(json.dumps(row))
    return 0


def recommendation_rows(user_id: str, recs: List[Recommendation]) -> List[Tuple]:
    rows = []
    for rank, rec in enumerate(recs, 1):
        reason = rec.explanation.primary_reason if rec.explanation else ""
        rows.append((user_id, rank, rec.course_id, rec.course.title, round(rec.score, 6), reason))
    return rows


def write_recommendations_csv(rows: List[Tuple], out_path: Path) -> None:
    df = pd.DataFrame(rows, columns=["user_id", "rank", "course_id", "title", "score", "reason"])
    out_path.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out_path, index=False)


def run_recommend(args: argparse.Namespace) -> int:
    users, courses = load_snapshot(Path(args.snapshot))
    market = HttpMarketDataProvider(MARKET_DATA_URL) if MARKET_DATA_URL else StaticMarketData()
    engine = RecommendationEngine(users, courses, market_data=market)
    options = RecommendationOptions(limit=args.topk, diversity_factor=args.diversity)

    user_ids = args.user or [u.id for u in users.list_all()]
    print(f"Scoring {len(user_ids)} users from {args.snapshot}")

    rows: List[Tuple] = []
    failures = 0
    for i, uid in enumerate(user_ids, 1):
        try:
            rows.extend(recommendation_rows(uid, engine.generate_recommendations(uid, options)))
        except (NotFound, UpstreamUnavailable) as e:
            failures += 1
            logger.warning("{}/{} failed for {}: {}", i, len(user_ids), uid, e)
        if i % 10 == 0 or i == len(user_ids):
            print(f"Processed {i}/{len(user_ids)} users")

    out = Path(args.out)
    write_recommendations_csv(rows, out)
    print(f"Wrote {len(rows)} rows to {out}")
    return 1 if failures and failures == len(user_ids) else 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="skillrec")
    ap.add_argument("--log-level", default="WARNING")
    sub = ap.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("extract", help="extract skills from a text file")
    ex.add_argument("--in", dest="inp", default="-", help="input file (default stdin)")
    ex.add_argument("--min-confidence", type=float, default=EXTRACT_MIN_CONFIDENCE)
    ex.add_argument("--max-skills", type=int, default=EXTRACT_MAX_SKILLS)
    ex.add_argument("--context", action="store_true", help="include mention context")
    ex.set_defaults(func=run_extract)

    rec = sub.add_parser("recommend", help="write recommendations for users in a snapshot")
    rec.add_argument("--snapshot", default=str(SNAPSHOT_PATH))
    rec.add_argument("--user", action="append", help="user id (repeatable; default all users)")
    rec.add_argument("--topk", type=int, default=RESULT_DEFAULT_LIMIT)
    rec.add_argument("--diversity", type=float, default=DIVERSITY_FACTOR)
    rec.add_argument("--out", default="artifacts/recommendations.csv")
    rec.set_defaults(func=run_recommend)
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
