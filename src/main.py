"""Command-line entry point for inspecting gamification calculations"""
import argparse
import json
import logging
import sys
from typing import Optional, Sequence

from src.config import validate_config, LOG_LEVEL
from src.exceptions import GamificationError
from src.gamification.xp_system import calculate_level_from_xp, get_level_progress
from src.gamification.streak_system import can_use_streak_freeze, update_streak_after_workout
from src.utils.datetime_helpers import to_reference_date

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO)
)

logger = logging.getLogger(__name__)


def _optional_date(value: str) -> Optional[str]:
    """'-' means no date"""
    return None if value == "-" else value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Workout gamification calculator")
    subparsers = parser.add_subparsers(dest="command", required=True)

    level = subparsers.add_parser("level", help="Level, rank and progress for a total XP")
    level.add_argument("xp", type=int, help="Total XP")

    streak = subparsers.add_parser("streak", help="Streak after a workout")
    streak.add_argument("current", type=int, help="Current streak length")
    streak.add_argument("last_date", type=_optional_date, help="Last workout date (YYYY-MM-DD or '-')")
    streak.add_argument("--date", help="Date of the new workout (default: today)")

    freeze = subparsers.add_parser("freeze", help="Whether the monthly streak freeze is available")
    freeze.add_argument("last_freeze_date", type=_optional_date, help="Last freeze date (YYYY-MM-DD or '-')")
    freeze.add_argument("last_workout_date", type=_optional_date, help="Last workout date (YYYY-MM-DD or '-')")
    freeze.add_argument("--today", help="Reference date (default: today)")

    return parser


def run(args: argparse.Namespace) -> dict:
    if args.command == "level":
        return {**calculate_level_from_xp(args.xp), **get_level_progress(args.xp)}

    if args.command == "streak":
        return update_streak_after_workout(args.current, args.last_date, args.date)

    return can_use_streak_freeze(args.last_freeze_date, args.last_workout_date, to_reference_date(args.today))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main application entry point"""
    args = build_parser().parse_args(argv)

    try:
        validate_config()
        result = run(args)
    except GamificationError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1

    print(json.dumps(result, default=str, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
