"""Command-line surface for the schedule operations.

Each subcommand prints its result as JSON on stdout; logs go to stderr.

Run with:
    cohort-schedule delete-week basic1_1_schedule 3
    cohort-schedule reschedule basic1_1_schedule 42 --date 2025-01-08 --time 19:30 --action prepone --mentor "Asha"
    cohort-schedule attendance 17
    cohort-schedule attendance --list
    cohort-schedule swap basic1_1_schedule 42 --mentor-id 9 --by "Asha"
    cohort-schedule swap basic1_1_schedule 42 --clear
    cohort-schedule materials basic1_1_schedule 42 --add https://a.example/slides
    cohort-schedule partition Basic 1.1

Exit codes:
  0 = success
  1 = error (message on stderr)
  2 = completed with partial failures (result JSON still on stdout)
"""

import argparse
import asyncio
import datetime as dt
import json
import sys

from dotenv import load_dotenv

from cohort_schedule.cohorts import make_cohort_key, partition_for
from cohort_schedule.config import get_config
from cohort_schedule.errors import ScheduleError
from cohort_schedule.logging import bind_operation, setup_logging
from cohort_schedule.service import ScheduleService

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_PARTIAL = 2


def _date(value: str) -> dt.date:
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date {value!r} (expected YYYY-MM-DD)")


def _time(value: str) -> dt.time:
    try:
        return dt.time.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid time {value!r} (expected HH:MM)")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cohort-schedule",
        description="Mutate cohort schedules and recompute mentor attendance.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("delete-week", help="Delete a week and renumber later sessions.")
    p.add_argument("partition")
    p.add_argument("week_number", type=int)

    p = sub.add_parser("reschedule", help="Prepone or postpone one session.")
    p.add_argument("partition")
    p.add_argument("session_id", type=int)
    p.add_argument("--date", type=_date, required=True, help="New date (YYYY-MM-DD).")
    p.add_argument("--time", type=_time, default=None, help="New time (HH:MM).")
    p.add_argument("--action", choices=["prepone", "postpone"], required=True)
    p.add_argument("--mentor", default=None, help="Name of the mentor making the change.")

    p = sub.add_parser("attendance", help="Recompute or list mentor attendance.")
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("mentor_id", nargs="?", type=int)
    group.add_argument("--list", action="store_true", help="List the stored ledger.")

    p = sub.add_parser("swap", help="Assign or clear a substitute mentor.")
    p.add_argument("partition")
    p.add_argument("session_id", type=int)
    group = p.add_mutually_exclusive_group(required=True)
    group.add_argument("--mentor-id", type=int, help="Substitute mentor id.")
    group.add_argument("--clear", action="store_true", help="Remove the substitution.")
    p.add_argument("--by", default=None, help="Name of whoever made the swap.")

    p = sub.add_parser("materials", help="Show, append or replace session materials.")
    p.add_argument("partition")
    p.add_argument("session_id", type=int)
    group = p.add_mutually_exclusive_group()
    group.add_argument("--add", nargs="+", metavar="LINK")
    group.add_argument("--replace", nargs="*", metavar="LINK")

    p = sub.add_parser("partition", help="Print the partition name for a cohort.")
    p.add_argument("cohort_type")
    p.add_argument("cohort_number")

    return parser


async def _run(args: argparse.Namespace) -> object:
    if args.command == "partition":
        return {"partition": partition_for(make_cohort_key(args.cohort_type, args.cohort_number))}

    async with ScheduleService() as service:
        if args.command == "delete-week":
            return await service.delete_week(args.partition, args.week_number)
        if args.command == "reschedule":
            return await service.reschedule(
                args.partition,
                args.session_id,
                args.date,
                args.time,
                args.action,
                args.mentor,
            )
        if args.command == "attendance":
            if args.list:
                return await service.list_attendance()
            return await service.recompute_attendance(args.mentor_id)
        if args.command == "swap":
            mentor_id = None if args.clear else args.mentor_id
            return await service.swap_mentor(args.partition, args.session_id, mentor_id, args.by)
        if args.command == "materials":
            if args.add:
                return await service.add_materials(args.partition, args.session_id, args.add)
            if args.replace is not None:
                return await service.replace_materials(
                    args.partition, args.session_id, args.replace
                )
            return await service.get_materials(args.partition, args.session_id)
    raise ValueError(f"Unknown command {args.command!r}")


def _to_json(result: object) -> object:
    if isinstance(result, list):
        return [_to_json(item) for item in result]
    if hasattr(result, "model_dump"):
        return result.model_dump(mode="json")
    return result


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    args = _build_parser().parse_args(argv)
    config = get_config()
    setup_logging(json_output=config.log_json, log_level=config.log_level)
    bind_operation(args.command, partition=getattr(args, "partition", None))

    try:
        result = asyncio.run(_run(args))
    except ScheduleError as e:
        print(f"ERROR: {type(e).__name__}: {e}", file=sys.stderr)
        return EXIT_ERROR
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_ERROR

    print(json.dumps(_to_json(result), indent=2, ensure_ascii=False))
    if getattr(result, "partial", False):
        return EXIT_PARTIAL
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
