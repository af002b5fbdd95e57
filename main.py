from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from dotenv import load_dotenv
from pydantic import ValidationError

from errors import InvalidConfigurationError, PlannerError
from metrics import compute_plan_metrics, metrics_to_dict
from models import ScheduleItem, StudySession
from models_pydantic import PlannerConfigPydantic, StudySessionPydantic
from plan_store import PlanStore, build_plan_output
from planner_core import DEFAULT_HORIZON_DAYS, DEFAULT_MAX_DAILY_HOURS, generate_schedule
from progress import compute_progress, daily_totals, plan_frame, subjects_frame
from session_log import SessionLog
from subject_loader import load_subjects_from_directory
from subject_store import SubjectStore

logger = logging.getLogger(__name__)

ENV_PREFIX = "STUDY_PLANNER_"
ENV_KEYS = {
    "start_date": str,
    "max_daily_hours": float,
    "horizon_days": int,
    "deduplicate_revisions": lambda v: v.strip().lower() in {"1", "true", "yes", "on"},
    "data_dir": str,
    "subjects_dir": str,
    "user_id": str,
    "log_level": str,
}

EXIT_OK = 0
EXIT_NO_SUBJECTS = 1
EXIT_INVALID_INPUT = 2


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Exam-driven study planner")
    parser.add_argument("--config", type=str, help="Path to config JSON")
    parser.add_argument("--user-id", dest="user_id", type=str, help="Identifier of the learner")
    parser.add_argument("--data-dir", dest="data_dir", type=str, help="Directory holding stored plans and sessions")
    parser.add_argument("--subjects-dir", dest="subjects_dir", type=str, help="Directory with subject JSON files")
    parser.add_argument("--log-level", dest="log_level", type=str, help="Logging level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Generate and store a new plan")
    gen.add_argument("--start-date", dest="start_date", type=str, help="Start date YYYY-MM-DD (default: today)")
    gen.add_argument("--max-daily-hours", dest="max_daily_hours", type=float, help="Daily study hours cap")
    gen.add_argument("--horizon-days", dest="horizon_days", type=int, help="Number of days to plan")
    gen.add_argument("--dedupe-revisions", dest="deduplicate_revisions", action="store_true", help="Emit one revision per subject and date")
    gen.add_argument("--keep-duplicate-revisions", dest="deduplicate_revisions", action="store_false", help="Emit every revision (default)")
    gen.set_defaults(deduplicate_revisions=None)
    gen.add_argument("--output", type=str, help="Also write the plan JSON to this path")

    sub.add_parser("show", help="Print the stored plan ordered by date")

    log = sub.add_parser("log-session", help="Record hours actually studied")
    log.add_argument("--subject-id", dest="subject_id", type=str, required=True)
    log.add_argument("--hours", dest="hours", type=float, required=True)
    log.add_argument("--date", dest="session_date", type=str, help="Date YYYY-MM-DD (default: today)")

    sub.add_parser("progress", help="Print completed vs. estimated hours per subject")

    add = sub.add_parser("add-subject", help="Add a subject for this learner")
    add.add_argument("--id", dest="new_subject_id", type=str, help="Subject id (default: next free number)")
    add.add_argument("--name", type=str, required=True)
    add.add_argument("--difficulty", type=int, required=True, help="1 (easy) to 5 (very hard)")
    add.add_argument("--exam-date", dest="exam_date", type=str, required=True, help="Exam date YYYY-MM-DD")
    add.add_argument("--hours", dest="estimated_hours", type=float, required=True, help="Estimated study hours")

    sub.add_parser("list-subjects", help="Print this learner's subjects")

    delete = sub.add_parser("delete-subject", help="Delete a subject and its planned items")
    delete.add_argument("--subject-id", dest="subject_id", type=str, required=True)

    imp = sub.add_parser("import-subjects", help="Copy subjects from JSON files into this learner's store")
    imp.add_argument("--from", dest="import_dir", type=str, help="Directory of subject JSON files (default: --subjects-dir)")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace, environ: Optional[Dict[str, str]] = None) -> PlannerConfigPydantic:
    """Merge defaults, the config file, STUDY_PLANNER_* environment variables and flags, in that order."""
    config: Dict = {
        "start_date": date.today().isoformat(),
        "max_daily_hours": DEFAULT_MAX_DAILY_HOURS,
        "horizon_days": DEFAULT_HORIZON_DAYS,
        "deduplicate_revisions": False,
        "data_dir": "Planner_Data",
        "subjects_dir": "Subjects_Input",
        "user_id": "local",
        "log_level": "INFO",
    }

    if getattr(args, "config", None):
        with open(args.config, "r", encoding="utf-8") as f:
            config.update(json.load(f))

    environ = os.environ if environ is None else environ
    for key, cast in ENV_KEYS.items():
        raw = environ.get(ENV_PREFIX + key.upper())
        if raw is None or raw == "":
            continue
        try:
            config[key] = cast(raw)
        except ValueError as exc:
            raise InvalidConfigurationError(f"{ENV_PREFIX}{key.upper()}={raw!r}: {exc}") from exc

    for key in ENV_KEYS:
        value = getattr(args, key, None)
        if value is not None:
            config[key] = value
    if getattr(args, "output", None):
        config["output"] = args.output

    try:
        return PlannerConfigPydantic.model_validate(config)
    except ValidationError as exc:
        raise InvalidConfigurationError(str(exc)) from exc


def coerce_subject_id(raw: str):
    return int(raw) if raw.lstrip("-").isdigit() else raw


def run_generate(config: PlannerConfigPydantic) -> int:
    subjects = SubjectStore(Path(config.data_dir)).list_subjects(config.user_id)
    if not subjects:
        logger.error("No subjects found for %s. Add some subjects first.", config.user_id)
        return EXIT_NO_SUBJECTS

    items = generate_schedule(
        subjects,
        config.start_date,
        max_daily_hours=config.max_daily_hours,
        horizon_days=config.horizon_days,
        deduplicate_revisions=config.deduplicate_revisions,
    )
    count = PlanStore(Path(config.data_dir)).replace_plan(config.user_id, items)

    metrics = compute_plan_metrics(items, subjects, config.max_daily_hours)
    logger.info("Schedule generated successfully: %d items", count)
    for key, value in metrics_to_dict(metrics).items():
        logger.info("  %s: %s", key, value)

    if config.output:
        output_path = Path(config.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        payload = build_plan_output(config.user_id, items)
        payload["metrics"] = metrics_to_dict(metrics)
        with output_path.open("w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)
        logger.info("Wrote plan to %s", output_path)
    return EXIT_OK


def run_show(config: PlannerConfigPydantic) -> int:
    items: List[ScheduleItem] = PlanStore(Path(config.data_dir)).load_plan(config.user_id)
    if not items:
        logger.warning("No stored plan for %s", config.user_id)
        return EXIT_OK
    print(plan_frame(items).to_string(index=False))
    print()
    print(daily_totals(items).to_string())
    return EXIT_OK


def run_log_session(config: PlannerConfigPydantic, args: argparse.Namespace) -> int:
    try:
        parsed = StudySessionPydantic.model_validate(
            {
                "subject_id": coerce_subject_id(args.subject_id),
                "date": args.session_date or date.today().isoformat(),
                "hours_completed": args.hours,
            }
        )
    except ValidationError as exc:
        logger.error("Invalid session: %s", exc)
        return EXIT_INVALID_INPUT
    session: StudySession = parsed.to_session()
    SessionLog(Path(config.data_dir)).record(config.user_id, session)
    return EXIT_OK


def run_progress(config: PlannerConfigPydantic) -> int:
    subjects = SubjectStore(Path(config.data_dir)).list_subjects(config.user_id)
    sessions = SessionLog(Path(config.data_dir)).sessions(config.user_id)
    print(compute_progress(subjects, sessions).to_string(index=False))
    return EXIT_OK


def run_add_subject(config: PlannerConfigPydantic, args: argparse.Namespace) -> int:
    data = {
        "id": coerce_subject_id(args.new_subject_id) if args.new_subject_id else None,
        "name": args.name,
        "difficulty": args.difficulty,
        "exam_date": args.exam_date,
        "estimated_hours": args.estimated_hours,
    }
    subject = SubjectStore(Path(config.data_dir)).add_subject(config.user_id, data)
    print(subject.id)
    return EXIT_OK


def run_list_subjects(config: PlannerConfigPydantic) -> int:
    subjects = SubjectStore(Path(config.data_dir)).list_subjects(config.user_id)
    if not subjects:
        logger.warning("No subjects stored for %s", config.user_id)
        return EXIT_OK
    print(subjects_frame(subjects).to_string(index=False))
    return EXIT_OK


def run_delete_subject(config: PlannerConfigPydantic, args: argparse.Namespace) -> int:
    subject_id = coerce_subject_id(args.subject_id)
    if not SubjectStore(Path(config.data_dir)).delete_subject(config.user_id, subject_id):
        logger.error("No subject %s stored for %s", args.subject_id, config.user_id)
        return EXIT_INVALID_INPUT
    removed = PlanStore(Path(config.data_dir)).remove_subject(config.user_id, subject_id)
    logger.info("Removed %d planned items of subject %s", removed, subject_id)
    return EXIT_OK


def run_import_subjects(config: PlannerConfigPydantic, args: argparse.Namespace) -> int:
    source = Path(args.import_dir or config.subjects_dir)
    subjects = load_subjects_from_directory(source)
    if not subjects:
        logger.error("No subjects found in %s", source)
        return EXIT_NO_SUBJECTS
    SubjectStore(Path(config.data_dir)).import_subjects(config.user_id, subjects)
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    try:
        config = load_config(args)
    except InvalidConfigurationError as exc:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
        logger.error("Invalid configuration: %s", exc)
        return EXIT_INVALID_INPUT
    logging.basicConfig(level=getattr(logging, config.log_level), format="%(levelname)s %(message)s")

    try:
        if args.command == "generate":
            return run_generate(config)
        if args.command == "show":
            return run_show(config)
        if args.command == "log-session":
            return run_log_session(config, args)
        if args.command == "add-subject":
            return run_add_subject(config, args)
        if args.command == "list-subjects":
            return run_list_subjects(config)
        if args.command == "delete-subject":
            return run_delete_subject(config, args)
        if args.command == "import-subjects":
            return run_import_subjects(config, args)
        return run_progress(config)
    except PlannerError as exc:
        logger.error("%s", exc)
        return EXIT_INVALID_INPUT


if __name__ == "__main__":
    sys.exit(main())
