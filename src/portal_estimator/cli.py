#!/usr/bin/env python3
"""CLI tools for the completion estimator.

Usage:
    python -m portal_estimator.cli classify --subject "..." --description "..."
    python -m portal_estimator.cli hours --priority high --description "..."
    python -m portal_estimator.cli windows scenario.json     # Availability windows
    python -m portal_estimator.cli estimate scenario.json    # Completion estimate
    python -m portal_estimator.cli init-db                   # Create tables
    python -m portal_estimator.cli serve                     # Run the API

Scenario files are JSON ("-" reads stdin):
    {
      "now": "2026-01-05T09:00:00Z",
      "staff_id": "staff-1",
      "ticket": {"id": "T-1", "subject": "...", "description": "...", "priority": "high"},
      "schedules": [{"user_id": "staff-1", "work_days": [1, 2, 3, 4, 5],
                     "start_time": "09:00", "end_time": "17:00"}],
      "calendar_blocks": [{"staff_id": "staff-1", "start_at": "...", "end_at": "..."}],
      "open_tickets": [], "open_tasks": [], "historical": []
    }
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import date
from pathlib import Path
from typing import Any

from portal_estimator.core.exceptions import EstimatorError
from portal_estimator.core.logging import get_logger, setup_logging

setup_logging(level="WARNING")
log = get_logger(__name__)


# =============================================================================
# Scenario parsing
# =============================================================================


def _load_json(path: str) -> dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def _parse_schedules(rows: list[dict[str, Any]]) -> list:
    """Accept organization-level rows (work_days) or per-weekday rows."""
    from portal_estimator.estimation.models import OrgStaffSchedule, StaffSchedule

    schedules: list[StaffSchedule] = []
    for row in rows:
        if "work_days" in row:
            schedules.extend(
                OrgStaffSchedule(
                    user_id=row.get("user_id") or row["staff_id"],
                    work_days=list(row["work_days"]),
                    start_time=row.get("start_time", "09:00"),
                    end_time=row.get("end_time", "17:00"),
                ).expand()
            )
        elif "available_hours" in row:
            schedules.append(
                StaffSchedule(
                    staff_id=row["staff_id"],
                    day_of_week=int(row["day_of_week"]),
                    is_working_day=row.get("is_working_day", True),
                    available_hours=float(row["available_hours"]),
                )
            )
        else:
            schedules.append(
                StaffSchedule.from_times(
                    row["staff_id"],
                    int(row["day_of_week"]),
                    row.get("start_time"),
                    row.get("end_time"),
                    is_working_day=row.get("is_working_day", True),
                )
            )
    return schedules


def _parse_blocks(rows: list[dict[str, Any]]) -> list:
    from portal_estimator.estimation.models import CalendarBlock

    return [
        CalendarBlock(
            staff_id=row["staff_id"],
            start_at=row["start_at"],
            end_at=row["end_at"],
            all_day=row.get("all_day", False),
            is_busy=row.get("is_busy", True),
            block_type=row.get("block_type", "meeting"),
            title=row.get("title"),
        )
        for row in rows
    ]


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, default=str))


# =============================================================================
# Commands
# =============================================================================


def classify(args: argparse.Namespace) -> int:
    """Classify ticket text."""
    from portal_estimator.ai.factory import create_text_estimator
    from portal_estimator.config import get_settings
    from portal_estimator.estimation.classifier import TicketClassifier

    settings = get_settings()
    classifier = TicketClassifier(
        create_text_estimator(settings.ai),
        timeout_seconds=settings.ai.timeout_seconds,
    )

    result = asyncio.run(classifier.classify(args.subject, args.description))

    if args.json:
        _print_json(result.to_dict())
        return 0

    print(f"Category:   {result.category}")
    print(f"Priority:   {result.priority.value}")
    print(f"Confidence: {result.confidence:.2f} ({result.source.value})")
    if result.requires_escalation:
        print(f"Escalation: {result.escalation_reason}")
    return 0


def hours(args: argparse.Namespace) -> int:
    """Creation-time hours heuristic."""
    from portal_estimator.estimation.heuristic import calculate_estimated_hours

    description = args.description
    if args.description_file:
        description = Path(args.description_file).read_text(encoding="utf-8")

    print(calculate_estimated_hours(args.priority, description or ""))
    return 0


def windows(args: argparse.Namespace) -> int:
    """Availability windows for a staff member."""
    from portal_estimator.estimation.availability import generate_availability_windows
    from portal_estimator.estimation.utils import as_utc, utc_now

    scenario = _load_json(args.scenario)
    start = (
        date.fromisoformat(scenario["start_date"])
        if scenario.get("start_date")
        else (as_utc(scenario["now"]) if scenario.get("now") else utc_now()).date()
    )

    result = generate_availability_windows(
        _parse_schedules(scenario.get("schedules", [])),
        _parse_blocks(scenario.get("calendar_blocks", [])),
        start,
        days=args.days or scenario.get("days", 14),
        staff_id=scenario.get("staff_id"),
    )
    _print_json([w.to_dict() for w in result])
    return 0


def estimate(args: argparse.Namespace) -> int:
    """Completion estimate for a scenario, without persistence."""
    from dataclasses import replace

    from portal_estimator.ai.factory import create_text_estimator
    from portal_estimator.config import get_settings
    from portal_estimator.estimation.availability import generate_availability_windows
    from portal_estimator.estimation.classifier import TicketClassifier
    from portal_estimator.estimation.completion import CompletionEstimator, HoursEstimator
    from portal_estimator.estimation.models import (
        EstimationTicket,
        HistoricalTicketData,
        QueuedTask,
        QueuedTicket,
        TicketPriority,
    )
    from portal_estimator.estimation.utils import as_utc, utc_now
    from portal_estimator.estimation.workload import WorkloadAnalyzer

    settings = get_settings()
    scenario = _load_json(args.scenario)

    now = as_utc(scenario["now"]) if scenario.get("now") else utc_now()
    staff_id = scenario["staff_id"]
    ticket = EstimationTicket(**scenario["ticket"])
    schedules = _parse_schedules(scenario.get("schedules", []))
    blocks = _parse_blocks(scenario.get("calendar_blocks", []))
    open_tickets = [QueuedTicket(**row) for row in scenario.get("open_tickets", [])]
    open_tasks = [QueuedTask(**row) for row in scenario.get("open_tasks", [])]
    historical = [HistoricalTicketData(**row) for row in scenario.get("historical", [])]

    text_estimator = create_text_estimator(settings.ai)
    classifier = TicketClassifier(text_estimator, timeout_seconds=settings.ai.timeout_seconds)
    estimator = CompletionEstimator(
        HoursEstimator(
            text_estimator,
            timeout_seconds=settings.ai.timeout_seconds,
            min_samples=settings.estimation.history_min_samples,
            default_hours=settings.estimation.default_estimated_hours,
        )
    )

    async def run_estimate():
        nonlocal ticket
        if not ticket.category:
            classification = await classifier.classify(ticket.subject, ticket.description)
            ticket = replace(ticket, category=classification.category)
            if classification.requires_escalation:
                ticket = replace(ticket, priority=TicketPriority.CRITICAL)

        workload = WorkloadAnalyzer(settings.estimation.next_slot_search_days).analyze(
            staff_id, schedules, blocks, open_tickets, open_tasks, now=now
        )
        availability = generate_availability_windows(
            schedules,
            blocks,
            now.date(),
            days=settings.estimation.availability_window_days,
            staff_id=staff_id,
        )
        return await estimator.estimate_completion(
            ticket, staff_id, workload, availability, historical, today=now.date()
        )

    result = asyncio.run(run_estimate())

    if args.json:
        _print_json(result.to_dict())
        return 0

    print(f"Ticket:     {result.ticket_id}")
    print(f"Start:      {result.estimated_start_date.isoformat()}")
    print(f"Completion: {result.estimated_completion_date.isoformat()}")
    print(f"Confidence: {result.confidence_level.value} ({result.confidence_percent}%)")
    print(f"\n{result.client_message}\n")
    print(result.detailed_breakdown)
    return 0


def init_database(args: argparse.Namespace) -> int:
    """Create all database tables."""
    from portal_estimator.db import close_db, init_db

    async def run_init():
        await init_db()
        await close_db()

    asyncio.run(run_init())
    print("[OK] Database initialized")
    return 0


def serve(args: argparse.Namespace) -> int:
    """Run the HTTP API."""
    from portal_estimator.main import run

    run()
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Portal Estimator CLI Tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # classify
    classify_parser = subparsers.add_parser("classify", help="Classify ticket text")
    classify_parser.add_argument("--subject", required=True, help="Ticket subject")
    classify_parser.add_argument("--description", default="", help="Ticket description")
    classify_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # hours
    hours_parser = subparsers.add_parser("hours", help="Creation-time hours estimate")
    hours_parser.add_argument(
        "--priority", default="medium", help="low, medium, high or critical"
    )
    hours_parser.add_argument("--description", default="", help="Ticket description")
    hours_parser.add_argument("--description-file", help="Read the description from a file")

    # windows
    windows_parser = subparsers.add_parser("windows", help="Staff availability windows")
    windows_parser.add_argument("scenario", help="Scenario JSON file, - for stdin")
    windows_parser.add_argument("--days", type=int, default=None, help="Number of days")

    # estimate
    estimate_parser = subparsers.add_parser("estimate", help="Completion estimate")
    estimate_parser.add_argument("scenario", help="Scenario JSON file, - for stdin")
    estimate_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # init-db
    subparsers.add_parser("init-db", help="Create database tables")

    # serve
    subparsers.add_parser("serve", help="Run the HTTP API")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "classify": classify,
        "hours": hours,
        "windows": windows,
        "estimate": estimate,
        "init-db": init_database,
        "serve": serve,
    }

    try:
        return commands[args.command](args)
    except (EstimatorError, KeyError, ValueError, OSError) as e:
        log.error("Command failed", command=args.command, error=str(e))
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
