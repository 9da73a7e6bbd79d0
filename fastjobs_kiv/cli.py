"""
Command-line driver.

    fastjobs-kiv list [--json]
    fastjobs-kiv kiv JOB_ID [JOB_ID ...]
    fastjobs-kiv kiv --all
    fastjobs-kiv kiv --title "barista"

Global flags: --force-login (ignore the stored session), --ignore-window
(run outside START_TIME..END_TIME).

Exit codes: 0 ok, 1 login failed after retry, 2 nothing to do / bad input,
3 at least one job was skipped.
"""

import argparse
import json
import sys
from datetime import datetime
from typing import Dict, List, Optional

from playwright.sync_api import sync_playwright

from . import config, notify
from .kiv import KivRunResult, process_job_in_batches
from .listings import JobListing, dismiss_feedback_modal, extract_listings, find_by_title
from .logs import setup_logging
from .session import Session, SessionManager, chromium_launcher
from .session_store import FileSessionStore

EXIT_OK = 0
EXIT_LOGIN_FAILED = 1
EXIT_NOTHING_TO_DO = 2
EXIT_JOBS_SKIPPED = 3


class LoginFailed(Exception):
    pass


# =============================================================================
# Operating window
# =============================================================================

def _hhmm_to_minutes(value: str) -> int:
    value = (value or "").strip()
    if len(value) != 4 or not value.isdigit():
        raise ValueError(f"Expected HHMM, got {value!r}")
    hours, minutes = int(value[:2]), int(value[2:])
    if hours > 23 or minutes > 59:
        raise ValueError(f"Expected HHMM, got {value!r}")
    return hours * 60 + minutes


def within_operating_window(now: Optional[datetime] = None, start: Optional[str] = None, end: Optional[str] = None) -> bool:
    """
    True if `now` falls in [start, end). A window whose end is before its
    start wraps past midnight; start == end means always open.
    """
    now = now or datetime.now()
    lo = _hhmm_to_minutes(start or config.START_TIME)
    hi = _hhmm_to_minutes(end or config.END_TIME)
    cur = now.hour * 60 + now.minute
    if lo == hi:
        return True
    if lo < hi:
        return lo <= cur < hi
    return cur >= lo or cur < hi


# =============================================================================
# Steps
# =============================================================================

def build_manager(playwright) -> SessionManager:
    return SessionManager(
        store=FileSessionStore(config.SESSION_FILE),
        launch_browser=chromium_launcher(playwright),
        email=config.EMAIL,
        password=config.PASSWORD,
    )


def open_session(manager: SessionManager, force_login: bool = False) -> Session:
    result = manager.acquire(force_login=force_login)
    if not result.ok:
        raise LoginFailed(result.error)
    return result.session


def load_listings(page) -> Dict[str, JobListing]:
    print("Opening job dashboard...")
    page.goto(config.JOBS_URL, wait_until="domcontentloaded")
    page.goto(config.active_jobs_url(), wait_until="networkidle")
    dismiss_feedback_modal(page)
    return extract_listings(page)


def print_listings(listings: Dict[str, JobListing], as_json: bool = False) -> None:
    if as_json:
        payload = {jid: {"job_title": job.title, "job_url": job.url} for jid, job in listings.items()}
        print(json.dumps(payload, indent=2))
        return
    for jid, job in listings.items():
        print(f"{jid}\t{job.title}\t{job.url}")


def print_summary(results: List[KivRunResult]) -> None:
    print("\nDone.")
    for r in results:
        if r.skipped:
            print(f"- Job {r.job_id}: SKIPPED ({r.error})")
            continue
        done = len(r.outcomes) - r.failed_batches
        print(f"- Job {r.job_id}: {r.plan.pending_count} new, {done}/{len(r.outcomes)} batch(es) ok")


# =============================================================================
# Commands
# =============================================================================

def cmd_list(manager: SessionManager, args) -> int:
    with open_session(manager, args.force_login) as session:
        listings = load_listings(session.page)
    print_listings(listings, as_json=args.json)
    return EXIT_OK if listings else EXIT_NOTHING_TO_DO


def cmd_kiv(manager: SessionManager, args) -> int:
    force_login = args.force_login
    job_ids = list(args.job_ids)

    if args.all or args.title:
        with open_session(manager, force_login) as session:
            listings = load_listings(session.page)
        force_login = False
        if args.title:
            listings = find_by_title(listings, args.title)
            print(f"{len(listings)} job(s) match title {args.title!r}")
        job_ids += [jid for jid in listings if jid not in job_ids]

    if not job_ids:
        print("No jobs to process.")
        return EXIT_NOTHING_TO_DO

    results: List[KivRunResult] = []
    try:
        for jid in job_ids:
            with open_session(manager, force_login) as session:
                results.append(process_job_in_batches(jid, session.page))
            force_login = False
    except LoginFailed as e:
        # Jobs already moved stay moved; report them before giving up.
        print_summary(results)
        raise LoginFailed(f"{e} ({len(results)} of {len(job_ids)} job(s) processed before the failure)") from e

    print_summary(results)
    return EXIT_JOBS_SKIPPED if any(r.skipped for r in results) else EXIT_OK


# =============================================================================
# Entry points
# =============================================================================

def _job_id(value: str) -> str:
    value = value.strip()
    if not value.isdigit():
        raise argparse.ArgumentTypeError(f"job id must be numeric, got {value!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fastjobs-kiv",
        description="FastJobs employer portal automation.",
        epilog=(
            f"Runs only between START_TIME and END_TIME (now {config.START_TIME}-{config.END_TIME}); "
            "outside that window it exits 0 without opening a browser."
        ),
    )
    parser.add_argument("--force-login", action="store_true", help="Ignore the stored session and log in again.")
    parser.add_argument(
        "--ignore-window",
        action="store_true",
        help="Run even outside the START_TIME..END_TIME operating window.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="List active job postings.")
    p_list.add_argument("--json", action="store_true", help="Print {jid: {job_title, job_url}} as JSON.")

    p_kiv = sub.add_parser("kiv", help="Move 'New' applicants to Kept in mind.")
    p_kiv.add_argument("job_ids", nargs="*", type=_job_id, metavar="JOB_ID")
    p_kiv.add_argument("--all", action="store_true", help="Process every active job.")
    p_kiv.add_argument("--title", help="Process active jobs whose title contains this text.")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.ignore_window and not within_operating_window():
        print(
            f"Outside operating window {config.START_TIME}-{config.END_TIME}; nothing to do "
            "(pass --ignore-window to run anyway).",
            file=sys.stderr,
        )
        return EXIT_OK

    try:
        with sync_playwright() as p:
            manager = build_manager(p)
            if args.command == "list":
                return cmd_list(manager, args)
            return cmd_kiv(manager, args)
    except LoginFailed as e:
        print(f"FATAL: {e}", file=sys.stderr)
        notify.send_failure_email("FastJobs login", str(e))
        return EXIT_LOGIN_FAILED


def run() -> None:
    """Console-script entry: log to files, alert on crash, exit with main()'s code."""
    setup_logging()
    try:
        code = main()
    except Exception as e:
        err = f"{type(e).__name__}: {e}"
        print(f"\nFATAL: {err}")
        notify.send_failure_email("FastJobs KIV run", err)
        raise
    sys.exit(code)


if __name__ == "__main__":
    run()
