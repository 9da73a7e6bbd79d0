"""
Move a job's "New" applicants to "Kept in mind" (KIV), 20 at a time.

The applications view shows at most one page (20) of candidates. One batch
selects everything visible, opens "Move to" and picks KIV; reloading then
brings the next 20 into view. The "New" count is read once, before the
first batch, and fixes how many batches run.
"""

import math
import re
import sys
from dataclasses import dataclass, field
from typing import List, Optional

from playwright.sync_api import Error as PlaywrightError

from . import config
from .text import clean_text

PENDING_COUNT_SELECTOR = '#applications-sidebar li.active a[data-name="New"] span.count'
ACTIONS_SELECTOR = "#application-actions"
SELECT_ALL_SELECTOR = "fast-checkbox"
MOVE_TO_SELECTOR = 'button.button-container:has-text("Move to")'
KIV_ACTION_SELECTOR = 'button.action-item[data-event="candidate_kept_in_mind"]'


class PendingCountError(ValueError):
    """The 'New' count is missing or not a non-negative integer."""


def parse_pending_count(text: Optional[str]) -> int:
    t = clean_text(text or "").replace(",", "")
    if not re.fullmatch(r"\d+", t):
        raise PendingCountError(f"Could not parse 'New' application count from {text!r}")
    return int(t)


@dataclass(frozen=True)
class BatchPlan:
    pending_count: int
    batch_size: int = config.BATCH_SIZE

    def __post_init__(self):
        if not isinstance(self.pending_count, int) or self.pending_count < 0:
            raise PendingCountError(f"Invalid pending count: {self.pending_count!r}")
        if self.batch_size < 1:
            raise ValueError("batch_size must be >= 1")

    @property
    def batch_count(self) -> int:
        return math.ceil(self.pending_count / self.batch_size)

    @classmethod
    def from_count_text(cls, text: Optional[str], batch_size: int = config.BATCH_SIZE) -> "BatchPlan":
        return cls(parse_pending_count(text), batch_size)


@dataclass
class BatchOutcome:
    index: int
    ok: bool
    error: str = ""


@dataclass
class KivRunResult:
    job_id: str
    plan: Optional[BatchPlan] = None
    outcomes: List[BatchOutcome] = field(default_factory=list)
    error: str = ""

    @property
    def skipped(self) -> bool:
        return bool(self.error)

    @property
    def failed_batches(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)


def read_pending_count(page) -> int:
    try:
        text = page.text_content(PENDING_COUNT_SELECTOR, timeout=config.SELECTOR_TIMEOUT_MS)
    except PlaywrightError as e:
        raise PendingCountError(f"'New' application count not found: {e}") from e
    return parse_pending_count(text)


def _select_and_move_to_kiv(page) -> None:
    container = page.locator(ACTIONS_SELECTOR)
    container.wait_for(timeout=config.SELECTOR_TIMEOUT_MS)

    checkbox = container.locator(SELECT_ALL_SELECTOR).first
    checkbox.wait_for(timeout=config.SELECTOR_TIMEOUT_MS)
    checkbox.click()
    print("Select-all checkbox clicked")
    page.wait_for_timeout(config.CHECKBOX_SETTLE_MS)

    move_button = container.locator(MOVE_TO_SELECTOR)
    move_button.wait_for(timeout=config.MENU_TIMEOUT_MS)
    move_button.click()
    print("'Move to' clicked")

    kiv_button = page.locator(KIV_ACTION_SELECTOR)
    kiv_button.wait_for(timeout=config.MENU_TIMEOUT_MS)
    kiv_button.click()
    print("KIV clicked ✅")


def kiv_batch_step(page, job_id: str, index: int = 0) -> BatchOutcome:
    """
    One select-all -> Move to -> KIV cycle. Never raises for UI failures;
    they come back as a failed BatchOutcome.
    """
    try:
        _select_and_move_to_kiv(page)
    except PlaywrightError as e:
        print(f"Batch {index + 1} failed for job {job_id}: {e}", file=sys.stderr)
        return BatchOutcome(index=index, ok=False, error=str(e))
    return BatchOutcome(index=index, ok=True)


def process_job_in_batches(job_id: str, page, batch_size: int = config.BATCH_SIZE) -> KivRunResult:
    """
    Open the job's applications and KIV every 'New' applicant.

    An unreadable count skips the job (result.error set, no batches run).
    Failed batches are recorded and the remaining batches still run. A page
    that closes mid-run ends the job with result.error set.
    """
    result = KivRunResult(job_id=str(job_id))

    try:
        print(f"Opening applications for job {job_id}...")
        page.goto(config.job_applications_url(job_id), wait_until="networkidle")
        plan = BatchPlan(read_pending_count(page), batch_size)
    except (PendingCountError, PlaywrightError) as e:
        result.error = str(e)
        print(f"Skipping job {job_id}: {e}", file=sys.stderr)
        return result

    result.plan = plan
    print(f"Applications in 'New': {plan.pending_count}. Will process {plan.batch_count} batch(es).")

    for i in range(plan.batch_count):
        print(f"Processing batch {i + 1} of {plan.batch_count}")
        result.outcomes.append(kiv_batch_step(page, job_id, i))

        try:
            page.reload(wait_until="networkidle")
            page.wait_for_timeout(config.RELOAD_SETTLE_MS)
        except PlaywrightError as e:
            print(f"Reload after batch {i + 1} failed: {e}", file=sys.stderr)
            if page.is_closed():
                result.error = f"Page closed after batch {i + 1} of {plan.batch_count}: {e}"
                print(f"Stopping job {job_id}: {result.error}", file=sys.stderr)
                return result

    print(
        f"Job {job_id}: {len(result.outcomes) - result.failed_batches}/{len(result.outcomes)} batch(es) completed."
    )
    return result
