"""
Job listings from the employer jobs dashboard.

Each posting is a `div.panel-body` block. A block yields a JobListing when
it has a usable title heading, a link, and a `jid` in that link; anything
else is reported and skipped without affecting the other blocks.
"""

import re
from dataclasses import dataclass
from typing import Dict, Optional
from urllib.parse import urljoin

from . import config
from .text import normalize_title

LISTING_BLOCK_SELECTOR = "div.panel-body"

# Low-credit banners are rendered as an <h3> inside the listing block.
WARNING_MARKER = "Uh-oh"

FEEDBACK_MODAL_SELECTOR = 'div.modal-dialog:has(h1:text("Share your thoughts about job posting"))'
MODAL_CLOSE_SELECTOR = "button.modal-close"

JOB_ID_RE = re.compile(r"jid=(\d+)&coyid=")


@dataclass(frozen=True)
class JobListing:
    id: str
    title: str
    url: str

    @property
    def normalized_title(self) -> str:
        return normalize_title(self.title)


def parse_job_id(url: str) -> Optional[str]:
    """Numeric job id from a `...jid=<digits>&coyid=...` link, else None."""
    m = JOB_ID_RE.search(url or "")
    return m.group(1) if m else None


def absolute_url(href: str, page_url: str) -> str:
    if href.startswith("http"):
        return href
    return urljoin(page_url, href)


def _pick_title(block) -> Optional[str]:
    for heading in block.locator("h3").all():
        text = heading.inner_text()
        if WARNING_MARKER not in text:
            return text.strip()
    return None


def dismiss_feedback_modal(page, settle_ms: Optional[int] = None) -> bool:
    """
    Close the "Share your thoughts" feedback modal if it is showing.
    Returns True if it was closed.
    """
    modal = page.locator(FEEDBACK_MODAL_SELECTOR)
    if modal.count() == 0 or not modal.first.is_visible():
        return False

    print("Feedback modal detected, closing it...")
    close_button = modal.first.locator(MODAL_CLOSE_SELECTOR).first
    if not close_button.is_visible():
        return False
    close_button.click()
    page.wait_for_timeout(config.MODAL_SETTLE_MS if settle_ms is None else settle_ms)
    print("Modal closed.")
    return True


def extract_listings(page) -> Dict[str, JobListing]:
    """
    Map job id -> JobListing for every well-formed block on the current page.

    A later block with the same id replaces an earlier one. Errors inside a
    block are printed and the block is skipped; an unusable page raises.
    """
    blocks = page.locator(LISTING_BLOCK_SELECTOR).all()
    print(f"Found {len(blocks)} possible job listings")

    listings: Dict[str, JobListing] = {}
    for block in blocks:
        try:
            title = _pick_title(block)
            if not title:
                print("Skipping job block (no valid title found)")
                continue

            anchors = block.locator("a")
            href = anchors.first.get_attribute("href") if anchors.count() > 0 else None
            if not href:
                print(f'Skipping "{title}" (no link found)')
                continue

            url = absolute_url(href, page.url)
            job_id = parse_job_id(url)
            if not job_id:
                print(f'Skipping "{title}" (no job id in {url})')
                continue

            listings[job_id] = JobListing(id=job_id, title=title, url=url)
        except Exception as e:
            print(f"Skipping job block due to extraction error: {e}")

    print(f"Extracted {len(listings)} job listing(s)")
    return listings


def find_by_title(listings: Dict[str, JobListing], title: str) -> Dict[str, JobListing]:
    """Listings whose normalized title contains the normalized `title`."""
    needle = normalize_title(title)
    if not needle:
        return {}
    return {jid: job for jid, job in listings.items() if needle in job.normalized_title}
