"""
Authenticated browser sessions for the FastJobs employer portal.

Acquisition order
-----------------
1) If a stored storage state exists (and no forced login), open a browser
   seeded from it and load the dashboard. Still on the dashboard -> reuse it.
2) Otherwise (or if reuse failed) log in with email/password, load the
   dashboard, and write the new storage state back to the store.
3) Attempts are bounded: reuse counts as the first attempt when it happens,
   every other attempt is a fresh login. Running out of attempts yields a
   failed SessionResult; what to do about it is the caller's decision.

A stored state that cannot even be read is deleted before logging in again,
so one bad file never blocks later runs.
"""

import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

from playwright.sync_api import Error as PlaywrightError

from . import config
from .session_store import SessionStoreCorrupt

# Playwright's message when `storage_state=` cannot be loaded.
CORRUPT_STATE_MARKER = "Error reading storage state"

LOGIN_FORM_SELECTOR = ".card-body form"
CREDENTIAL_FIELD_SELECTOR = ".input-content"
LOGIN_BUTTON_SELECTOR = 'fast-button:has-text("Login")'


class LoginError(Exception):
    """Fresh login or session validation did not end on an authenticated page."""


@dataclass
class Session:
    """A live browser + context + page. Closing releases the whole browser."""

    browser: Any
    context: Any
    page: Any
    reused: bool = False

    def close(self) -> None:
        _close_quietly(self.browser)

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
        print("Browser closed.")


@dataclass
class SessionResult:
    session: Optional[Session] = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.session is not None


def _close_quietly(browser) -> None:
    if browser is None:
        return
    try:
        browser.close()
    except PlaywrightError as e:
        print(f"Browser close failed: {e}", file=sys.stderr)


def chromium_launcher(playwright) -> Callable[[], Any]:
    """Browser factory bound to a running `sync_playwright()` instance."""

    def launch():
        return playwright.chromium.launch(headless=config.HEADLESS, args=config.BROWSER_ARGS)

    return launch


class SessionManager:
    def __init__(
        self,
        store,
        launch_browser: Callable[[], Any],
        email: str = "",
        password: str = "",
        max_attempts: int = config.MAX_LOGIN_ATTEMPTS,
        login_timeout_ms: int = config.LOGIN_TIMEOUT_MS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.store = store
        self.launch_browser = launch_browser
        self.email = email
        self.password = password
        self.max_attempts = max_attempts
        self.login_timeout_ms = login_timeout_ms

    def acquire(self, force_login: bool = False) -> SessionResult:
        attempts = 0

        if not force_login and self.store.exists():
            attempts += 1
            print("Using existing session...")
            session = self._reuse()
            if session is not None:
                return SessionResult(session=session)

        last_error = "no login attempted"
        while attempts < self.max_attempts:
            attempts += 1
            if attempts > 1:
                print("Retrying login...")
            try:
                session = self._fresh_login()
            except (LoginError, PlaywrightError) as e:
                last_error = str(e)
                print(f"Login attempt failed ({attempts}/{self.max_attempts}): {e}", file=sys.stderr)
                continue
            return SessionResult(session=session)

        return SessionResult(error=f"Login failed after {attempts} attempt(s): {last_error}")

    # -------------------------------------------------------------------------
    # Reuse
    # -------------------------------------------------------------------------

    def _reuse(self) -> Optional[Session]:
        try:
            state = self.store.read()
        except SessionStoreCorrupt as e:
            print(f"Corrupt session state ({e}). Deleting and forcing a new login...")
            self.store.delete()
            return None
        if state is None:
            return None

        browser = None
        try:
            browser = self.launch_browser()
            context = browser.new_context(storage_state=state, **config.REUSE_CONTEXT_OPTIONS)
            page = context.new_page()
            page.goto(config.DASHBOARD_URL, wait_until="domcontentloaded")
            if "login" in page.url:
                raise LoginError("Session expired. Redirected to login page.")
        except (LoginError, PlaywrightError) as e:
            print(f"Session error: {e}. Retrying login...")
            _close_quietly(browser)
            if CORRUPT_STATE_MARKER in str(e):
                print("Corrupt session state detected. Deleting and forcing a new login...")
                self.store.delete()
            return None

        print("Reusing authenticated session ✅")
        return Session(browser=browser, context=context, page=page, reused=True)

    # -------------------------------------------------------------------------
    # Fresh login
    # -------------------------------------------------------------------------

    def _fresh_login(self) -> Session:
        if not self.email or not self.password:
            raise LoginError("Credentials missing: set FASTJOBS_EMAIL and FASTJOBS_PASSWORD.")

        print("Logging in and saving session...")
        browser = self.launch_browser()
        try:
            context = browser.new_context(**config.LOGIN_CONTEXT_OPTIONS)
            page = context.new_page()

            page.goto(config.LOGIN_URL, wait_until="domcontentloaded")
            page.wait_for_selector(LOGIN_FORM_SELECTOR, timeout=self.login_timeout_ms)

            fields = page.locator(CREDENTIAL_FIELD_SELECTOR)
            fields.nth(0).fill(self.email)
            fields.nth(1).fill(self.password)
            page.locator(LOGIN_BUTTON_SELECTOR).click()
            print("Credentials submitted.")

            response = page.goto(config.DASHBOARD_URL, timeout=self.login_timeout_ms)
            if response is None or not response.ok:
                raise LoginError("Login failed! Please check credentials.")
            print("Login successful ✅")
            state = context.storage_state()
        except Exception:
            _close_quietly(browser)
            raise

        try:
            self.store.write(state)
            print(f"Session saved to {self.store!r}")
        except OSError as e:
            # The live session is still good; only the next run pays for this.
            print(f"Could not save session state: {e}", file=sys.stderr)
        return Session(browser=browser, context=context, page=page, reused=False)
