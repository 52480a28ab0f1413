"""
Best-effort copy of submitted feedback into a Google Sheet.

Submissions hand a flattened, plain-dict row to ``SheetsMirror.dispatch``
after their transaction commits. Rows are appended by a small worker pool
with its own retry/backoff; failures are logged and never reach the caller.
Workers never touch the database.
"""
from __future__ import annotations

import json
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"

# Column order of the staff sheet (A..AF)
SHEET_COLUMNS = [
    "id",
    "order_id",
    "name",
    "experience",
    "buddy_on_time",
    "buddy_courteous",
    "buddy_handling",
    "buddy_pickup",
    "sales_understanding",
    "sales_clarity",
    "sales_professionalism",
    "sales_transparency",
    "sales_followup",
    "sales_decision",
    "cx_onboarding",
    "cx_courteous",
    "cx_resolution",
    "cx_communication",
    "recommendation",
    "tip_asked",
    "tip_details",
    "liked",
    "improvement",
    "created_at",
    "email",
    "form_type",
    "service_complete_datetime",
    "feedback_token",
    "feedback_link",
    "feedback_sent_at",
    "feedback_submitted_at",
    "token_expires_at",
]
_LAST_COLUMN = "AF"


def _cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    return value


def flatten_record(record, order=None) -> Dict[str, Any]:
    """FeedbackRecord (+ optional Order) -> sheet-ready dict keyed by SHEET_COLUMNS."""
    row = {}
    for col in SHEET_COLUMNS:
        if col == "service_complete_datetime":
            value = order.service_complete_datetime if order is not None else None
        elif col == "created_at":
            value = datetime.now(timezone.utc)
        else:
            value = getattr(record, col, None)
        row[col] = _cell(value)
    if not row["form_type"]:
        row["form_type"] = "customer_satisfaction"
    return row


def normalize_private_key(raw: Optional[str]) -> Optional[str]:
    """Env-provided PEM: strip wrapping quotes, unescape literal \\n."""
    if not raw:
        return None
    key = raw.strip().strip("'\"")
    return key.replace("\\n", "\n")


class GoogleSheetsAppender:
    """Thin wrapper over the Sheets v4 values API for one spreadsheet."""

    def __init__(self, sheet_id: str, service_account_email: str, private_key: str,
                 sheet_range: str = "Sheet1"):
        self.sheet_id = sheet_id
        self.service_account_email = service_account_email
        self.private_key = private_key
        self.sheet_range = sheet_range
        self._service = None
        self._headers_checked = False
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> Optional["GoogleSheetsAppender"]:
        sheet_id = config.get("GOOGLE_SHEET_ID")
        email = config.get("GOOGLE_SERVICE_ACCOUNT_EMAIL")
        key = normalize_private_key(config.get("GOOGLE_PRIVATE_KEY"))
        if not (sheet_id and email and key):
            return None
        return cls(sheet_id, email, key, config.get("SHEETS_RANGE", "Sheet1"))

    def _get_service(self):
        if self._service is None:
            # Deferred: the Google client stack is only needed when a sheet is configured
            from google.oauth2 import service_account
            from googleapiclient.discovery import build

            credentials = service_account.Credentials.from_service_account_info(
                {
                    "type": "service_account",
                    "client_email": self.service_account_email,
                    "private_key": self.private_key,
                    "token_uri": TOKEN_URI,
                },
                scopes=SCOPES,
            )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def ensure_headers(self) -> None:
        values = self._get_service().spreadsheets().values()
        resp = values.get(
            spreadsheetId=self.sheet_id,
            range=f"{self.sheet_range}!A1:{_LAST_COLUMN}1",
        ).execute()
        rows = resp.get("values") or []
        if rows and rows[0]:
            return
        values.update(
            spreadsheetId=self.sheet_id,
            range=f"{self.sheet_range}!A1",
            valueInputOption="RAW",
            body={"values": [SHEET_COLUMNS]},
        ).execute()
        logger.info("Header row written to sheet %s", self.sheet_id)

    def append(self, flat_record: Mapping[str, Any]) -> None:
        with self._lock:
            if not self._headers_checked:
                self.ensure_headers()
                self._headers_checked = True
        row = [flat_record.get(col, "") for col in SHEET_COLUMNS]
        self._get_service().spreadsheets().values().append(
            spreadsheetId=self.sheet_id,
            range=f"{self.sheet_range}!A:{_LAST_COLUMN}",
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        ).execute()


class SheetsMirror:
    """Flask extension owning the appender and its worker pool."""

    def __init__(self, appender=None):
        self.appender = appender
        self.retries = 3
        self.backoff_seconds = 1.0
        self._executor: Optional[ThreadPoolExecutor] = None
        self._pending: Set[Future] = set()
        self._pending_lock = threading.Lock()
        self._logger = logger

    def init_app(self, app) -> None:
        if self.appender is None:
            self.appender = GoogleSheetsAppender.from_config(app.config)
        self.retries = max(1, int(app.config.get("SHEETS_MIRROR_RETRIES", 3)))
        self.backoff_seconds = float(app.config.get("SHEETS_MIRROR_BACKOFF_SECONDS", 1.0))
        workers = max(1, int(app.config.get("SHEETS_MIRROR_WORKERS", 2)))
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="sheets-mirror")
        self._logger = app.logger
        app.extensions["sheets_mirror"] = self
        if self.appender is None:
            app.logger.info("Google Sheets mirror not configured; submissions will not be mirrored")

    def _log(self, level: int, **fields) -> None:
        self._logger.log(level, json.dumps({"event": "sheets_mirror", **fields}, default=str))

    def dispatch(self, flat_record: Mapping[str, Any]) -> Optional[Future]:
        """Queue one row; returns the Future, or None when mirroring is off."""
        if self.appender is None or self._executor is None:
            self._log(logging.DEBUG, order_id=flat_record.get("order_id"), outcome="skipped")
            return None
        row = dict(flat_record)
        fut = self._executor.submit(self._deliver, row)
        with self._pending_lock:
            self._pending.add(fut)
        fut.add_done_callback(self._forget)
        return fut

    def _forget(self, fut: Future) -> None:
        with self._pending_lock:
            self._pending.discard(fut)

    def _deliver(self, row: Dict[str, Any]) -> bool:
        order_id = row.get("order_id")
        for attempt in range(1, self.retries + 1):
            try:
                self.appender.append(row)
            except Exception as ex:
                self._log(logging.WARNING, order_id=order_id, outcome="error",
                          attempt=attempt, error=str(ex))
                if attempt < self.retries:
                    time.sleep(self.backoff_seconds * attempt)
                continue
            self._log(logging.INFO, order_id=order_id, outcome="appended", attempt=attempt)
            return True
        self._log(logging.ERROR, order_id=order_id, outcome="gave_up", attempts=self.retries)
        return False

    def flush(self, timeout: Optional[float] = None) -> List[Future]:
        """Block until queued rows are delivered (CLI exit, tests)."""
        with self._pending_lock:
            pending = list(self._pending)
        if pending:
            wait(pending, timeout=timeout)
        return pending

    def shutdown(self, wait_for_pending: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait_for_pending)
            self._executor = None
