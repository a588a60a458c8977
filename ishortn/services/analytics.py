"""
Click recording and its background dispatch.

Order inside one click: bot filter -> usage meter -> device/geo extraction ->
LinkVisit insert -> unique-visit dedup. Bot and usage rejections stop the
pipeline before anything is written; the two inserts are independent and
best-effort.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor

from ..extensions import db
from .bot_filter import is_bot
from .device import normalize_headers, retrieve_device_and_geolocation_data
from .usage import register_event_usage
from .visits import hash_ip, log_visit, record_unique_visit

logger = logging.getLogger(__name__)

RECORDED = "recorded"
SKIPPED_PROTECTED = "protected"
SKIPPED_BOT = "bot"
SKIPPED_USAGE_CAP = "usage_cap"


class ClickRecorder:
    def __init__(self, notifier=None):
        self.notifier = notifier

    def record_click(self, record: dict, headers, password_verified: bool = False) -> str:
        headers = normalize_headers(headers)

        if record.get("password_hash") and not password_verified:
            return SKIPPED_PROTECTED

        user_agent = headers.get("user-agent", "")
        if is_bot(user_agent):
            logger.debug(f"Bot skipped analytics for link {record['id']}: {user_agent}")
            return SKIPPED_BOT

        usage = register_event_usage(record["user_id"])
        if usage.alert_level_triggered and self.notifier is not None:
            self.notifier.send_event_usage_alert(usage)

        if not usage.allowed:
            logger.info(
                f"Event cap reached for owner {record['user_id']} "
                f"({usage.current_count}/{usage.limit}); click on link {record['id']} not stored"
            )
            return SKIPPED_USAGE_CAP

        fingerprint = retrieve_device_and_geolocation_data(headers)

        try:
            log_visit(record["id"], fingerprint)
        except Exception as e:
            db.session.rollback()
            logger.error(f"Visit log failed for link {record['id']}: {e}")

        try:
            record_unique_visit(record["id"], hash_ip(headers.get("x-forwarded-for")))
        except Exception as e:
            db.session.rollback()
            logger.error(f"Unique visit write failed for link {record['id']}: {e}")

        return RECORDED


class AnalyticsDispatcher:
    """Runs analytics work detached from the response that triggered it.

    Every task gets its own app context (and so its own session) on a worker
    thread. Failures are logged and swallowed; the returned Future resolves
    to None in that case. With async_mode off, tasks run inline under the
    same isolation.
    """

    def __init__(self, app, async_mode: bool = True, max_workers: int = 4):
        self.app = app
        self.async_mode = async_mode
        self.max_workers = max_workers
        self._executor = None

    @property
    def executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers,
                thread_name_prefix="ishortn-analytics",
            )
        return self._executor

    def submit(self, fn, *args, **kwargs) -> Future:
        if not self.async_mode:
            future = Future()
            future.set_result(self._guarded(fn, args, kwargs))
            return future

        return self.executor.submit(self._run_in_context, fn, args, kwargs)

    def _run_in_context(self, fn, args, kwargs):
        with self.app.app_context():
            return self._guarded(fn, args, kwargs)

    def _guarded(self, fn, args, kwargs):
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception(f"Analytics task {getattr(fn, '__name__', fn)} failed")
            try:
                db.session.rollback()
            except Exception as e:
                logger.warning(f"Rollback after analytics failure also failed: {e}")
            return None

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None
