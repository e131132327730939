"""Bounded per-row execution for bulk subscription operations.

Each targeted subscription is handled by one unit of work running on a thread pool,
with its own session and its own commit. A failing row is rolled back and recorded;
it never aborts its siblings.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Iterable

from sqlalchemy.orm import Session

from ...config import BULK_MAX_WORKERS

logger = logging.getLogger(__name__)

# (subscription_id, user_id)
RowRef = tuple[int, str]
# Returns True when the row was changed, False when it was skipped
RowUnit = Callable[[Session, int], bool]


@dataclass
class BatchResult:
    processed: int = 0
    skipped: int = 0
    errors: list[dict] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)


def run_per_row(
    rows: Iterable[RowRef],
    unit: RowUnit,
    session_factory: Callable[[], Session],
    max_workers: int = BULK_MAX_WORKERS,
    label: str = "bulk",
) -> BatchResult:
    """Run ``unit`` once per row on at most ``max_workers`` threads"""
    rows = list(rows)
    result = BatchResult()
    if not rows:
        return result

    def _run(subscription_id: int) -> bool:
        db = session_factory()
        try:
            return unit(db, subscription_id)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(rows)))) as ex:
        future_map: dict[Future, RowRef] = {ex.submit(_run, sub_id): (sub_id, user_id) for sub_id, user_id in rows}
        for fut in as_completed(future_map):
            sub_id, user_id = future_map[fut]
            try:
                if fut.result():
                    result.processed += 1
                else:
                    result.skipped += 1
            except Exception as e:
                logger.error(f"❌ {label}: subscription {sub_id} (user {user_id}) failed: {str(e)}")
                result.errors.append({"subscription_id": sub_id, "user_id": user_id, "error": str(e)})

    # Completion order is arbitrary; keep the error list stable for callers
    result.errors.sort(key=lambda e: e["subscription_id"])
    logger.info(
        f"📊 {label}: {result.processed} processed, {result.skipped} skipped, {result.failed} failed"
    )
    return result
