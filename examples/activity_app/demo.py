"""
Activity example: batch inserts, soft deletes, transactional updates and
paging against SQLite.
"""

from __future__ import annotations

import asyncio
import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Optional

from crudmap import PageRequest, Session, SoftDelete, connect, to_ids

from .models import SCHEMA, BizActivity


async def bootstrap_session(dsn: str) -> Session:
    session = connect(dsn, soft_delete=SoftDelete())
    await session.executor.exec_prepare("", SCHEMA, [])
    return session


async def seed_sample_data(session: Session, count: int = 6) -> List[BizActivity]:
    start = datetime(2024, 1, 1, 9, 0, 0)
    activities = [
        BizActivity(id=f"act-{idx}", name=f"Activity {idx}", create_time=start + timedelta(days=idx))
        for idx in range(count)
    ]
    await session.save_batch("", activities)
    return activities


async def archive_and_publish(session: Session, activities: List[BizActivity]) -> int:
    """
    Soft-delete the first activity and mark the rest published in one
    transaction.
    """
    async with session.transaction() as tx_id:
        await session.remove_by_id(tx_id, BizActivity, activities[0].id)
        published = [BizActivity(id=activity.id, status=2) for activity in activities[1:]]
        return await session.update_batch_by_id(tx_id, published)


async def fetch_feed(session: Session, page_no: int = 1, page_size: int = 3) -> Dict[str, Any]:
    wrapper = session.wrapper().eq("status", 2)
    page = await session.fetch_page_by_wrapper(
        "", BizActivity, wrapper, PageRequest(page_no=page_no, page_size=page_size)
    )
    return {
        "total": page.total,
        "pages": page.pages,
        "items": [{"id": item.id, "name": item.name} for item in page.records],
    }


async def run_demo(dsn: Optional[str] = None) -> Dict[str, Any]:
    with tempfile.TemporaryDirectory() as workdir:
        dsn = dsn or f"sqlite:///{Path(workdir) / 'activity.db'}"
        session = await bootstrap_session(dsn)
        try:
            activities = await seed_sample_data(session)
            published = await archive_and_publish(session, activities)
            feed = await fetch_feed(session)
            visible = await session.list_by_ids("", BizActivity, to_ids(activities))
        finally:
            await session.close()
    feed["published"] = published
    feed["visible"] = len(visible)
    return feed


if __name__ == "__main__":
    print(asyncio.run(run_demo()))
