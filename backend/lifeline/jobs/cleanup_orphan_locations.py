"""Remove locations whose helper no longer exists.

Best-effort maintenance pass, run out of band:

    python -m lifeline.jobs.cleanup_orphan_locations

Candidates are read first and each helper is checked independently, so a
helper created or deleted mid-run may be missed. Not a consistency
mechanism.
"""
import asyncio
import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from lifeline.database import AsyncSessionLocal, close_db, init_db
from lifeline.models.location import Location
from lifeline.services.helpers import HelperDirectory

logger = logging.getLogger(__name__)


async def cleanup_orphan_locations(session: AsyncSession) -> int:
    """Delete helper-owned locations pointing at missing helpers.

    Returns the number of rows removed.
    """
    result = await session.execute(
        select(Location.id, Location.helper_id).where(Location.helper_id.is_not(None))
    )
    candidates = result.all()

    directory = HelperDirectory(session)
    known: dict = {}
    removed = 0

    for location_id, helper_id in candidates:
        if helper_id not in known:
            known[helper_id] = await directory.exists(helper_id)
        if known[helper_id]:
            continue
        await session.execute(delete(Location).where(Location.id == location_id))
        removed += 1

    await session.commit()
    return removed


async def main() -> int:
    await init_db()
    try:
        async with AsyncSessionLocal() as session:
            removed = await cleanup_orphan_locations(session)
        logger.info("Cleanup complete. Removed %d orphan location records.", removed)
        return removed
    finally:
        await close_db()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    try:
        asyncio.run(main())
    except Exception:
        logger.exception("Cleanup failed")
        raise SystemExit(1)
