"""Staleness-based eviction of traffic aircraft"""

import logging
from typing import List, Optional

from ..schemas.daa_schemas import StateTable

logger = logging.getLogger(__name__)


def evict(table: StateTable, ownship_id: Optional[str], threshold: float) -> List[str]:
    """
    Remove traffic whose latest record is older than ownship time - threshold.

    A record exactly at the cutoff is kept. The ownship is never removed.
    Nothing happens when threshold <= 0, when there is no ownship history,
    or when there is no traffic. Returns the removed aircraft ids.
    """
    if threshold <= 0 or not ownship_id:
        return []
    ownship = table.histories.get(ownship_id)
    if ownship is None or len(ownship) == 0:
        return []
    traffic_ids = [name for name in table.histories if name != ownship_id]
    if not traffic_ids:
        return []

    current_time = ownship.latest_time()
    cutoff = current_time - threshold
    logger.debug(f"current time {current_time}, stale threshold {threshold}, stale time {cutoff}")

    stale = []
    for name in traffic_ids:
        ac_time = table.histories[name].latest_time()
        if ac_time < cutoff:
            stale.append(name)
            logger.debug(f"checking aircraft {name} (time: {ac_time}) -- stale")
        else:
            logger.debug(f"checking aircraft {name} (time: {ac_time}) -- ok")

    for name in stale:
        table.remove(name)

    if stale:
        logger.info(f"Removed {len(stale)} stale aircraft: {', '.join(stale)}")
    return stale
