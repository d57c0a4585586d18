"""
Purge job response. Dry runs report wouldDelete, real runs report deleted.
"""

from typing import Optional

from esports_scheduler.schemas.common import CamelModel, UtcDatetime


class PurgeResponse(CamelModel):
    dry_run: bool
    cutoff: UtcDatetime
    would_delete: Optional[int] = None
    deleted: Optional[int] = None
