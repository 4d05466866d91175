"""
Abstract interface of the external metadata API used by the sync runner
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Tuple
from schemas.snapshot import RawItem


class MetadataSource(ABC):
    """
    The three logical calls a channel sync needs.

    Implementations retry each call on their own; errors that reach the
    caller are terminal for the channel.
    """

    @abstractmethod
    async def resolve_uploads_collection(self, channel_id: str) -> Tuple[str, str]:
        """
        Resolve a channel id.

        Returns:
            (display_name, uploads collection id)
        """
        pass

    @abstractmethod
    async def list_item_ids(self, collection_id: str, max_results: int) -> List[str]:
        """Page through a collection and return at most ``max_results`` item ids"""
        pass

    @abstractmethod
    async def fetch_item_details(self, item_ids: Sequence[str]) -> List[RawItem]:
        """Fetch details for ``item_ids`` in API-sized batches"""
        pass
