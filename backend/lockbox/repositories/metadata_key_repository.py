"""Repository for shared metadata keys."""

from typing import List, Optional

from ..exceptions import NotFoundError
from ..models.metadata_key import MetadataKey, MetadataPrivateKey
from .base import BaseRepository


class MetadataKeyNotFoundError(NotFoundError):
    def __init__(self, metadata_key_id: str):
        super().__init__("The metadata key does not exist.", details={"metadata_key_id": metadata_key_id})


class MetadataKeyRepository(BaseRepository[MetadataKey]):
    """Data access layer for metadata keys and their private parts."""

    model_class = MetadataKey
    not_found_error = MetadataKeyNotFoundError

    def find_index(self, deleted: Optional[bool] = None, expired: Optional[bool] = None) -> List[MetadataKey]:
        """Keys filtered on their deleted/expired state (None = no filter)."""
        query = self.db.query(MetadataKey)
        if deleted is not None:
            query = query.filter(MetadataKey.deleted.isnot(None) if deleted else MetadataKey.deleted.is_(None))
        if expired is not None:
            query = query.filter(MetadataKey.expired.isnot(None) if expired else MetadataKey.expired.is_(None))
        return query.order_by(MetadataKey.created, MetadataKey.id).all()

    def private_keys_for_user(self, metadata_key_ids: List[str], user_id: str) -> List[MetadataPrivateKey]:
        if not metadata_key_ids:
            return []
        return (
            self.db.query(MetadataPrivateKey)
            .filter(
                MetadataPrivateKey.metadata_key_id.in_(metadata_key_ids),
                MetadataPrivateKey.user_id == user_id,
            )
            .all()
        )

    def fingerprint_in_use(self, fingerprint: str) -> bool:
        return (
            self.db.query(MetadataKey.id)
            .filter(MetadataKey.fingerprint == fingerprint, MetadataKey.deleted.is_(None))
            .first()
            is not None
        )

    def get_not_deleted(self, metadata_key_id: str) -> Optional[MetadataKey]:
        return (
            self.db.query(MetadataKey)
            .filter(MetadataKey.id == metadata_key_id, MetadataKey.deleted.is_(None))
            .first()
        )

    def active_key_ids(self) -> List[str]:
        rows = (
            self.db.query(MetadataKey.id)
            .filter(MetadataKey.deleted.is_(None), MetadataKey.expired.is_(None))
            .all()
        )
        return [row[0] for row in rows]

    def add(self, metadata_key: MetadataKey) -> MetadataKey:
        self.db.add(metadata_key)
        return metadata_key
