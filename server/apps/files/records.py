"""Plain data records passed across the files app boundaries."""

import dataclasses
from datetime import datetime
from typing import Any, final
from uuid import UUID


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileRecord:
    """Metadata of one stored file.

    ``object_key`` is internal and never part of the public shape.
    """

    id: UUID
    owner_id: int
    object_key: str
    original_name: str
    size_bytes: int
    content_type: str
    sha256: str
    created_at: datetime
    deleted_at: datetime | None = None

    def to_public_dict(self) -> dict[str, Any]:
        """Serialize the fields exposed to API callers.

        Returns:
            Dictionary without the object key.
        """
        return {
            'id': str(self.id),
            'owner_user_id': self.owner_id,
            'original_name': self.original_name,
            'size_bytes': self.size_bytes,
            'content_type': self.content_type,
            'sha256': self.sha256,
            'created_at': self.created_at.isoformat(),
        }


@final
@dataclasses.dataclass(frozen=True, slots=True)
class FileSearchFilters:
    """Optional constraints for a file search.

    Empty strings and non-positive sizes mean "no constraint".
    """

    name_pattern: str = ''
    content_type: str = ''
    min_size: int = 0
    max_size: int = 0
