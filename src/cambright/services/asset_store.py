"""
cambright.services.asset_store

Local filesystem storage for uploaded asset bytes.

Responsibilities:
- Generate unguessable asset keys.
- Map (asset type, key, file name) to a path under the storage root.
- Write, read and remove stored bytes.
"""

from __future__ import annotations

import secrets
import time
from pathlib import Path, PurePath

from cambright.db.models import AssetType

_FOLDERS: dict[AssetType, str] = {
    AssetType.school_image: "schools/images",
    AssetType.school_banner: "schools/banners",
    AssetType.post_image: "posts/images",
    AssetType.course_image: "courses/images",
    AssetType.note_image: "notes/images",
    AssetType.chapter_video: "chapters/videos",
    AssetType.message_file: "messages/files",
    AssetType.general_file: "general",
}


def _base36(value: int) -> str:
    digits = "0123456789abcdefghijklmnopqrstuvwxyz"
    out = ""
    while value:
        value, rem = divmod(value, 36)
        out = digits[rem] + out
    return out or "0"


def generate_key() -> str:
    # Millisecond timestamp (base36) + 32 random bytes as hex.
    return f"{_base36(int(time.time() * 1000))}_{secrets.token_hex(32)}"


class AssetStore:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, asset_type: AssetType, key: str, file_name: str) -> Path:
        suffix = PurePath(file_name).suffix.lower()
        return self._root / _FOLDERS[asset_type] / f"{key}{suffix}"

    def save(self, asset_type: AssetType, key: str, file_name: str, data: bytes) -> Path:
        path = self.path_for(asset_type, key, file_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def read(self, asset_type: AssetType, key: str, file_name: str) -> bytes | None:
        path = self.path_for(asset_type, key, file_name)
        if not path.is_file():
            return None
        return path.read_bytes()

    def delete(self, asset_type: AssetType, key: str, file_name: str) -> bool:
        path = self.path_for(asset_type, key, file_name)
        if not path.is_file():
            return False
        path.unlink()
        return True
