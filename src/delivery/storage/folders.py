"""Drive folder references stored on an order.

Each order owns a Drive folder with four numbered subfolders. Older orders
stored each subfolder as a bare id, newer ones as a URL or as an object
returned by the Drive API; ``folder_ref_from_value`` is the single place
that understands those shapes.
"""

import json
import re
from dataclasses import dataclass
from enum import Enum
from urllib.parse import parse_qs, urlparse


class SubfolderKey(Enum):
    SOURCE = "Source"
    WORK = "Work"
    TRANSLATION = "Translation"
    TO_CLIENT = "ToClient"

    @property
    def folder_name(self) -> str:
        return _FOLDER_NAMES[self]


_FOLDER_NAMES = {
    SubfolderKey.SOURCE: "01-Source",
    SubfolderKey.WORK: "02-Work",
    SubfolderKey.TRANSLATION: "03-Translation",
    SubfolderKey.TO_CLIENT: "04-ToClient",
}


@dataclass(frozen=True)
class FolderRef:
    id: str = ""
    url: str = ""

    def __bool__(self) -> bool:
        return bool(self.id or self.url)


EMPTY_FOLDER = FolderRef()

_FOLDER_PATH = re.compile(r"/folders/([A-Za-z0-9_-]+)")
_FILE_PATH = re.compile(r"/d/([A-Za-z0-9_-]+)")


def folder_id_from_url(url: str) -> str:
    """Extract the Drive id from a folder or file URL, or "" if there is none."""
    parsed = urlparse(url)
    for pattern in (_FOLDER_PATH, _FILE_PATH):
        match = pattern.search(parsed.path)
        if match:
            return match.group(1)
    ids = parse_qs(parsed.query).get("id")
    return ids[0] if ids else ""


def folder_ref_from_value(value) -> FolderRef:
    """Normalize any stored subfolder shape into a FolderRef."""
    if value is None:
        return EMPTY_FOLDER

    if isinstance(value, dict):
        folder_id = str(value.get("id") or value.get("folder_id") or "").strip()
        url = str(value.get("url") or value.get("link") or value.get("webViewLink") or "").strip()
        if not folder_id and url:
            folder_id = folder_id_from_url(url)
        return FolderRef(id=folder_id, url=url)

    text = str(value).strip()
    if not text:
        return EMPTY_FOLDER
    if text.startswith(("http://", "https://")):
        return FolderRef(id=folder_id_from_url(text), url=text)
    return FolderRef(id=text)


def _matches(stored_key: str, key: SubfolderKey) -> bool:
    folded = re.sub(r"[^a-z0-9]", "", stored_key.lower())
    candidates = {
        re.sub(r"[^a-z0-9]", "", key.value.lower()),
        re.sub(r"[^a-z0-9]", "", key.folder_name.lower()),
    }
    return folded in candidates


def subfolder_from_map(subfolders, key: SubfolderKey) -> FolderRef:
    """Pick ``key`` out of an order's stored subfolder map (dict or JSON text)."""
    if isinstance(subfolders, str):
        try:
            subfolders = json.loads(subfolders) if subfolders.strip() else {}
        except ValueError:
            return EMPTY_FOLDER
    if not isinstance(subfolders, dict):
        return EMPTY_FOLDER

    for stored_key, value in subfolders.items():
        if _matches(str(stored_key), key):
            return folder_ref_from_value(value)
    return EMPTY_FOLDER
