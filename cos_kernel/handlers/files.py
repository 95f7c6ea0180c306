"""
File-management handler — everyday file chores inside a sandbox root.

Locations ("downloads", "pictures", ...) are sub-folders of the root. The
handler never touches anything outside it.
"""

import asyncio
import re
import time
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Union

from loguru import logger
from pydantic import BaseModel

from cos_kernel.classifier.patterns import PatternClassifier
from cos_kernel.classifier.slots import LOCATIONS, extract_days, extract_location
from cos_kernel.dispatch.registry import BaseHandler
from cos_kernel.models.conversation import ConversationContext
from cos_kernel.models.intent import CoarseCategory, Intent
from cos_kernel.models.result import HandlerError, HandlerResult, HandlerSuccess


DEFAULT_LOCATION = "downloads"
LIST_LIMIT = 10

# Folder name -> extensions moved into it by "organize"
ORGANIZE_FOLDERS: Dict[str, List[str]] = {
    "Images": ["jpg", "jpeg", "png", "gif", "bmp"],
    "Documents": ["pdf", "doc", "docx", "txt", "rtf"],
    "Videos": ["mp4", "avi", "mkv", "mov", "wmv"],
    "Audio": ["mp3", "wav", "flac", "aac", "ogg"],
    "Archives": ["zip", "rar", "7z", "tar", "gz"],
}


class FileAction(str, Enum):
    LIST = "list"
    ORGANIZE = "organize"
    DELETE_OLD = "delete_old"
    SEARCH = "search"
    CREATE_FOLDER = "create_folder"
    UNKNOWN = "unknown"


class FileCommand(BaseModel):
    """A parsed file request."""

    action: FileAction
    location: str = DEFAULT_LOCATION
    days: int = 30
    query: str = ""
    folder_name: str = ""


_SEARCH_RE = re.compile(
    r"\b(?:search|find)\s+(?:for\s+)?(?:(?:files?|documents?)\s+(?:named|called)\s+)?"
    r"[\"']?(.+?)[\"']?(?:\s+in\s+(?:my\s+)?\w+)?$"
)
_FOLDER_RE = re.compile(
    r"\bfolder\s+(?:named\s+|called\s+)?[\"']?(.+?)[\"']?(?:\s+in\s+(?:my\s+)?\w+)?$",
    re.IGNORECASE,
)


# Cascade intent -> file action. Search and folder creation refine LIST.
_INTENT_ACTIONS: Dict[Intent, FileAction] = {
    Intent.LIST_FILES: FileAction.LIST,
    Intent.ORGANIZE_FILES: FileAction.ORGANIZE,
    Intent.DELETE_FILES: FileAction.DELETE_OLD,
}

_GENERIC_QUERIES = ("files", "my files", "all files", "documents", "my documents", *LOCATIONS)

_default_classifier = PatternClassifier()


def _keyword_action(lowered: str) -> FileAction:
    """Action for text the cascade does not place, checked in cascade order."""
    if re.search(r"\b(?:create|make|new)\s+(?:a\s+)?folder\b", lowered):
        return FileAction.CREATE_FOLDER
    if re.search(r"\b(?:list|show|find|search)\b", lowered):
        return FileAction.LIST
    if re.search(r"\borgani[sz]e\b|\bsort\b", lowered):
        return FileAction.ORGANIZE
    if re.search(r"\bdelete\b|\bcleanup\b|\bclean up\b", lowered):
        return FileAction.DELETE_OLD
    return FileAction.UNKNOWN


def parse_file_command(
    text: str,
    default_days: int = 30,
    classifier: Optional[PatternClassifier] = None,
) -> FileCommand:
    """
    Map a file request onto one action.

    The action follows the same cascade that resolved the turn, so a request
    classified as a listing never deletes or moves anything.
    """
    lowered = text.lower().strip()
    location = extract_location(lowered) or DEFAULT_LOCATION

    intent = (classifier or _default_classifier).classify(lowered)
    action = _INTENT_ACTIONS.get(intent) or _keyword_action(lowered)

    if action == FileAction.LIST:
        if re.search(r"\b(?:create|make|new)\s+(?:a\s+)?folder\b", lowered):
            action = FileAction.CREATE_FOLDER
        elif re.search(r"\b(?:search|find)\b", lowered):
            match = _SEARCH_RE.search(lowered)
            query = match.group(1).strip() if match else ""
            if query and query not in _GENERIC_QUERIES:
                return FileCommand(action=FileAction.SEARCH, location=location, query=query)

    if action == FileAction.CREATE_FOLDER:
        match = _FOLDER_RE.search(text.strip())
        name = match.group(1).strip() if match else ""
        return FileCommand(
            action=FileAction.CREATE_FOLDER,
            location=location,
            folder_name=name or "New Folder",
        )

    if action == FileAction.DELETE_OLD:
        days = extract_days(lowered)
        return FileCommand(
            action=FileAction.DELETE_OLD,
            location=location,
            days=days if days is not None else default_days,
        )

    return FileCommand(action=action, location=location)


def _entry_label(path: Path) -> str:
    return f"📁 {path.name}" if path.is_dir() else f"📄 {path.name}"


class FileManagementHandler(BaseHandler):
    name = "files"
    capabilities: FrozenSet[CoarseCategory] = frozenset({CoarseCategory.FILE_MANAGEMENT})

    def __init__(self, root: Union[str, Path], default_days: int = 30):
        self.root = Path(root).expanduser()
        self.default_days = default_days

    async def handle(self, text: str, context: ConversationContext) -> HandlerResult:
        command = parse_file_command(text, self.default_days)
        if command.action == FileAction.UNKNOWN:
            return HandlerError(message="I don't understand that file command yet.")
        try:
            return await asyncio.to_thread(self.execute, command)
        except OSError as e:
            logger.error(f"File operation {command.action.value} failed: {e}")
            return HandlerError(message=f"The {command.action.value.replace('_', ' ')} operation failed.")

    def execute(self, command: FileCommand) -> HandlerResult:
        """Run a parsed command synchronously."""
        directory = self._directory(command.location)
        if directory is None or not directory.is_dir():
            return HandlerError(message=f"Directory not found: {command.location}")

        if command.action == FileAction.LIST:
            return self._list(directory, command.location)
        if command.action == FileAction.ORGANIZE:
            return self._organize(directory, command.location)
        if command.action == FileAction.DELETE_OLD:
            return self._delete_old(directory, command.location, command.days)
        if command.action == FileAction.SEARCH:
            return self._search(directory, command.location, command.query)
        if command.action == FileAction.CREATE_FOLDER:
            return self._create_folder(directory, command.location, command.folder_name)
        return HandlerError(message="I don't understand that file command yet.")

    def _directory(self, location: str) -> Optional[Path]:
        candidate = (self.root / location).resolve()
        root = self.root.resolve()
        if candidate != root and root not in candidate.parents:
            return None
        return candidate

    def _list(self, directory: Path, location: str) -> HandlerResult:
        entries = sorted(directory.iterdir(), key=lambda p: p.name.lower())[:LIST_LIMIT]
        if not entries:
            return HandlerSuccess(message=f"No files found in {location}", data=[])
        listing = "\n".join(_entry_label(p) for p in entries)
        return HandlerSuccess(
            message=f"Files in {location}:\n{listing}",
            data=[p.name for p in entries],
        )

    def _organize(self, directory: Path, location: str) -> HandlerResult:
        files = [p for p in directory.iterdir() if p.is_file()]
        moved = 0
        for folder_name, extensions in ORGANIZE_FOLDERS.items():
            matching = [p for p in files if p.suffix.lower().lstrip(".") in extensions]
            if not matching:
                continue
            folder = directory / folder_name
            folder.mkdir(exist_ok=True)
            for path in matching:
                target = folder / path.name
                if target.exists():
                    continue
                path.rename(target)
                moved += 1
        return HandlerSuccess(
            message=f"Organized {moved} files into folders in {location}",
            data={"moved": moved},
        )

    def _delete_old(self, directory: Path, location: str, days: int) -> HandlerResult:
        cutoff = time.time() - days * 24 * 60 * 60
        deleted = 0
        for path in directory.iterdir():
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink()
                deleted += 1
        return HandlerSuccess(
            message=f"Deleted {deleted} old files from {location}",
            data={"deleted": deleted, "days": days},
        )

    def _search(self, directory: Path, location: str, query: str) -> HandlerResult:
        needle = query.lower()
        results = []
        for path in sorted(directory.rglob("*")):
            if needle in path.name.lower():
                results.append(path)
                if len(results) >= LIST_LIMIT:
                    break
        if not results:
            return HandlerSuccess(
                message=f"No files found matching '{query}' in {location}",
                data=[],
            )
        listing = "\n".join(f"{_entry_label(p)} ({p.parent.name})" for p in results)
        return HandlerSuccess(
            message=f"Found {len(results)} files matching '{query}':\n{listing}",
            data=[str(p.relative_to(directory)) for p in results],
        )

    def _create_folder(self, directory: Path, location: str, name: str) -> HandlerResult:
        if "/" in name or "\\" in name or name in (".", ".."):
            return HandlerError(message=f"Failed to create folder '{name}'")
        folder = directory / name
        if folder.exists():
            return HandlerError(message=f"Folder '{name}' already exists in {location}")
        folder.mkdir()
        return HandlerSuccess(
            message=f"Created folder '{name}' in {location}",
            data={"folder": name},
        )
