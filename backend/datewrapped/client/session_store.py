"""Resumable wrapped-generation sessions, keyed by session id"""
import copy
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


class WrappedSessionStore:
    """Interface: snapshot dicts in, snapshot dicts out"""

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        raise NotImplementedError

    def clear(self, session_id: str) -> None:
        raise NotImplementedError


class InMemoryWrappedSessionStore(WrappedSessionStore):
    def __init__(self):
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        data = self._sessions.get(session_id)
        return copy.deepcopy(data) if data is not None else None

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        self._sessions[session_id] = copy.deepcopy(data)

    def clear(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class FileWrappedSessionStore(WrappedSessionStore):
    """One JSON file per session under `directory`"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, session_id: str) -> Path:
        if not _SAFE_ID.match(session_id or ""):
            raise ValueError(f"Invalid session id: {session_id!r}")
        return self.directory / f"{session_id}.json"

    def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        path = self._path(session_id)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Discarding unreadable wrapped session {session_id}: {e}")
            return None

    def save(self, session_id: str, data: Dict[str, Any]) -> None:
        path = self._path(session_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(data, ensure_ascii=False, default=str), encoding="utf-8")
        tmp.replace(path)

    def clear(self, session_id: str) -> None:
        self._path(session_id).unlink(missing_ok=True)
