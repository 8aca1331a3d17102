"""Token storage.

The store holds three entries: the access token, the refresh token and the
role claim cached from the last decoded access token. Only the
``SessionManager`` writes to it. ``clear()`` drops every entry in one write.
"""

import json
import os
import tempfile
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StoredTokens:
    access_token: str | None = None
    refresh_token: str | None = None
    role: str | None = None


class TokenStore(ABC):
    """Abstract persisted key-value holder for session tokens."""

    @abstractmethod
    def load(self) -> StoredTokens: ...

    @abstractmethod
    def save(self, tokens: StoredTokens) -> None: ...

    def clear(self) -> None:
        self.save(StoredTokens())

    @property
    def access_token(self) -> str | None:
        return self.load().access_token

    @property
    def refresh_token(self) -> str | None:
        return self.load().refresh_token

    @property
    def role(self) -> str | None:
        return self.load().role


class InMemoryTokenStore(TokenStore):
    def __init__(self, tokens: StoredTokens | None = None) -> None:
        self._tokens = tokens or StoredTokens()

    def load(self) -> StoredTokens:
        return self._tokens

    def save(self, tokens: StoredTokens) -> None:
        self._tokens = tokens


class FileTokenStore(TokenStore):
    """Persists tokens as JSON, replacing the file atomically on every write.

    An unreadable or corrupt file is treated as an empty store.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> StoredTokens:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return StoredTokens()
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable token store", path=str(self.path), error=str(exc))
            return StoredTokens()

        if not isinstance(raw, dict):
            return StoredTokens()
        return StoredTokens(
            access_token=raw.get("access_token"),
            refresh_token=raw.get("refresh_token"),
            role=raw.get("role"),
        )

    def save(self, tokens: StoredTokens) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {k: v for k, v in asdict(tokens).items() if v is not None}

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(payload, fh)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
