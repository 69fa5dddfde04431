"""
Token storage for the API client.

The client never keeps the token pair in a global; it reads and writes
through whichever TokenStorage it was given.
"""
import json
import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Union

logger = logging.getLogger(__name__)

TOKENS_KEY = "treino.tokens"


@dataclass
class Tokens:
    access_token: str
    refresh_token: str

    def to_dict(self) -> Dict[str, str]:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "Tokens":
        return cls(access_token=data["accessToken"], refresh_token=data["refreshToken"])


class TokenStorage(ABC):
    """Port for persisting the current token pair."""

    @abstractmethod
    def get(self) -> Optional[Tokens]:
        """Return the stored pair, or None when signed out."""
        pass

    @abstractmethod
    def set(self, tokens: Tokens) -> None:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryTokenStorage(TokenStorage):
    def __init__(self, tokens: Optional[Tokens] = None):
        self._tokens = tokens

    def get(self) -> Optional[Tokens]:
        return self._tokens

    def set(self, tokens: Tokens) -> None:
        self._tokens = tokens

    def clear(self) -> None:
        self._tokens = None


class FileTokenStorage(TokenStorage):
    """
    Key-value JSON file; the pair lives under TOKENS_KEY.

    Other keys in the file are left untouched.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read(self) -> Dict:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable token file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: Dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp, self.path)

    def get(self) -> Optional[Tokens]:
        raw = self._read().get(TOKENS_KEY)
        if not raw:
            return None
        try:
            return Tokens.from_dict(raw)
        except (KeyError, TypeError):
            return None

    def set(self, tokens: Tokens) -> None:
        data = self._read()
        data[TOKENS_KEY] = tokens.to_dict()
        self._write(data)

    def clear(self) -> None:
        data = self._read()
        if TOKENS_KEY in data:
            del data[TOKENS_KEY]
            self._write(data)
