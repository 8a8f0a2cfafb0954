"""Local cache for the admin PIN between console sessions."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol


DEFAULT_CREDENTIAL_PATH = Path("~/.config/portfolio/admin_pin")


class CredentialStore(Protocol):
    """Where the console keeps a PIN that already passed verification."""

    def load(self) -> str | None:
        ...

    def save(self, pin: str) -> None:
        ...

    def clear(self) -> None:
        ...


class MemoryCredentialStore:
    """Keeps the PIN for the lifetime of the process only."""

    def __init__(self, pin: str | None = None) -> None:
        self._pin = pin

    def load(self) -> str | None:
        return self._pin

    def save(self, pin: str) -> None:
        self._pin = pin

    def clear(self) -> None:
        self._pin = None


class FileCredentialStore:
    """Stores the PIN in a user-only readable file."""

    def __init__(self, path: Path = DEFAULT_CREDENTIAL_PATH) -> None:
        self.path = path.expanduser()

    def load(self) -> str | None:
        try:
            pin = self.path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        return pin or None

    def save(self, pin: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        descriptor = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(descriptor, "w", encoding="utf-8") as handle:
            handle.write(pin)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
