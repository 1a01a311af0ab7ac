"""
Usage-credential capability.

Video generation is gated on a credential being selected. The gate is an
injected interface so sessions can be driven by a fake in tests and by an
interactive dialog in the desktop shell.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

CredentialPrompt = Callable[[], Awaitable[Optional[str]]]


class CredentialProvider(ABC):
    """Capability check for the service credential."""

    @abstractmethod
    async def has_credential(self) -> bool:
        """Whether a usage credential is already selected."""

    @abstractmethod
    async def request_credential(self) -> bool:
        """Open the selection step. Callers treat the return optimistically."""

    @abstractmethod
    def get_credential(self) -> Optional[str]:
        """Current credential, or None."""

    @abstractmethod
    def invalidate(self) -> None:
        """Forget the current credential (the service rejected it)."""


class SessionCredentialStore(CredentialProvider):
    """
    In-memory credential store for the running application.

    Seeded from settings (the API_KEY environment variable) and refreshed via
    an injected prompt. Nothing is written to disk.
    """

    def __init__(self, initial: Optional[str] = None, prompt: Optional[CredentialPrompt] = None):
        self._credential = (initial or "").strip() or None
        self._prompt = prompt

    def set_prompt(self, prompt: Optional[CredentialPrompt]) -> None:
        self._prompt = prompt

    async def has_credential(self) -> bool:
        return self._credential is not None

    async def request_credential(self) -> bool:
        if self._prompt is None:
            logger.warning("No credential prompt configured; keeping current credential")
            return self._credential is not None

        value = await self._prompt()
        value = (value or "").strip()
        if value:
            self._credential = value
            logger.info("Service credential selected")
            return True

        logger.info("Credential selection dismissed")
        return False

    def get_credential(self) -> Optional[str]:
        return self._credential

    def invalidate(self) -> None:
        if self._credential is not None:
            logger.warning("Service credential invalidated")
        self._credential = None
