"""Chain resolver contract consumed by the login SDK."""

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import List, Mapping


class DidProcessorError(Exception):
    """Raised by a chain resolver when a signature or presentation does not verify."""


class DidProcessor(ABC):
    """
    Per-chain DID backend.

    One implementation per blockchain, registered under its chain identifier
    (the second segment of `did:<chain>:<id>`). Implementations may block on
    network or storage I/O and own their timeouts and retries; a failure is
    reported by raising.
    """

    @abstractmethod
    def verify_sig(self, did: str, index: int, msg: bytes, sig: bytes) -> None:
        """Verify sig over msg against key `index` of `did`."""

    @abstractmethod
    def verify_presentation(self, did: str, index: int, presentation: str, required_types: List[str]) -> None:
        """Verify a presentation was made by `did`/`index` and carries every required credential type."""

    @abstractmethod
    def get_credential_jsons(self, presentation: str) -> List[str]:
        """Extract the credential JSON documents embedded in a presentation."""


def freeze_registry(processors: Mapping[str, DidProcessor]) -> Mapping[str, DidProcessor]:
    """Copy processors into a read-only mapping keyed by chain identifier."""
    return MappingProxyType(dict(processors))
