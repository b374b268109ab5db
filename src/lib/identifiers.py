"""
Card instance id allocation

Every card on a page namespaces its DOM ids with an instance id, so two
cards rendered in the same pass must never share one. An IdAllocator is
created per render pass and remembers what it has issued.

Schemes:
    counter - prefix + zero-padded base36 occurrence counter (default)
    hash    - prefix + sha1(username, occurrence index), stable across builds
              of an unchanged document
    random  - prefix + token drawn from `secrets`

All schemes re-draw on collision, so uniqueness holds within one allocator
regardless of scheme.
"""

import hashlib
import secrets
import string
from typing import Set

from .log import LOG

ALPHABET = string.digits + string.ascii_lowercase

SCHEMES = ('counter', 'hash', 'random')


class IdAllocationError(RuntimeError):
    """Raised when an allocator cannot produce a fresh id"""
    pass


def base36_encode(value: int, width: int) -> str:
    """Encode a non-negative int in base36, left-padded with zeros"""
    if value < 0:
        raise ValueError("base36_encode expects a non-negative value")
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(ALPHABET[remainder])
    return ''.join(reversed(digits)).rjust(width, '0')


class IdAllocator:
    """
    Hands out unique card instance ids for one render pass

    Args:
        prefix: Literal tag placed before the token (e.g., "BC")
        scheme: One of SCHEMES
        width: Token length in characters
    """

    MAX_ATTEMPTS = 64

    def __init__(self, prefix: str = "BC", scheme: str = "counter", width: int = 6) -> None:
        if scheme not in SCHEMES:
            raise ValueError(f"Unknown id scheme '{scheme}' (expected one of {', '.join(SCHEMES)})")
        if not prefix or not prefix.isalnum():
            raise ValueError(f"Id prefix must be non-empty and alphanumeric, got '{prefix}'")
        self.prefix = prefix
        self.scheme = scheme
        self.width = width
        self.occurrences = 0
        self.issued: Set[str] = set()

    def id_next(self, username: str = "") -> str:
        """
        Allocate the next instance id

        Args:
            username: Directive `user` value; only the hash scheme reads it

        Returns:
            Fresh id, never returned before by this allocator
        """
        index = self.occurrences
        self.occurrences += 1

        for attempt in range(self.MAX_ATTEMPTS):
            candidate = self.prefix + self.token_make(username, index, attempt)
            if candidate not in self.issued:
                self.issued.add(candidate)
                LOG(f"Allocated card id {candidate} (scheme={self.scheme}, occurrence={index})", level=3)
                return candidate
            LOG(f"Card id collision on {candidate}, redrawing", level=2)

        raise IdAllocationError(
            f"Could not allocate a unique id after {self.MAX_ATTEMPTS} attempts "
            f"(scheme={self.scheme}, width={self.width})"
        )

    def token_make(self, username: str, index: int, attempt: int) -> str:
        if self.scheme == 'counter':
            return base36_encode(index + attempt, self.width)
        if self.scheme == 'hash':
            material = f"{username}\x00{index}"
            if attempt:
                material += f"\x00{attempt}"
            return hashlib.sha1(material.encode('utf-8')).hexdigest()[:self.width]
        return ''.join(secrets.choice(ALPHABET) for _ in range(self.width))

    def reset(self) -> None:
        """Forget issued ids, starting a new render pass"""
        self.occurrences = 0
        self.issued.clear()
