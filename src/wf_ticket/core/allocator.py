"""
Token allocation for a single task against a collection snapshot.

The allocator never talks to the task service. It receives the snapshot,
builds an ownership index (token -> owning task gids) and either confirms
that the target already holds a uniquely owned canonical tag or picks the
first free candidate from a salted linear probe over ``digest``.

Example usage:

    from wf_ticket.core.allocator import allocate

    allocation = allocate("1209876543210", "Add feature #wf 12", snapshot)
    if allocation.changed:
        print(allocation.text)  # "Add feature #WF-69237487"
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Set, Tuple

from wf_ticket.core.digest import digest
from wf_ticket.core.models import Item
from wf_ticket.core.scanner import format_tag, match_canonical, strip_loose

logger = logging.getLogger(__name__)

#: Upper bound on salts tried before giving up (salts 0..MAX_SALT_ATTEMPTS-1)
MAX_SALT_ATTEMPTS: int = 10_000

OwnershipIndex = Dict[str, Set[str]]


class AllocationExhaustedError(Exception):
    """No free token was found within the probe bound.

    Indicates a pathological collection size or a defect in the digest
    distribution; never expected in practice.

    Attributes:
        identity: Gid of the task being tagged.
        attempts: Number of salts tried.
    """

    def __init__(self, message: str, identity: str, attempts: int):
        super().__init__(message)
        self.identity = identity
        self.attempts = attempts


@dataclass(frozen=True)
class Allocation:
    """Result of allocating a token for one task.

    Attributes:
        text: Final display text (unchanged on the fast path)
        token: 8-digit token the task ends up owning
        salt: Salt that produced ``token``; None when the existing tag was kept
        original_text: Display text before allocation
    """

    text: str
    token: str
    salt: Optional[int]
    original_text: str = ""

    @property
    def kept_existing(self) -> bool:
        """True when the task already owned a unique canonical tag."""
        return self.salt is None

    @property
    def changed(self) -> bool:
        return self.text != self.original_text

    @property
    def token_value(self) -> int:
        return int(self.token)


def build_ownership_index(items: Iterable[Item]) -> OwnershipIndex:
    """Map every canonical token in ``items`` to the gids that carry it."""
    index: OwnershipIndex = {}
    for item in items:
        token = match_canonical(item.name)
        if token is None:
            continue
        index.setdefault(token, set()).add(item.gid)
    return index


def is_free_for(index: OwnershipIndex, token: str, identity: str) -> bool:
    """True when ``token`` is unowned or owned only by ``identity``."""
    return index.get(token, set()) <= {identity}


def is_uniquely_owned(index: OwnershipIndex, token: str, identity: str) -> bool:
    """True when ``identity`` is the one and only owner of ``token``."""
    return index.get(token, set()) == {identity}


def probe_token(
    identity: str,
    index: OwnershipIndex,
    max_attempts: int = MAX_SALT_ATTEMPTS,
) -> Tuple[str, int]:
    """Find the first salt whose digest is free for ``identity``.

    Returns:
        ``(token, salt)``

    Raises:
        AllocationExhaustedError: If salts 0..max_attempts-1 are all taken.
    """
    for salt in range(max_attempts):
        candidate = digest(identity, salt)
        if is_free_for(index, candidate, identity):
            return candidate, salt
        logger.debug("Token %s taken for %s at salt %d", candidate, identity, salt)

    raise AllocationExhaustedError(
        f"No free token for {identity} after {max_attempts} attempts",
        identity=identity,
        attempts=max_attempts,
    )


def allocate(
    target_identity: str,
    target_text: Optional[str],
    snapshot: Iterable[Item],
    *,
    max_attempts: int = MAX_SALT_ATTEMPTS,
) -> Allocation:
    """Compute the final display text for the target task.

    Args:
        target_identity: Gid of the task being tagged
        target_text: Current display text (None treated as "")
        snapshot: Every task visible in the collection
        max_attempts: Probe bound, see MAX_SALT_ATTEMPTS

    Returns:
        Allocation describing the outcome

    Raises:
        AllocationExhaustedError: If the probe bound is reached.
    """
    original = target_text or ""
    index = build_ownership_index(snapshot)

    current = match_canonical(original)
    if current is not None and is_uniquely_owned(index, current, target_identity):
        return Allocation(
            text=original,
            token=current,
            salt=None,
            original_text=original,
        )

    base_text = strip_loose(original)
    token, salt = probe_token(target_identity, index, max_attempts)
    tag = format_tag(token)
    final_text = f"{base_text} {tag}" if base_text else tag

    return Allocation(
        text=final_text,
        token=token,
        salt=salt,
        original_text=original,
    )
