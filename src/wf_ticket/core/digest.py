"""
Deterministic 8-digit token derivation.

Tokens are derived from an item's stable identity with a 32-bit FNV-1a hash,
reduced modulo 100,000,000 and zero-padded to eight digits. A non-zero salt is
appended as ``identity:salt`` so successive salts give fresh candidates for
collision probing, while salt 0 reproduces the original single-argument form.

Example usage:

    from wf_ticket.core.digest import digest

    digest("1209876543210")      # "69237487"
    digest("1209876543210", 1)   # "99434074"
"""

#: FNV-1a 32-bit offset basis
FNV_OFFSET_BASIS: int = 0x811C9DC5

#: FNV-1a 32-bit prime (16777619)
FNV_PRIME: int = 0x01000193

#: Number of distinct tokens (00000000..99999999)
TOKEN_SPACE: int = 100_000_000

#: Width of a rendered token
TOKEN_WIDTH: int = 8

_MASK_32 = 0xFFFFFFFF


def fnv1a_32(data: bytes) -> int:
    """Compute the 32-bit FNV-1a hash of ``data``."""
    h = FNV_OFFSET_BASIS
    for byte in data:
        h ^= byte
        h = (h * FNV_PRIME) & _MASK_32
    return h


def salted_input(identity: str, salt: int = 0) -> str:
    """Build the hash input for ``identity`` and ``salt``.

    Salt 0 leaves the identity untouched.
    """
    if salt < 0:
        raise ValueError(f"salt must be non-negative, got {salt}")
    identity = str(identity)
    return f"{identity}:{salt}" if salt else identity


def digest(identity: str, salt: int = 0) -> str:
    """Derive the 8-digit token for ``identity`` at ``salt``.

    Args:
        identity: Stable item identity (e.g. an Asana task gid).
        salt: Probe counter, 0 for the first candidate.

    Returns:
        Zero-padded 8-character decimal string.

    Raises:
        ValueError: If ``salt`` is negative.
    """
    value = fnv1a_32(salted_input(identity, salt).encode("utf-8")) % TOKEN_SPACE
    return str(value).zfill(TOKEN_WIDTH)
