"""ID helpers.

Trackers, tests and topics use UUID v4 ids. The CLI accepts any unique
prefix of an id, the way git accepts short hashes.

Functions:
- resolve_id(prefix, candidates, kind) -> str: Resolve prefix to a unique id
- short_id(entity_id) -> str: Display form of an id
"""


class AmbiguousIdError(Exception):
    """Raised when an id prefix matches multiple entities."""

    def __init__(self, prefix: str, candidates: list[str], kind: str = "id"):
        self.prefix = prefix
        self.candidates = candidates
        self.kind = kind
        super().__init__(
            f"Prefix '{prefix}' is ambiguous. Candidate {kind}s:\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class IdNotFoundError(Exception):
    """Raised when no entity matches the given prefix."""

    def __init__(self, prefix: str, kind: str = "id"):
        self.prefix = prefix
        self.kind = kind
        super().__init__(f"No {kind} matches prefix '{prefix}'")


def resolve_id(prefix: str, candidates: list[str], kind: str = "id") -> str:
    """Resolve an id prefix to a unique full id.

    Args:
        prefix: Partial or full id (e.g., "3f2a" or a full UUID)
        candidates: All available ids
        kind: Entity name used in error messages

    Returns:
        The unique matching id

    Raises:
        IdNotFoundError: If no candidates match the prefix
        AmbiguousIdError: If multiple candidates match the prefix
    """
    prefix = prefix.strip().lower()

    # Exact match first
    if prefix in candidates:
        return prefix

    # Prefix match
    matches = [c for c in candidates if prefix and c.startswith(prefix)]

    if len(matches) == 0:
        raise IdNotFoundError(prefix, kind)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousIdError(prefix, matches, kind)


def short_id(entity_id: str, length: int = 8) -> str:
    """First characters of an id, for tables and messages."""
    return entity_id[:length]
