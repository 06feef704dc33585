"""
Module with helpers for the '/'-separated paths used throughout httpdirfs.

Paths within a tree are always absolute and the root is "/". The same join logic is
used to append tree paths to a base address.
"""

from typing import Optional

SEPARATOR = "/"
ROOT = SEPARATOR


def normalize(path: str) -> str:
    """Ensure a leading separator, collapse repeated ones and strip a trailing one."""
    parts = [p for p in path.split(SEPARATOR) if p]
    return SEPARATOR + SEPARATOR.join(parts)


def join(base: str, *parts: str) -> str:
    """Join path segments with exactly one separator between each of them."""
    result = base

    for part in parts:
        if not part:
            continue

        if not result:
            result = part
        elif result.endswith(SEPARATOR):
            result = result + part.lstrip(SEPARATOR)
        else:
            result = result + SEPARATOR + part.lstrip(SEPARATOR)

    return result


def parent(path: str) -> Optional[str]:
    """Return the containing directory of a path, or None for the root."""
    path = normalize(path)

    if path == ROOT:
        return None

    head = path.rsplit(SEPARATOR, 1)[0]
    return head or ROOT


def basename(path: str) -> str:
    """Return the last segment of a path (empty for the root)."""
    return normalize(path).rsplit(SEPARATOR, 1)[-1]


def relative(path: str, root: str) -> str:
    """
    Return the path relative to root, without a leading separator.

    Raises ValueError if the path is not located within root.
    """
    path = normalize(path)
    root = normalize(root)

    if root == ROOT:
        return path[1:]
    elif path == root:
        return ""
    elif path.startswith(root + SEPARATOR):
        return path[len(root) + 1 :]
    else:
        raise ValueError(f"{path} is not within {root}")
