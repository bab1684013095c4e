##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other Merlin
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to Merlin.
##############################################################################

"""Order-preserving set operations used when mutating backup sets."""

from typing import Iterable, List


def union(existing: Iterable[str], incoming: Iterable[str]) -> List[str]:
    """
    Merge two collections of names.

    The result starts with `existing` in its original order, followed by every name of
    `incoming` that isn't already present, in input order. No name appears twice.

    Args:
        existing: The current members.
        incoming: The members to add.

    Returns:
        A new list holding the merged members.
    """
    merged: List[str] = []
    seen = set()
    for name in list(existing) + list(incoming):
        if name not in seen:
            seen.add(name)
            merged.append(name)
    return merged


def difference(existing: Iterable[str], to_remove: Iterable[str]) -> List[str]:
    """
    Remove names from a collection.

    Args:
        existing: The current members.
        to_remove: The members to drop.

    Returns:
        A new list holding the members of `existing` not in `to_remove`, in their original order.
    """
    removed = set(to_remove)
    return [name for name in existing if name not in removed]
