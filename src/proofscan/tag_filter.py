# ───────────────────────── src/proofscan/tag_filter.py ─────────────────────────
"""
Tag-based selection of active proof terms.
"""

from typing import Iterable, List, Sequence

from .dictionary import ProofTerm


def select_active(
    all_terms: Sequence[ProofTerm],
    whitelist_tags: Iterable[str] = (),
    blacklist_tags: Iterable[str] = (),
) -> List[ProofTerm]:
    """Select the terms enabled by the whitelist/blacklist policy.

    Policy, per term:
        - whitelist non-empty: active iff it shares a tag with the whitelist
          (untagged terms are excluded)
        - otherwise blacklist non-empty: active iff it shares no tag with the
          blacklist (untagged terms are included)
        - otherwise every term is active

    The whitelist wins when both lists are set.

    Args:
        all_terms: Terms in dictionary order.
        whitelist_tags: Tags to keep.
        blacklist_tags: Tags to drop.

    Returns:
        Active terms, in dictionary order.

    Examples:
        >>> a = ProofTerm("A", ("a",), tags=("a", "b"))
        >>> b = ProofTerm("B", ("b",), tags=("b",))
        >>> [t.expected for t in select_active([a, b], ["a"], ["a"])]
        ['A']
    """
    whitelist = set(whitelist_tags)
    blacklist = set(blacklist_tags)

    if whitelist:
        return [term for term in all_terms if whitelist.intersection(term.tags)]
    if blacklist:
        return [term for term in all_terms if not blacklist.intersection(term.tags)]
    return list(all_terms)
