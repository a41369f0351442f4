"""One-hot encoding of categorical symbols against a fixed mapping."""

from typing import Any, Dict, List, Sequence

CategoricalMapping = Dict[str, int]


def build_mapping(domain: Sequence[str]) -> CategoricalMapping:
    """Assigns zero-based slots to a fixed categorical domain, in domain order."""
    if len(set(domain)) != len(domain):
        raise ValueError(f"Categorical domain has duplicate symbols: {list(domain)}")
    return {symbol: index for index, symbol in enumerate(domain)}


def one_hot_encode(symbol: Any, mapping: CategoricalMapping) -> List[int]:
    """
    Returns the indicator vector of a symbol.

    The vector has len(mapping) slots with a single 1 at the mapped index.
    Symbols outside the mapping encode to all zeros rather than raising.

    Example:
        >>> one_hot_encode("I", {"M": 0, "F": 1, "I": 2})
        [0, 0, 1]
        >>> one_hot_encode("X", {"M": 0, "F": 1, "I": 2})
        [0, 0, 0]
    """
    vector = [0] * len(mapping)
    index = mapping.get(symbol)
    if index is not None:
        vector[index] = 1
    return vector
