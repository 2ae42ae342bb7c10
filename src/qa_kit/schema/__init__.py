from .keys import KeyNode, KeyTree, extract_keys

__all__ = [
    "KeyNode",
    "KeyTree",
    "extract_keys",
]
