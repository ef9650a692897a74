"""
Pointer flattening for OpenAPI documents.

Produces a read-only copy of a document with internal '#/...' pointers replaced
by their targets, used where text has to be read without chasing pointers.
"""

import logging
from typing import Any, Dict, List, Tuple

logger = logging.getLogger(__name__)


class _Unresolvable(Exception):
    pass


def _resolve_pointer(document: Any, ref: str) -> Any:
    node = document
    for token in ref[2:].split('/') if len(ref) > 2 else []:
        token = token.replace('~1', '/').replace('~0', '~')
        if isinstance(node, dict) and token in node:
            node = node[token]
        elif isinstance(node, list) and token.isdigit() and int(token) < len(node):
            node = node[int(token)]
        else:
            raise _Unresolvable(ref)
    return node


class Dereferencer:
    """
    Inline internal pointers of one document.

    A pointer met again while its own target is being expanded is a cycle and
    is kept as '$ref'. Expansions that did not cut a cycle are cached and
    shared between the places that point to them, so the result must be
    treated as read-only.
    """

    def __init__(self, document: Dict[str, Any]):
        self.document = document
        self._cache: Dict[str, Any] = {}

    def dereference(self) -> Dict[str, Any]:
        result, _ = self._expand(self.document, [])
        return result

    def _expand(self, node: Any, stack: List[str]) -> Tuple[Any, bool]:
        """Return the expanded node and whether a cycle was cut inside it."""
        if isinstance(node, list):
            items = []
            cut = False
            for item in node:
                value, item_cut = self._expand(item, stack)
                items.append(value)
                cut = cut or item_cut
            return items, cut

        if not isinstance(node, dict):
            return node, False

        ref = node.get('$ref')
        if isinstance(ref, str) and ref.startswith('#'):
            return self._expand_ref(node, ref, stack)

        expanded = {}
        cut = False
        for key, value in node.items():
            expanded[key], value_cut = self._expand(value, stack)
            cut = cut or value_cut
        return expanded, cut

    def _expand_ref(self, node: Dict[str, Any], ref: str, stack: List[str]) -> Tuple[Any, bool]:
        if ref in stack:
            return dict(node), True

        if ref in self._cache:
            target, cut = self._cache[ref], False
        else:
            try:
                raw = _resolve_pointer(self.document, ref)
            except _Unresolvable:
                logger.debug(f"Leaving unresolvable pointer {ref}")
                return dict(node), False
            target, cut = self._expand(raw, stack + [ref])
            if not cut:
                self._cache[ref] = target

        siblings = {key: value for key, value in node.items() if key != '$ref'}
        if siblings and isinstance(target, dict):
            expanded_siblings, sibling_cut = self._expand(siblings, stack)
            return {**target, **expanded_siblings}, cut or sibling_cut
        return target, cut


def dereference(document: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of a document with internal pointers inlined.

    Args:
        document: OpenAPI document; it is not modified

    Returns:
        Flattened copy of the document
    """
    return Dereferencer(document).dereference()
