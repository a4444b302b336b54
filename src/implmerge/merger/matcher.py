"""
Method Matcher.

Pairs every interface method with the class methods that override it. Pure
computation over the parsed method sets; nothing is mutated.
"""

from collections import defaultdict
from typing import Iterable

from implmerge.languages.java.model import MethodDecl

# Methods every type inherits from java.lang.Object. Never copied, matched or reported.
SKIP_METHODS = frozenset(
    {
        "registerNatives",
        "Object",
        "getClass",
        "hashCode",
        "equals",
        "clone",
        "toString",
        "notify",
        "notifyAll",
        "wait",
        "finalize",
    }
)


def overrides(class_method: MethodDecl, interface_method: MethodDecl) -> bool:
    """True if ``class_method`` implements ``interface_method``."""
    if class_method.override_key != interface_method.override_key:
        return False
    if class_method.is_static != interface_method.is_static:
        return False
    return not class_method.is_private or interface_method.is_private


def match(
    interface_methods: Iterable[MethodDecl],
    class_methods: Iterable[MethodDecl],
) -> dict[MethodDecl, list[MethodDecl]]:
    """
    Group class methods by the interface method they override.

    Args:
        interface_methods: All methods of the interface, inherited ones included
        class_methods: All methods of the class, inherited ones included

    Returns:
        Mapping from each non-skipped interface method (in the given order) to
        its implementations. An empty list means the method must be copied;
        more than one entry is an ambiguity.
    """
    candidates: dict[tuple, list[MethodDecl]] = defaultdict(list)
    for method in class_methods:
        if method.name not in SKIP_METHODS:
            candidates[method.override_key].append(method)

    matches: dict[MethodDecl, list[MethodDecl]] = {}
    for interface_method in interface_methods:
        if interface_method.name in SKIP_METHODS or interface_method in matches:
            continue
        matches[interface_method] = [
            m for m in candidates.get(interface_method.override_key, []) if overrides(m, interface_method)
        ]
    return matches
