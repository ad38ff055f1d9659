"""
Kind -> collection resource name.

The heuristic is deliberately cheap and wrong for some irregular
plurals; the correction table patches the ones that matter.
"""

from typing import Mapping, Optional

# Applied after either naming path
CORRECTIONS = {
    "podsecuritypolicys": "podsecuritypolicies",
    "endpointses": "endpoints",
}

SUFFIX_CORRECTIONS = (
    ("policys", "policies"),
)


def pluralize(kind: str) -> str:
    ret = kind.lower()
    if ret.endswith("s"):
        return f"{ret}es"
    if ret.endswith("policy"):
        return f"{ret[:-1]}ies"
    return f"{ret}s"


def correct(resource: str) -> str:
    if resource in CORRECTIONS:
        return CORRECTIONS[resource]
    for wrong, right in SUFFIX_CORRECTIONS:
        if resource.endswith(wrong):
            return resource[: -len(wrong)] + right
    return resource


def resource_name(kind: str, kinds: Optional[Mapping[str, str]] = None) -> str:
    """
    Explicit kind table first (when one is supplied and knows the kind),
    the pluralizer otherwise.
    """
    if kinds and kind in kinds:
        resource = kinds[kind].lower()
    else:
        resource = pluralize(kind)
    return correct(resource)
