"""Canonical form for free-text product spec keys.

Spec keys are free text, so the same facet shows up as "VRAM", "Vram" and
"vram". Every place that reads a spec key from product data or admin input
goes through ``normalize_spec_key`` so case variants collapse to one identity.
Runs of separators (``_ - / \\``) become word breaks, so "v_ram", "V-RAM" and
"v/ram" share the key "V_Ram", which stays distinct from "Vram".
"""

import re
from typing import Iterable, List

_SEPARATORS = re.compile(r"[_\-/\\]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_spec_key(key: str) -> str:
    """Return the canonical facet key, e.g. ``"VRAM Size"`` -> ``"Vram_Size"``.

    Empty or falsy input yields ``""``; callers drop those before using the
    result as a key.
    """
    if not key:
        return ""
    text = _WHITESPACE.sub(" ", _SEPARATORS.sub(" ", key).strip())
    return "_".join(word[:1].upper() + word[1:].lower() for word in text.split(" "))


def normalize_spec_keys(keys: Iterable[str]) -> List[str]:
    """Normalize, drop empties and de-duplicate while keeping first-seen order."""
    seen = set()
    result = []
    for key in keys:
        normalized = normalize_spec_key(key)
        if normalized and normalized not in seen:
            seen.add(normalized)
            result.append(normalized)
    return result
