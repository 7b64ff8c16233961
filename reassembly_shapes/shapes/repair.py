"""Line-level fixes applied to shapes text before grammar parsing."""

from __future__ import annotations

import re

# Adjacent tables on consecutive lines with the separating comma missing.
_MISSING_COMMA = (
    ("}\n{", "},\n{"),
    ("}\n\t{", "},\n\t{"),
)

_RADIAL_ASSIGN_RE = re.compile(r"\blauncher_radial[ \t]*=[ \t]*")
_RADIAL_BARE_RE = re.compile(r"\blauncher_radial\b(?![ \t]*=)")


def repair(text: str) -> str:
    """Normalize the malformations hand-edited shapes files commonly contain.

    The result is not guaranteed to be valid grammar; it only removes the
    known breakages. Applying it twice gives the same text as applying it once.
    """
    for broken, fixed in _MISSING_COMMA:
        text = text.replace(broken, fixed)
    text = _RADIAL_ASSIGN_RE.sub("launcher_radial = ", text)
    text = _RADIAL_BARE_RE.sub("launcher_radial = true", text)
    return text
