"""
String helpers for raw call expressions and declared type names.

Call expressions arrive as plain text from the parser: "com.acme.Repo.save(User)",
"this.repo.findById(id).orElse(null)" or "helper". These helpers reduce them
to the pieces the resolvers work with.
"""

import re
from typing import List, Optional, Sequence

_SELF_QUALIFIERS = ("this.", "super.")

_WORD = re.compile(r'[A-Z]?[a-z0-9]+|[A-Z]+(?![a-z])')


def strip_params(signature: Optional[str]) -> Optional[str]:
    """
    Drop everything from the first "(" on.

    "com.acme.Repo.save(User)" -> "com.acme.Repo.save". Returns None for a
    None or blank signature.
    """
    if signature is None:
        return None
    signature = signature.strip()
    paren = signature.find('(')
    if paren != -1:
        signature = signature[:paren]
    return signature.strip() or None


def normalize_call(raw: Optional[str]) -> str:
    """Trim whitespace and leading this./super. qualifiers."""
    call = (raw or "").strip()
    changed = True
    while changed:
        changed = False
        for qualifier in _SELF_QUALIFIERS:
            if call.startswith(qualifier):
                call = call[len(qualifier):].lstrip()
                changed = True
    return call


def split_segments(call: str) -> List[str]:
    """
    Split a call expression into its dotted names, ignoring argument lists
    and explicit type arguments.

    "repo.findById(id.get()).orElse(null)" -> ["repo", "findById", "orElse"]
    "Collections.<String>emptyList()"      -> ["Collections", "emptyList"]
    """
    segments: List[str] = []
    current: List[str] = []
    paren_depth = 0
    angle_depth = 0

    for ch in call:
        if ch == '(':
            paren_depth += 1
        elif ch == ')':
            paren_depth = max(0, paren_depth - 1)
        elif paren_depth:
            continue
        elif ch == '<':
            angle_depth += 1
        elif ch == '>':
            angle_depth = max(0, angle_depth - 1)
        elif angle_depth:
            continue
        elif ch == '.':
            segments.append(''.join(current).strip())
            current = []
        else:
            current.append(ch)

    segments.append(''.join(current).strip())
    return [s for s in segments if s]


def strip_generics(type_name: Optional[str]) -> str:
    """
    Reduce a declared type to its raw name.

    "Optional<User>" -> "Optional", "User[]" -> "User", "String..." -> "String",
    "final UserRepo" -> "UserRepo".
    """
    if not type_name:
        return ""
    name = type_name.strip()
    angle = name.find('<')
    if angle != -1:
        name = name[:angle]
    name = name.replace('[]', '').replace('...', '').strip()
    # Modifiers and annotations can leak into textual types
    if ' ' in name:
        name = name.split()[-1]
    return name


def simple_name(qualified: str) -> str:
    """Last dotted segment of a name."""
    return qualified.rsplit('.', 1)[-1]


def split_member(base_fqn: str) -> tuple:
    """Split "pkg.Type.method" into ("pkg.Type", "method")."""
    if '.' in base_fqn:
        owner, name = base_fqn.rsplit('.', 1)
        return owner, name
    return "", base_fqn


def identifier_words(text: Optional[str]) -> List[str]:
    """
    Lower-cased CamelCase/snake_case words of an identifier or dotted name.

    "orderRepository" -> ["order", "repository"], "JPAStore" -> ["jpa", "store"],
    "userSettings" -> ["user", "settings"].
    """
    return [word.lower() for word in _WORD.findall(text or "")]


def contains_words(words: Sequence[str], marker: str) -> bool:
    """True when the words of `marker` occur consecutively in `words`."""
    wanted = identifier_words(marker)
    if not wanted:
        return False
    span = len(wanted)
    return any(list(words[i:i + span]) == wanted for i in range(len(words) - span + 1))
