"""
Chained call resolution: follow declared types through "recv.a().b()".

The receiver's static type comes from the calling method's parameters,
then its locals, then the declaring type's fields. Each following segment
is looked up on the current type, whose return type becomes the type for
the next segment.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, TYPE_CHECKING

from ..core.models import MethodRecord

if TYPE_CHECKING:
    from .index import MetadataIndex

logger = logging.getLogger(__name__)


@dataclass
class CallContext:
    """
    What the calling method can see: its declaring type, its parameters and
    locals, and the declaring type's fields (name -> declared type).
    """
    caller_type_fqn: str
    parameters: Dict[str, str] = field(default_factory=dict)
    local_variables: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_method(cls, method: MethodRecord, index: 'MetadataIndex') -> 'CallContext':
        type_fqn = method.type_fqn
        return cls(
            caller_type_fqn=type_fqn,
            parameters={p.name: p.type for p in method.parameters},
            local_variables={v.name: v.type for v in method.local_variables},
            fields=index.field_types(type_fqn),
        )

    def variable_type(self, name: str) -> Optional[str]:
        """Declared type of a visible name: parameters, then locals, then fields."""
        for scope in (self.parameters, self.local_variables, self.fields):
            if name in scope:
                return scope[name]
        return None


class ChainResolver:
    """Resolves dotted call chains against a MetadataIndex."""

    def __init__(self, index: 'MetadataIndex'):
        self.index = index

    def receiver_type(self, receiver: str, context: CallContext) -> Optional[str]:
        """Indexed FQN (or bare name) of the receiver's static type, if declared."""
        declared = context.variable_type(receiver)
        if not declared:
            return None
        return self.index.resolve_type_name(declared) or None

    def type_trail(self, segments: List[str], context: CallContext) -> List[str]:
        """
        Static types of the receiver and of each call before the last segment,
        stopping at the first one that cannot be typed.

        ["repo", "findById", "orElse"] with repo: UserRepo and
        findById returning Optional<User> -> ["com.acme.UserRepo", "Optional"]
        """
        trail: List[str] = []
        if len(segments) < 2:
            return trail

        current_type = self.receiver_type(segments[0], context)
        if not current_type:
            return trail
        trail.append(current_type)

        for segment in segments[1:-1]:
            method = self.index.lookup_member(current_type, segment)
            if method is None or not method.return_type:
                break
            current_type = self.index.resolve_type_name(method.return_type)
            trail.append(current_type)
        return trail

    def resolve(self, segments: List[str], context: CallContext) -> Optional[MethodRecord]:
        """
        Resolve ["recv", "m1", ..., "mN"] to the record for mN.

        Returns None when the receiver's type is unknown or any segment is
        missing from the index; callers fall back to name-based tiers.
        """
        if len(segments) < 2:
            return None

        current_type = self.receiver_type(segments[0], context)
        if not current_type:
            logger.debug(f"Chain: no declared type for receiver '{segments[0]}'")
            return None

        last = len(segments) - 1
        for position, segment in enumerate(segments[1:], start=1):
            method = self.index.lookup_member(current_type, segment)
            if method is None:
                logger.debug(f"Chain: {current_type}.{segment} not indexed")
                return None
            if position == last:
                return method
            if not method.return_type:
                return None
            current_type = self.index.resolve_type_name(method.return_type)

        return None
