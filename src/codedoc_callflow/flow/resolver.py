"""
Tiered name resolution for raw call expressions.

A call expression is resolved against the MetadataIndex using a fixed
tier order; the first tier that succeeds wins:

1. direct lookup of the expression with its argument list removed
   (dotted chains are then tried through ChainResolver)
2. Outer.method where Outer is an indexed type's simple name
3. bare name on the caller's own type (and its parents)
4. framework heuristic: a terminal leaf for infrastructure calls
5. first indexed method anywhere with the same simple name

Calls on logging receivers are dropped before any tier runs.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, TYPE_CHECKING

from ..core.models import MethodRecord
from .chain import CallContext, ChainResolver
from .expressions import (
    contains_words, identifier_words, normalize_call, simple_name, split_segments, strip_params,
)

if TYPE_CHECKING:
    from .index import MetadataIndex

logger = logging.getLogger(__name__)

FRAMEWORK_PREFIX = "Framework method: "

DEFAULT_FRAMEWORK_MARKERS = (
    "Repository", "Optional", "List", "Map", "Set", "Stream",
    "Collection", "EntityManager", "JdbcTemplate",
)

DEFAULT_LOGGER_RECEIVERS = ("log", "logger", "LOG", "LOGGER", "System.out", "System.err")


class ResolutionKind(str, Enum):
    """Outcome of resolving one call expression."""
    METHOD = "method"          # matched an indexed method; traverse into it
    FRAMEWORK = "framework"    # synthetic terminal leaf
    IGNORED = "ignored"        # logging call, no node
    UNRESOLVED = "unresolved"  # nothing matched


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    method: Optional[MethodRecord] = None
    label: Optional[str] = None
    tier: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.kind in (ResolutionKind.METHOD, ResolutionKind.FRAMEWORK)

    @property
    def terminal(self) -> bool:
        return self.kind is not ResolutionKind.METHOD

    @classmethod
    def found(cls, method: MethodRecord, tier: str) -> 'Resolution':
        return cls(ResolutionKind.METHOD, method=method, label=method.display_signature(), tier=tier)

    @classmethod
    def framework(cls, category: str, method_name: str) -> 'Resolution':
        return cls(
            ResolutionKind.FRAMEWORK,
            label=f"{FRAMEWORK_PREFIX}{category}.{method_name}()",
            tier="framework",
        )


IGNORED = Resolution(ResolutionKind.IGNORED, tier="noop")
UNRESOLVED = Resolution(ResolutionKind.UNRESOLVED)


class NameResolver:
    """
    Resolves raw call expressions from a calling method's context.

    Resolution is a pure function of the index, the expression and the
    context, so one resolver can be shared by concurrent traversals.
    """

    def __init__(
        self,
        index: 'MetadataIndex',
        framework_markers: Sequence[str] = DEFAULT_FRAMEWORK_MARKERS,
        logger_receivers: Sequence[str] = DEFAULT_LOGGER_RECEIVERS
    ):
        self.index = index
        self.framework_markers = list(framework_markers)
        self.logger_receivers = list(logger_receivers)
        self.chain_resolver = ChainResolver(index)

    def is_noop(self, raw_call: str) -> bool:
        """True for calls on a logging receiver such as log.info(...)."""
        call = normalize_call(raw_call)
        for receiver in self.logger_receivers:
            if call.startswith(receiver + "."):
                return True
        return False

    def resolve(self, raw_call: str, context: CallContext) -> Resolution:
        call = normalize_call(raw_call)
        if not call:
            return UNRESOLVED
        if self.is_noop(call):
            return IGNORED

        segments = split_segments(call)
        if not segments:
            return UNRESOLVED

        # Tier 1: already-qualified signature
        base = strip_params(call)
        method = self.index.get_method(base) if base else None
        if method is not None:
            return Resolution.found(method, "direct")

        if len(segments) >= 2:
            method = self.chain_resolver.resolve(segments, context)
            if method is not None:
                return Resolution.found(method, "chain")

        method = self._match_class_and_name(segments)
        if method is not None:
            return Resolution.found(method, "class_name")

        if len(segments) == 1:
            method = self.index.lookup_member(context.caller_type_fqn, segments[0])
            if method is not None:
                return Resolution.found(method, "bare_name")

        framework = self._match_framework(segments, context)
        if framework is not None:
            logger.debug(f"'{raw_call}' treated as {framework.label}")
            return framework

        # Last resort: any method with the same simple name
        method = self._match_name_anywhere(segments[-1])
        if method is not None:
            return Resolution.found(method, "name_anywhere")

        return UNRESOLVED

    def _match_class_and_name(self, segments: List[str]) -> Optional[MethodRecord]:
        """Outer.method where Outer is the simple name of an indexed type."""
        if len(segments) < 2:
            return None
        outer, method_name = segments[-2], segments[-1]
        if self.index.find_type_by_simple_name(outer) is None:
            return None
        for method in self.index.iter_methods():
            if method.class_name == outer and method.name == method_name:
                return method
        return None

    def _match_name_anywhere(self, method_name: str) -> Optional[MethodRecord]:
        for method in self.index.iter_methods():
            if method.name == method_name:
                return method
        return None

    def _match_framework(self, segments: List[str], context: CallContext) -> Optional[Resolution]:
        """
        Terminal leaf for calls into persistence and container idioms.

        The category comes from the static type the last call is made on
        (repo.findById().orElse() is an Optional call, not a Repository one).
        Without a categorized type, the qualifier's own words are checked
        from the innermost segment outwards.
        """
        if len(segments) < 2:
            return None
        method_name = segments[-1]

        trail = self.chain_resolver.type_trail(segments, context)
        if trail:
            category = self._category_of_type(trail[-1])
            if category:
                return Resolution.framework(category, method_name)

        for segment in reversed(segments[:-1]):
            category = self._marker_in(segment)
            if category:
                return Resolution.framework(category, method_name)

        return None

    def _category_of_type(self, type_name: str) -> Optional[str]:
        category = self._marker_in(simple_name(type_name))
        if category:
            return category
        type_record = self.index.get_type(type_name)
        if type_record is not None and (type_record.kind or "").lower() == "repository":
            return "Repository"
        return None

    def _marker_in(self, text: str) -> Optional[str]:
        """First marker whose words appear whole in `text` ("userSettings" is not a Set)."""
        words = identifier_words(text)
        for marker in self.framework_markers:
            if contains_words(words, marker):
                return marker
        return None
