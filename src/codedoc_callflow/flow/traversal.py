"""
Depth-first traversal from one entry point.

A FlowTraversal owns the visited set for a single root. A method already
visited anywhere under that root is never listed or expanded again, which
both stops cycles and collapses diamonds to their first occurrence.

The walk uses an explicit stack rather than recursion so deep call chains
do not hit the interpreter's recursion limit; node order is the same
pre-order a recursive walk would produce.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Set, Tuple, TYPE_CHECKING

from ..core.models import MethodRecord
from .chain import CallContext
from .expressions import split_member, strip_params
from .resolver import NameResolver, ResolutionKind

if TYPE_CHECKING:
    from .index import MetadataIndex

logger = logging.getLogger(__name__)

EDGE_MARKER = " -> "
ENTRY_POINT_SUFFIX = " (Entry Point)"
UNRESOLVED_PREFIX = "UNRESOLVED: "
NULL_BASE_PREFIX = "ERROR: Null base FQN for "

_EXHAUSTED = object()


@dataclass
class FlowStep:
    """
    One node of a flow.

    Attributes:
        target: Display signature, framework leaf or marker text
        caller: Display signature of the method whose call produced this
                node; None for the entry node and root-level markers
        terminal: True when the node is not expanded (leaf or marker)
    """
    target: str
    caller: Optional[str] = None
    terminal: bool = False

    def render(self) -> str:
        if self.caller is None:
            return self.target
        return f"{EDGE_MARKER}{self.target}"

    def to_dict(self) -> Dict[str, Any]:
        return {'target': self.target, 'caller': self.caller, 'terminal': self.terminal}


@dataclass
class FlowTrace:
    """
    The flow of one entry point plus who called what.

    `flow` is the externally visible artifact; `suppressed` lists calls to
    methods that were already visited and so left out of the flow.
    """
    entry: str
    steps: List[FlowStep] = field(default_factory=list)
    suppressed: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def flow(self) -> List[str]:
        return [step.render() for step in self.steps]

    def edges(self) -> List[Tuple[str, str]]:
        """(caller, target) pairs in flow order."""
        return [(step.caller, step.target) for step in self.steps if step.caller is not None]

    def __len__(self) -> int:
        return len(self.steps)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entry': self.entry,
            'flow': self.flow,
            'steps': [step.to_dict() for step in self.steps],
            'suppressed': [list(edge) for edge in self.suppressed],
        }


class FlowTraversal:
    """
    Walks the resolved call graph below one root.

    Usage:
        traversal = FlowTraversal(index, resolver)
        traversal.walk("com.acme.UserController.get")
        flow = traversal.flow
    """

    def __init__(
        self,
        index: 'MetadataIndex',
        resolver: NameResolver,
        entry: str = "",
        on_unresolved: Optional[Callable[[str, str], None]] = None
    ):
        self.index = index
        self.resolver = resolver
        self.visited: Set[str] = set()
        self.trace = FlowTrace(entry=entry)
        self._on_unresolved = on_unresolved or _log_unresolved

    @property
    def flow(self) -> List[str]:
        return self.trace.flow

    def walk(self, key: Optional[str]) -> None:
        """
        Visit the method named by `key` (a base FQN, with or without a
        parameter list) and everything reachable from it.
        """
        steps = self.trace.steps
        base = strip_params(key)
        if base is None:
            logger.warning(f"Null base FQN for lookup key '{key}'")
            steps.append(FlowStep(f"{NULL_BASE_PREFIX}{key}", terminal=True))
            return

        if base in self.visited:
            logger.debug(f"Already visited {base}, skipping")
            return
        self.visited.add(base)

        method = self._lookup(base)
        if method is None:
            marker = f"{key}{ENTRY_POINT_SUFFIX}" if not steps else f"{UNRESOLVED_PREFIX}{key}"
            logger.debug(f"No method record for {key}; adding '{marker}'")
            steps.append(FlowStep(marker, terminal=True))
            return
        self.visited.add(method.base_fqn)

        if not steps:
            steps.append(FlowStep(method.display_signature()))

        stack: List[Tuple[MethodRecord, Iterator[str], CallContext]] = [self._frame(method)]
        while stack:
            current, calls, context = stack[-1]
            raw_call = next(calls, _EXHAUSTED)
            if raw_call is _EXHAUSTED:
                stack.pop()
                continue

            resolution = self.resolver.resolve(raw_call, context)
            if resolution.kind is ResolutionKind.IGNORED:
                continue

            caller = current.display_signature()
            if resolution.kind is ResolutionKind.UNRESOLVED:
                self._on_unresolved(raw_call, caller)
                continue

            if resolution.kind is ResolutionKind.FRAMEWORK:
                steps.append(FlowStep(resolution.label, caller=caller, terminal=True))
                continue

            target = resolution.method
            target_base = target.base_fqn
            if target_base in self.visited:
                self.trace.suppressed.append((caller, target.display_signature()))
                continue

            self.visited.add(target_base)
            logger.debug(f"{caller} -> {target.display_signature()} (tier: {resolution.tier})")
            steps.append(FlowStep(target.display_signature(), caller=caller))
            stack.append(self._frame(target))

    def _frame(self, method: MethodRecord) -> Tuple[MethodRecord, Iterator[str], CallContext]:
        return method, iter(method.called_methods or []), CallContext.for_method(method, self.index)

    def _lookup(self, base: str) -> Optional[MethodRecord]:
        """
        Record for a traversal key: exact base FQN, then a declaring-type +
        name scan, then the first method with the same name anywhere.
        """
        method = self.index.get_method(base)
        if method is not None:
            return method

        owner, name = split_member(base)
        if owner:
            owner_simple = owner.rsplit('.', 1)[-1]
            for candidate in self.index.iter_methods():
                if candidate.name == name and (
                    candidate.type_fqn == owner or candidate.class_name == owner_simple
                ):
                    logger.debug(f"Found {base} by declaring type and name")
                    return candidate

        for candidate in self.index.iter_methods():
            if candidate.name == name:
                logger.debug(f"Found {base} by method name only: {candidate.base_fqn}")
                return candidate

        return None


def _log_unresolved(raw_call: str, caller: str) -> None:
    logger.debug(f"Could not resolve '{raw_call}' called from {caller}")
