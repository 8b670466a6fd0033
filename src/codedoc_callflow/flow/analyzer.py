"""
Entry-point call flow analysis.

Builds the MetadataIndex once per run, selects controller/SOAP roots and
walks each root with its own FlowTraversal. Roots are independent, so they
can run on a thread pool; results are always merged in root order by the
calling thread, which keeps the output identical to a sequential run.
"""

import logging
import threading
import concurrent.futures
from typing import Dict, Iterable, List, Optional, Set

from ..config.analysis import AnalysisConfig
from ..core.models import TypeRecord
from .entry_points import EntryPoint, EntryPointSelector
from .index import MetadataIndex
from .resolver import NameResolver
from .traversal import FlowTrace, FlowTraversal

logger = logging.getLogger(__name__)


class CallFlowAnalyzer:
    """
    Computes one call flow per application entry point.

    Usage:
        analyzer = CallFlowAnalyzer()
        flows = analyzer.compute_entry_point_flows(types)
        # {"com.acme.UserController.get(Long)": ["com.acme.UserController.get(Long)",
        #                                         " -> com.acme.UserService.find(Long)", ...]}
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or AnalysisConfig()
        self.selector = EntryPointSelector(self.config.entry_point_kinds)

        # Unresolved call expressions already reported at WARNING level
        self._warned: Set[str] = set()
        self._warned_lock = threading.Lock()

    def build_index(self, types: Optional[Iterable[TypeRecord]]) -> MetadataIndex:
        return MetadataIndex.build(types)

    def create_resolver(self, index: MetadataIndex) -> NameResolver:
        return NameResolver(
            index,
            framework_markers=self.config.framework_markers,
            logger_receivers=self.config.logger_receivers,
        )

    def get_call_flow(self, entry_key: str, types: Optional[List[TypeRecord]]) -> List[str]:
        """Flow for a single entry key, e.g. "com.acme.UserController.get"."""
        index = self.build_index(types)
        traversal = FlowTraversal(
            index, self.create_resolver(index), entry=entry_key,
            on_unresolved=self._report_unresolved
        )
        traversal.walk(entry_key)
        return traversal.flow

    def compute_entry_point_flows(self, types: Optional[List[TypeRecord]]) -> Dict[str, List[str]]:
        """
        Map of entry display signature -> flow for every controller/SOAP method.

        A None or empty corpus gives an empty map.
        """
        return {
            entry: trace.flow
            for entry, trace in self.trace_entry_points(types).items()
        }

    def trace_entry_points(self, types: Optional[List[TypeRecord]]) -> Dict[str, FlowTrace]:
        """Like compute_entry_point_flows, keeping the caller of every step."""
        if types is None:
            logger.warning("Input type list is None. Cannot generate call flows.")
            return {}

        logger.info(f"Call flow analysis received {len(types)} types")
        index = self.build_index(types)
        resolver = self.create_resolver(index)
        roots = self.selector.roots(types)
        logger.info(f"Indexed {len(index.types)} types and {len(index.methods)} methods; {len(roots)} entry points")

        if self.config.max_workers > 1 and len(roots) > 1:
            traces = self._trace_parallel(index, resolver, roots)
        else:
            traces = {root.display_signature: self._trace_root(index, resolver, root) for root in roots}

        results: Dict[str, FlowTrace] = {}
        for root in roots:
            trace = traces.get(root.display_signature)
            if trace is None:
                continue
            if not trace.steps:
                logger.warning(f"Flow for entry point {root.display_signature} was empty")
                continue
            results[root.display_signature] = trace

        logger.info(f"Generated {len(results)} call flows from {len(roots)} entry points")
        return results

    def _trace_root(self, index: MetadataIndex, resolver: NameResolver, root: EntryPoint) -> FlowTrace:
        traversal = FlowTraversal(
            index, resolver, entry=root.display_signature,
            on_unresolved=self._report_unresolved
        )
        traversal.walk(root.base_fqn)
        logger.debug(f"Flow for {root.display_signature}: {len(traversal.trace)} steps")
        return traversal.trace

    def _trace_parallel(
        self,
        index: MetadataIndex,
        resolver: NameResolver,
        roots: List[EntryPoint]
    ) -> Dict[str, FlowTrace]:
        """Run roots on a thread pool; each traversal owns its visited set."""
        traces: Dict[str, FlowTrace] = {}
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=self.config.max_workers)
        try:
            futures = [
                (root, executor.submit(self._trace_root, index, resolver, root))
                for root in roots
            ]
            for root, future in futures:
                try:
                    traces[root.display_signature] = future.result(timeout=self.config.root_timeout)
                except concurrent.futures.TimeoutError:
                    logger.warning(
                        f"Call flow for {root.display_signature} did not finish within "
                        f"{self.config.root_timeout}s; omitting it"
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)
        return traces

    def _report_unresolved(self, raw_call: str, caller: str) -> None:
        """Warn once per distinct call expression, debug afterwards."""
        with self._warned_lock:
            first = raw_call not in self._warned
            self._warned.add(raw_call)
        if first:
            logger.warning(
                f"Call '{raw_call}' from {caller} could not be resolved. "
                f"It might be an external library method or a parsing gap."
            )
        else:
            logger.debug(f"Unresolved call '{raw_call}' from {caller}")

    @property
    def unresolved_calls(self) -> List[str]:
        """Distinct call expressions that failed to resolve, sorted."""
        with self._warned_lock:
            return sorted(self._warned)


def compute_entry_point_flows(
    types: Optional[List[TypeRecord]],
    config: Optional[AnalysisConfig] = None
) -> Dict[str, List[str]]:
    """Module-level shortcut for CallFlowAnalyzer(config).compute_entry_point_flows(types)."""
    return CallFlowAnalyzer(config).compute_entry_point_flows(types)
