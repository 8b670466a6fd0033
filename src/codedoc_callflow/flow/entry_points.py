"""Entry-point selection: controller and SOAP methods become traversal roots."""

import logging
from typing import Iterable, List, NamedTuple, Optional, Sequence

from ..core.models import TypeRecord

logger = logging.getLogger(__name__)

DEFAULT_ENTRY_POINT_KINDS = ("controller", "soap")


class EntryPoint(NamedTuple):
    """A traversal root: (display signature, base FQN)."""
    display_signature: str
    base_fqn: str


class EntryPointSelector:
    """Enumerates the methods of entry-point types in corpus order."""

    def __init__(self, kinds: Sequence[str] = DEFAULT_ENTRY_POINT_KINDS):
        self.kinds = {kind.lower() for kind in kinds}

    def is_entry_type(self, type_record: TypeRecord) -> bool:
        return (type_record.kind or "").lower() in self.kinds

    def roots(self, types: Optional[Iterable[TypeRecord]]) -> List[EntryPoint]:
        """
        Every method of every entry-point type.

        Args:
            types: The parsed corpus; None or empty yields no roots

        Returns:
            EntryPoint tuples, e.g.
            ("com.acme.UserController.get(Long)", "com.acme.UserController.get")
        """
        roots: List[EntryPoint] = []
        if not types:
            return roots

        for type_record in types:
            if not self.is_entry_type(type_record):
                continue
            logger.debug(
                f"Entry point type {type_record.fqn} ({type_record.kind}) "
                f"with {len(type_record.methods or [])} methods"
            )
            for method in type_record.methods or []:
                base_fqn = f"{type_record.fqn}.{method.name}"
                param_types = ", ".join(p.type for p in method.parameters)
                roots.append(EntryPoint(f"{base_fqn}({param_types})", base_fqn))

        return roots
