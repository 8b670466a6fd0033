"""
Lookup tables over a parsed corpus.

Methods are keyed by their base FQN (declaring type FQN + simple name). The
parameter list is not part of the key, so overloads collapse: the last one
indexed wins.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ..core.models import MethodRecord, TypeRecord
from .expressions import simple_name, strip_generics

logger = logging.getLogger(__name__)


def build_maps(
    types: Optional[Iterable[TypeRecord]]
) -> Tuple[Dict[str, TypeRecord], Dict[str, MethodRecord]]:
    """
    Build the type-FQN and method-FQN tables for a corpus.

    Method records are copied with their declaring type filled in from the
    owning TypeRecord; the input records are left untouched.

    Returns:
        (type_by_fqn, method_by_fqn)
    """
    type_by_fqn: Dict[str, TypeRecord] = {}
    method_by_fqn: Dict[str, MethodRecord] = {}

    if not types:
        return type_by_fqn, method_by_fqn

    for type_record in types:
        type_fqn = type_record.fqn
        type_by_fqn[type_fqn] = type_record

        for method in type_record.methods or []:
            if method.class_name != type_record.name or method.package_name != type_record.package_name:
                method = replace(
                    method,
                    class_name=type_record.name,
                    package_name=type_record.package_name,
                )
            key = f"{type_fqn}.{method.name}"
            if key in method_by_fqn:
                logger.debug(f"Overload collision on {key}; keeping the last declaration")
            method_by_fqn[key] = method

    return type_by_fqn, method_by_fqn


class MetadataIndex:
    """
    Read-only index of a corpus for one analysis run.

    Attributes:
        types: type FQN -> TypeRecord
        methods: base method FQN -> MethodRecord
    """

    def __init__(
        self,
        types: Optional[Dict[str, TypeRecord]] = None,
        methods: Optional[Dict[str, MethodRecord]] = None
    ):
        self.types: Dict[str, TypeRecord] = types or {}
        self.methods: Dict[str, MethodRecord] = methods or {}

        # First indexed type wins for a given simple name
        self._types_by_simple_name: Dict[str, TypeRecord] = {}
        for type_record in self.types.values():
            self._types_by_simple_name.setdefault(type_record.name, type_record)

    @classmethod
    def build(cls, types: Optional[Iterable[TypeRecord]]) -> "MetadataIndex":
        """Index a corpus. A None or empty corpus gives an empty index."""
        type_by_fqn, method_by_fqn = build_maps(types)
        logger.debug(f"Indexed {len(type_by_fqn)} types and {len(method_by_fqn)} methods")
        return cls(type_by_fqn, method_by_fqn)

    def __len__(self) -> int:
        return len(self.methods)

    def get_type(self, type_fqn: str) -> Optional[TypeRecord]:
        return self.types.get(type_fqn)

    def get_method(self, base_fqn: str) -> Optional[MethodRecord]:
        return self.methods.get(base_fqn)

    def iter_methods(self) -> Iterator[MethodRecord]:
        """All indexed methods, in index order."""
        return iter(self.methods.values())

    def find_type_by_simple_name(self, name: str) -> Optional[TypeRecord]:
        return self._types_by_simple_name.get(name)

    def resolve_type_name(self, type_name: Optional[str]) -> str:
        """
        Map a declared type to the FQN it is indexed under.

        Generic arguments and array suffixes are dropped first. When neither
        the name nor its simple name is indexed, the bare name is returned.
        """
        name = strip_generics(type_name)
        if not name or name in self.types:
            return name
        type_record = self._types_by_simple_name.get(simple_name(name))
        if type_record is not None:
            return type_record.fqn
        return name

    def lookup_member(self, type_fqn: str, method_name: str) -> Optional[MethodRecord]:
        """
        Find a method declared on a type or inherited through its parent classes.
        """
        seen: List[str] = []
        current = type_fqn
        while current and current not in seen:
            seen.append(current)
            method = self.methods.get(f"{current}.{method_name}")
            if method is not None:
                return method
            type_record = self.types.get(current)
            if type_record is None or not type_record.parent_class:
                return None
            current = self.resolve_type_name(type_record.parent_class)
        return None

    def field_types(self, type_fqn: str) -> Dict[str, str]:
        """Field name -> declared type for a type and its indexed parents."""
        result: Dict[str, str] = {}
        seen: List[str] = []
        current = type_fqn
        while current and current not in seen:
            seen.append(current)
            type_record = self.types.get(current)
            if type_record is None:
                break
            for field_record in type_record.fields or []:
                result.setdefault(field_record.name, field_record.type)
            if not type_record.parent_class:
                break
            current = self.resolve_type_name(type_record.parent_class)
        return result
