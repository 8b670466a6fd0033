"""
Plain data records for a parsed source corpus.

These records are the loose contract between the source parser and the
call-flow engine: names and types are plain strings, and nothing here is
resolved. A corpus is produced once per analysis run and treated as
read-only by the engine.
"""

from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field


def join_fqn(package_name: Optional[str], name: str) -> str:
    """Join a package and a simple name, tolerating a missing package."""
    if package_name:
        return f"{package_name}.{name}"
    return name


@dataclass
class ParameterRecord:
    """A declared method parameter"""
    type: str
    name: str

    def __str__(self) -> str:
        return f"{self.type} {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ParameterRecord':
        return cls(type=data.get('type', ''), name=data.get('name', ''))


@dataclass
class VariableRecord:
    """A local variable declared inside a method body"""
    type: str
    name: str

    def __str__(self) -> str:
        return f"{self.type} {self.name}"

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'name': self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'VariableRecord':
        return cls(type=data.get('type', ''), name=data.get('name', ''))


@dataclass
class FieldRecord:
    """A field declared on a type"""
    name: str
    type: str
    annotations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type,
            'annotations': list(self.annotations),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FieldRecord':
        return cls(
            name=data.get('name', ''),
            type=data.get('type', ''),
            annotations=list(data.get('annotations', [])),
        )


@dataclass
class MethodRecord:
    """
    A method declared on a type.

    Attributes:
        name: Simple method name, e.g. "findById"
        return_type: Declared return type as written, e.g. "Optional<User>"
        parameters: Ordered (type, name) parameters
        local_variables: Ordered (type, name) locals declared in the body
        called_methods: Raw call expressions in body order. Each entry is
                        either a qualified signature ("com.acme.Repo.save(User)"),
                        a dotted chain ("repo.findById().orElse") or a bare name.
        class_name: Simple name of the declaring type (filled by the index when missing)
        package_name: Package of the declaring type (filled by the index when missing)
    """
    name: str
    return_type: Optional[str] = None
    parameters: List[ParameterRecord] = field(default_factory=list)
    local_variables: List[VariableRecord] = field(default_factory=list)
    called_methods: List[str] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    class_name: Optional[str] = None
    package_name: Optional[str] = None

    @property
    def type_fqn(self) -> str:
        """FQN of the declaring type."""
        return join_fqn(self.package_name, self.class_name or "")

    @property
    def base_fqn(self) -> str:
        """Declaring type FQN plus method name, parameter list discarded."""
        return f"{self.type_fqn}.{self.name}"

    @property
    def parameter_types(self) -> List[str]:
        return [p.type for p in self.parameters]

    def display_signature(self) -> str:
        """Human readable signature: pkg.Type.method(ParamType1, ParamType2)."""
        return f"{self.base_fqn}({', '.join(self.parameter_types)})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'return_type': self.return_type,
            'parameters': [p.to_dict() for p in self.parameters],
            'local_variables': [v.to_dict() for v in self.local_variables],
            'called_methods': list(self.called_methods),
            'annotations': list(self.annotations),
            'class_name': self.class_name,
            'package_name': self.package_name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MethodRecord':
        return cls(
            name=data['name'],
            return_type=data.get('return_type'),
            parameters=[ParameterRecord.from_dict(p) for p in data.get('parameters', [])],
            local_variables=[VariableRecord.from_dict(v) for v in data.get('local_variables', [])],
            called_methods=list(data.get('called_methods', [])),
            annotations=list(data.get('annotations', [])),
            class_name=data.get('class_name'),
            package_name=data.get('package_name'),
        )


@dataclass
class TypeRecord:
    """
    A declared class, interface or enum.

    The kind tag drives entry-point selection ("controller", "soap") and the
    framework heuristics ("repository"). Other values the parser emits are
    "service", "entity", "component", "config", "interface", "enum" and "class".
    """
    name: str
    package_name: Optional[str] = None
    kind: str = "class"
    fields: List[FieldRecord] = field(default_factory=list)
    methods: List[MethodRecord] = field(default_factory=list)
    parent_class: Optional[str] = None
    interfaces: List[str] = field(default_factory=list)
    annotations: List[str] = field(default_factory=list)
    file_path: Optional[str] = None

    @property
    def fqn(self) -> str:
        return join_fqn(self.package_name, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'package_name': self.package_name,
            'kind': self.kind,
            'fields': [f.to_dict() for f in self.fields],
            'methods': [m.to_dict() for m in self.methods],
            'parent_class': self.parent_class,
            'interfaces': list(self.interfaces),
            'annotations': list(self.annotations),
            'file_path': self.file_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TypeRecord':
        return cls(
            name=data['name'],
            package_name=data.get('package_name'),
            kind=data.get('kind', 'class'),
            fields=[FieldRecord.from_dict(f) for f in data.get('fields', [])],
            methods=[MethodRecord.from_dict(m) for m in data.get('methods', [])],
            parent_class=data.get('parent_class'),
            interfaces=list(data.get('interfaces', [])),
            annotations=list(data.get('annotations', [])),
            file_path=data.get('file_path'),
        )
