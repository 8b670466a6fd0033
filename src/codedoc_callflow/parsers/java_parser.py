"""
Java source extraction using tree-sitter.

Produces one TypeRecord per class, interface, enum or record declaration,
with fields, methods, parameters, locals and the raw call expressions found
in each method body. There is no symbol resolution: call expressions are the
receiver text plus method name with argument lists emptied, e.g.
"repo.findById().orElse", and they are listed in source order (a call before
the calls in its receiver and arguments).
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

try:
    import tree_sitter_java as ts_java
    from tree_sitter import Language, Parser, Node
except ImportError:
    raise ImportError("tree-sitter not installed. Run: pip install tree-sitter tree-sitter-java")

from ..config.analysis import AnalysisConfig
from ..core.models import (
    FieldRecord,
    MethodRecord,
    ParameterRecord,
    TypeRecord,
    VariableRecord,
)
from .base import ParseError, SourceParser, UnsupportedLanguageError

logger = logging.getLogger(__name__)

TYPE_DECLARATIONS = (
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
)

SPRING_DATA_BASES = ("JpaRepository", "CrudRepository", "PagingAndSortingRepository")
SOAP_ANNOTATIONS = ("Endpoint", "WebService")


def classify_type(
    name: str,
    annotations: List[str],
    parent_class: Optional[str],
    interfaces: List[str],
    declaration: str = "class_declaration"
) -> str:
    """
    Kind tag for a declared type.

    Stereotype annotations win; repository is also inferred from the name or
    from extending a Spring Data base interface. SOAP annotations are checked
    before "Service" so @WebService is not taken for a service.
    """
    simple_annotations = [a.rsplit('.', 1)[-1] for a in annotations]
    supertypes = [_raw_type(t) for t in ([parent_class] if parent_class else []) + interfaces]

    if any(a.endswith("Controller") for a in simple_annotations):
        return "controller"
    if any(a in SOAP_ANNOTATIONS for a in simple_annotations):
        return "soap"
    if any(a.endswith("Service") for a in simple_annotations):
        return "service"
    if any(a.endswith("Repository") for a in simple_annotations):
        return "repository"
    if name.endswith("Repository") or any(t in SPRING_DATA_BASES for t in supertypes):
        return "repository"
    if any(a.endswith("Component") for a in simple_annotations):
        if any(a.endswith("Configuration") for a in simple_annotations):
            return "config"
        return "component"
    if any(a.endswith("Configuration") for a in simple_annotations):
        return "config"
    if any(a.endswith("Entity") for a in simple_annotations):
        return "entity"
    if declaration == "interface_declaration":
        return "interface"
    if declaration == "enum_declaration":
        return "enum"
    return "class"


def _raw_type(type_text: str) -> str:
    raw = type_text.split('<', 1)[0].strip()
    return raw.rsplit('.', 1)[-1]


def _node_text(code: bytes, node: Optional[Node]) -> str:
    if node is None:
        return ""
    return code[node.start_byte:node.end_byte].decode('utf-8', errors='replace')


def _compress_ws(text: str) -> str:
    return " ".join(text.split())


def _collapse_arguments(text: str) -> str:
    """Empty every parenthesised argument list: "a.b(x, c(y)).d()" -> "a.b().d()"."""
    out = []
    depth = 0
    for ch in text:
        if ch == '(':
            if depth == 0:
                out.append('(')
            depth += 1
        elif ch == ')':
            depth = max(0, depth - 1)
            if depth == 0:
                out.append(')')
        elif depth == 0:
            out.append(ch)
    return "".join(out)


class JavaSourceParser(SourceParser):
    """Extracts TypeRecords from Java source with tree-sitter-java."""

    EXTENSIONS = (".java",)

    def __init__(self):
        self._language = Language(ts_java.language())
        self._parser = Parser(self._language)

    def supports(self, file_path: str) -> bool:
        return Path(file_path).suffix.lower() in self.EXTENSIONS

    def parse(self, content: str, file_path: Optional[str] = None) -> List[TypeRecord]:
        if file_path and not self.supports(file_path):
            raise UnsupportedLanguageError(f"Unsupported file extension: {Path(file_path).suffix}")

        try:
            code = content.encode('utf-8')
            tree = self._parser.parse(code)
        except Exception as e:
            raise ParseError(f"Failed to parse {file_path or '<source>'}: {e}")

        root = tree.root_node
        if root is None:
            raise ParseError(f"Failed to parse {file_path or '<source>'}: no syntax tree")
        if root.has_error:
            logger.debug(f"Syntax errors in {file_path or '<source>'}; extracting what parsed")

        package_name = self._package_name(root, code)
        types: List[TypeRecord] = []
        for child in root.children:
            if child.type in TYPE_DECLARATIONS:
                self._collect_type(child, code, package_name, file_path, types)
        return types

    def parse_file(self, file_path: str) -> List[TypeRecord]:
        with open(file_path, 'r', encoding='utf-8', errors='replace') as f:
            content = f.read()
        return self.parse(content, file_path)

    def parse_directory(self, root_dir: str, config: Optional[AnalysisConfig] = None) -> List[TypeRecord]:
        """
        Parse every supported file below root_dir, skipping ignored paths.

        Files that fail to parse are logged and skipped.
        """
        config = config or AnalysisConfig()
        extensions = config.get_extension_set()
        root_path = Path(root_dir)
        if not root_path.is_dir():
            raise FileNotFoundError(f"Source directory not found: {root_dir}")

        types: List[TypeRecord] = []
        file_count = 0
        for current, dirs, files in os.walk(root_path):
            rel_dir = Path(current).relative_to(root_path)
            dirs[:] = sorted(
                d for d in dirs
                if not config.should_ignore(str(rel_dir / d) if str(rel_dir) != '.' else d)
            )
            for file_name in sorted(files):
                rel_path = str(rel_dir / file_name) if str(rel_dir) != '.' else file_name
                if Path(file_name).suffix not in extensions or config.should_ignore(rel_path):
                    continue
                try:
                    types.extend(self.parse_file(os.path.join(current, file_name)))
                    file_count += 1
                except ParseError as e:
                    logger.warning(f"Skipping {rel_path}: {e}")

        logger.info(f"Parsed {file_count} files from {root_dir}: {len(types)} types")
        return types

    # -- declarations ---------------------------------------------------------

    def _package_name(self, root: Node, code: bytes) -> Optional[str]:
        for child in root.children:
            if child.type == "package_declaration":
                for part in child.named_children:
                    if part.type in ("scoped_identifier", "identifier"):
                        return _node_text(code, part)
        return None

    def _collect_type(
        self,
        node: Node,
        code: bytes,
        package_name: Optional[str],
        file_path: Optional[str],
        out: List[TypeRecord]
    ) -> None:
        name = _node_text(code, node.child_by_field_name("name"))
        annotations = self._annotations(node, code)
        parent_class, interfaces = self._supertypes(node, code)

        type_record = TypeRecord(
            name=name,
            package_name=package_name,
            kind=classify_type(name, annotations, parent_class, interfaces, node.type),
            parent_class=parent_class,
            interfaces=interfaces,
            annotations=annotations,
            file_path=file_path,
        )
        out.append(type_record)

        nested: List[Node] = []
        for member in self._body_members(node):
            if member.type == "field_declaration" or member.type == "constant_declaration":
                type_record.fields.extend(self._fields(member, code))
            elif member.type == "method_declaration":
                type_record.methods.append(self._method(member, code))
            elif member.type in TYPE_DECLARATIONS:
                nested.append(member)

        # Nested types are indexed under the enclosing package by simple name
        for member in nested:
            self._collect_type(member, code, package_name, file_path, out)

    def _body_members(self, node: Node) -> List[Node]:
        body = node.child_by_field_name("body")
        if body is None:
            return []
        members: List[Node] = []
        for child in body.named_children:
            if child.type == "enum_body_declarations":
                members.extend(child.named_children)
            else:
                members.append(child)
        return members

    def _annotations(self, node: Node, code: bytes) -> List[str]:
        annotations: List[str] = []
        for child in node.children:
            if child.type != "modifiers":
                continue
            for modifier in child.named_children:
                if modifier.type in ("marker_annotation", "annotation"):
                    annotations.append(_node_text(code, modifier.child_by_field_name("name")))
        return annotations

    def _supertypes(self, node: Node, code: bytes) -> Tuple[Optional[str], List[str]]:
        parent_class = None
        interfaces: List[str] = []
        for child in node.children:
            if child.type == "superclass":
                types = [c for c in child.named_children]
                if types:
                    parent_class = _compress_ws(_node_text(code, types[0]))
            elif child.type in ("super_interfaces", "extends_interfaces"):
                for type_list in child.named_children:
                    if type_list.type == "type_list":
                        interfaces.extend(_compress_ws(_node_text(code, t)) for t in type_list.named_children)
        return parent_class, interfaces

    def _fields(self, node: Node, code: bytes) -> List[FieldRecord]:
        type_text = _compress_ws(_node_text(code, node.child_by_field_name("type")))
        annotations = self._annotations(node, code)
        return [
            FieldRecord(
                name=_node_text(code, declarator.child_by_field_name("name")),
                type=type_text,
                annotations=list(annotations),
            )
            for declarator in node.children_by_field_name("declarator")
        ]

    def _method(self, node: Node, code: bytes) -> MethodRecord:
        method = MethodRecord(
            name=_node_text(code, node.child_by_field_name("name")),
            return_type=_compress_ws(_node_text(code, node.child_by_field_name("type"))) or None,
            parameters=self._parameters(node, code),
            annotations=self._annotations(node, code),
        )
        body = node.child_by_field_name("body")
        if body is not None:
            method.local_variables, method.called_methods = self._scan_body(body, code)
        return method

    def _parameters(self, node: Node, code: bytes) -> List[ParameterRecord]:
        params_node = node.child_by_field_name("parameters")
        parameters: List[ParameterRecord] = []
        if params_node is None:
            return parameters
        for param in params_node.named_children:
            if param.type == "formal_parameter":
                parameters.append(ParameterRecord(
                    type=_compress_ws(_node_text(code, param.child_by_field_name("type"))),
                    name=_node_text(code, param.child_by_field_name("name")),
                ))
            elif param.type == "spread_parameter":
                type_text = ""
                name = ""
                for part in param.named_children:
                    if part.type == "variable_declarator":
                        name = _node_text(code, part.child_by_field_name("name"))
                    elif part.type != "modifiers" and not type_text:
                        type_text = _compress_ws(_node_text(code, part))
                parameters.append(ParameterRecord(type=f"{type_text}...", name=name))
        return parameters

    # -- method bodies ----------------------------------------------------------

    def _scan_body(self, body: Node, code: bytes) -> Tuple[List[VariableRecord], List[str]]:
        """
        Locals and call expressions of a method body, in source order.

        A call is listed before the calls in its receiver and arguments, so
        service.process(repo.find()) gives ["service.process", "repo.find"].
        Anonymous and local class bodies are not entered.
        """
        local_variables: List[VariableRecord] = []
        calls: List[str] = []

        # Iterative pre-order: parents before children
        stack: List[Node] = [body]
        while stack:
            node = stack.pop()
            if node.type == "class_body":
                continue
            if node.type == "local_variable_declaration":
                type_text = _compress_ws(_node_text(code, node.child_by_field_name("type")))
                for declarator in node.children_by_field_name("declarator"):
                    local_variables.append(VariableRecord(
                        type=type_text,
                        name=_node_text(code, declarator.child_by_field_name("name")),
                    ))
            elif node.type == "enhanced_for_statement":
                local_variables.append(VariableRecord(
                    type=_compress_ws(_node_text(code, node.child_by_field_name("type"))),
                    name=_node_text(code, node.child_by_field_name("name")),
                ))
            elif node.type == "method_invocation":
                calls.append(self._call_expression(node, code))
            stack.extend(reversed(node.children))

        return local_variables, calls

    def _call_expression(self, node: Node, code: bytes) -> str:
        name = _node_text(code, node.child_by_field_name("name"))
        receiver = node.child_by_field_name("object")
        if receiver is None:
            return name
        receiver_text = _collapse_arguments(_compress_ws(_node_text(code, receiver)))
        return f"{receiver_text}.{name}"
