#!/usr/bin/env python3
"""
Tests for the tree-sitter Java source parser.

Test Categories:
1. classify_type: stereotype annotations, naming and supertype rules
2. Declarations: package, annotations, supertypes, fields, methods
3. Method bodies: parameters, locals, call expressions in source order
4. Directory scans: extension filter and ignore patterns
"""

import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

pytest.importorskip("tree_sitter_java")

from codedoc_callflow.config.analysis import AnalysisConfig
from codedoc_callflow.flow.analyzer import compute_entry_point_flows
from codedoc_callflow.parsers import JavaSourceParser, UnsupportedLanguageError, classify_type


# ============================================================================
# TEST DATA: Java sources
# ============================================================================

CONTROLLER_SOURCE = """
package com.acme.web;

import org.springframework.web.bind.annotation.*;

@RestController
@RequestMapping("/users")
public class UserController {
    private final UserService userService;
    private int a, b;

    public UserController(UserService userService) {
        this.userService = userService;
    }

    @GetMapping("/{id}")
    public UserDto get(@PathVariable Long id, String... tags) {
        log.info("get {}", id);
        User user = userService.find(id).orElseThrow(() -> new NotFound(id));
        for (String tag : tags) {
            audit(tag);
        }
        return UserDto.from(user);
    }

    private void audit(String tag) {
        Runnable r = new Runnable() {
            public void run() { hidden(); }
        };
    }

    static class Helper {
        void assist() {}
    }
}
"""

SERVICE_SOURCE = """
package com.acme.service;

@Service
public class UserService {
    private UserRepository userRepository;

    public Optional<User> find(Long id) {
        return userRepository.findById(id);
    }
}
"""

REPOSITORY_SOURCE = """
package com.acme.data;

public interface UserRepository extends JpaRepository<User, Long> {
    Optional<User> findByEmail(String email);
}
"""


@pytest.fixture(scope="module")
def parser() -> JavaSourceParser:
    return JavaSourceParser()


# ============================================================================
# UNIT TESTS: classify_type
# ============================================================================

class TestClassifyType:
    """Kind tags, first matching rule wins."""

    @pytest.mark.parametrize("name,annotations,parent,interfaces,declaration,expected", [
        ("UserController", ["RestController"], None, [], "class_declaration", "controller"),
        ("Home", ["Controller"], None, [], "class_declaration", "controller"),
        ("BillingEndpoint", ["Endpoint"], None, [], "class_declaration", "soap"),
        ("BillingWs", ["WebService"], None, [], "class_declaration", "soap"),
        ("UserService", ["Service"], None, [], "class_declaration", "service"),
        ("UserDao", ["Repository"], None, [], "class_declaration", "repository"),
        ("OrderRepository", [], None, [], "interface_declaration", "repository"),
        ("Orders", [], None, ["JpaRepository<Order, Long>"], "interface_declaration", "repository"),
        ("Orders", [], None, ["org.springframework.data.repository.CrudRepository<Order, Long>"],
         "interface_declaration", "repository"),
        ("Clock", ["Component"], None, [], "class_declaration", "component"),
        ("AppConfig", ["Configuration"], None, [], "class_declaration", "config"),
        ("User", ["Entity", "Table"], None, [], "class_declaration", "entity"),
        ("Shape", [], None, [], "interface_declaration", "interface"),
        ("Color", [], None, [], "enum_declaration", "enum"),
        ("Util", [], "Base", ["Serializable"], "class_declaration", "class"),
        ("Api", ["org.springframework.web.bind.annotation.RestController"], None, [], "class_declaration",
         "controller"),
    ])
    def test_classify(self, name, annotations, parent, interfaces, declaration, expected):
        assert classify_type(name, annotations, parent, interfaces, declaration) == expected


# ============================================================================
# DECLARATIONS
# ============================================================================

class TestDeclarations:
    """Type-level extraction."""

    def test_types_in_file(self, parser):
        types = parser.parse(CONTROLLER_SOURCE, "UserController.java")

        assert [t.fqn for t in types] == ["com.acme.web.UserController", "com.acme.web.Helper"]
        controller = types[0]
        assert controller.kind == "controller"
        assert controller.annotations == ["RestController", "RequestMapping"]
        assert controller.file_path == "UserController.java"

    def test_fields(self, parser):
        controller = parser.parse(CONTROLLER_SOURCE)[0]

        assert [(f.name, f.type) for f in controller.fields] == [
            ("userService", "UserService"),
            ("a", "int"),
            ("b", "int"),
        ]

    def test_constructors_are_not_methods(self, parser):
        controller = parser.parse(CONTROLLER_SOURCE)[0]

        assert [m.name for m in controller.methods] == ["get", "audit"]

    def test_nested_type(self, parser):
        helper = parser.parse(CONTROLLER_SOURCE)[1]

        assert helper.name == "Helper"
        assert [m.name for m in helper.methods] == ["assist"]

    def test_repository_interface(self, parser):
        repo = parser.parse(REPOSITORY_SOURCE)[0]

        assert repo.kind == "repository"
        assert repo.interfaces == ["JpaRepository<User, Long>"]
        assert repo.methods[0].return_type == "Optional<User>"
        assert repo.methods[0].called_methods == []

    def test_unsupported_extension(self, parser):
        with pytest.raises(UnsupportedLanguageError):
            parser.parse("class A {}", "A.kt")

    def test_supports(self, parser):
        assert parser.supports("src/A.java")
        assert not parser.supports("src/A.py")


# ============================================================================
# METHOD BODIES
# ============================================================================

class TestMethodBodies:
    """Parameters, locals and call expressions."""

    @pytest.fixture
    def get_method(self, parser):
        return parser.parse(CONTROLLER_SOURCE)[0].methods[0]

    def test_parameters(self, get_method):
        assert [(p.type, p.name) for p in get_method.parameters] == [("Long", "id"), ("String...", "tags")]
        assert get_method.return_type == "UserDto"

    def test_locals(self, get_method):
        assert [(v.type, v.name) for v in get_method.local_variables] == [("User", "user"), ("String", "tag")]

    def test_calls_in_source_order(self, get_method):
        assert get_method.called_methods == [
            "log.info",
            "userService.find().orElseThrow",
            "userService.find",
            "audit",
            "UserDto.from",
        ]

    def test_call_listed_before_its_arguments(self, parser):
        source = "package p; class S { void run() { service.process(repo.find()); } }"
        run = parser.parse(source)[0].methods[0]

        assert run.called_methods == ["service.process", "repo.find"]

    def test_anonymous_class_body_skipped(self, parser):
        audit = parser.parse(CONTROLLER_SOURCE)[0].methods[1]

        assert audit.called_methods == []
        assert [(v.type, v.name) for v in audit.local_variables] == [("Runnable", "r")]


# ============================================================================
# DIRECTORY SCANS
# ============================================================================

class TestParseDirectory:
    """Walking a source tree."""

    @pytest.fixture
    def project(self, tmp_path):
        java = tmp_path / "src" / "main" / "java"
        java.mkdir(parents=True)
        (java / "UserController.java").write_text(CONTROLLER_SOURCE, encoding='utf-8')
        (java / "UserService.java").write_text(SERVICE_SOURCE, encoding='utf-8')
        (java / "UserRepository.java").write_text(REPOSITORY_SOURCE, encoding='utf-8')
        (java / "UserControllerTest.java").write_text("class UserControllerTest {}", encoding='utf-8')
        (java / "notes.txt").write_text("not java", encoding='utf-8')
        generated = tmp_path / "target" / "generated"
        generated.mkdir(parents=True)
        (generated / "Generated.java").write_text("class Generated {}", encoding='utf-8')
        return tmp_path

    def test_scan(self, parser, project):
        types = parser.parse_directory(str(project), AnalysisConfig())

        assert sorted(t.name for t in types) == ["Helper", "UserController", "UserRepository", "UserService"]

    def test_missing_directory(self, parser, tmp_path):
        with pytest.raises(FileNotFoundError):
            parser.parse_directory(str(tmp_path / "missing"))

    def test_end_to_end_flow(self, parser, project):
        types = parser.parse_directory(str(project), AnalysisConfig())
        flows = compute_entry_point_flows(types)

        assert flows["com.acme.web.UserController.get(Long, String...)"] == [
            "com.acme.web.UserController.get(Long, String...)",
            " -> Framework method: Optional.orElseThrow()",
            " -> com.acme.service.UserService.find(Long)",
            " -> Framework method: Repository.findById()",
            " -> com.acme.web.UserController.audit(String)",
        ]
