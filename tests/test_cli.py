#!/usr/bin/env python3
"""Tests for the codedoc-callflow command line."""

import sys
import os
import json

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest

from codedoc_callflow.cli import load_types_json, main
from codedoc_callflow.core.exceptions import CallFlowError
from codedoc_callflow.core.models import FieldRecord, MethodRecord, TypeRecord


@pytest.fixture
def corpus_file(tmp_path):
    types = [
        TypeRecord(
            name="PingController", package_name="app", kind="controller",
            fields=[FieldRecord("service", "PingService")],
            methods=[MethodRecord(name="ping", called_methods=["service.pong()"])],
        ),
        TypeRecord(
            name="PingService", package_name="app", kind="service",
            methods=[MethodRecord(name="pong", called_methods=["PingController.ping()"])],
        ),
    ]
    path = tmp_path / "corpus.json"
    path.write_text(json.dumps([t.to_dict() for t in types]), encoding='utf-8')
    return path


class TestCli:
    """End-to-end runs over a pre-parsed corpus."""

    def test_flows_to_stdout(self, corpus_file, capsys):
        assert main(["--types-json", str(corpus_file)]) == 0

        flows = json.loads(capsys.readouterr().out)
        assert flows == {"app.PingController.ping()": ["app.PingController.ping()", " -> app.PingService.pong()"]}

    def test_output_diagrams_and_graph(self, corpus_file, tmp_path):
        output = tmp_path / "flows.json"
        diagrams = tmp_path / "diagrams"
        graph_path = tmp_path / "graph.json"

        code = main([
            "--types-json", str(corpus_file),
            "--output", str(output),
            "--diagrams-dir", str(diagrams),
            "--graph", str(graph_path),
            "--workers", "2",
            "--log-level", "warning",
        ])

        assert code == 0
        assert "app.PingController.ping()" in json.loads(output.read_text(encoding='utf-8'))
        assert (diagrams / "app.PingController.ping.puml").exists()
        graph = json.loads(graph_path.read_text(encoding='utf-8'))
        # The suppressed call back to the controller closes a cycle
        assert graph["edges"]["app.PingService.pong()"] == ["app.PingController.ping()"]

    def test_generate_config(self, tmp_path, capsys):
        path = tmp_path / "callflow_config.json"

        assert main(["--generate-config", str(path)]) == 0
        assert json.loads(path.read_text(encoding='utf-8'))["max_workers"] == 4

    def test_requires_input(self):
        with pytest.raises(SystemExit):
            main([])

    def test_missing_config(self, corpus_file, tmp_path):
        assert main(["--types-json", str(corpus_file), "--config", str(tmp_path / "nope.json")]) == 1

    def test_invalid_workers(self, corpus_file):
        assert main(["--types-json", str(corpus_file), "--workers", "0"]) == 1

    def test_bad_corpus(self, tmp_path):
        path = tmp_path / "corpus.json"
        path.write_text('{"name": "A"}', encoding='utf-8')

        with pytest.raises(CallFlowError):
            load_types_json(str(path))
        assert main(["--types-json", str(path)]) == 1
