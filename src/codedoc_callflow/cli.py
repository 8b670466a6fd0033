#!/usr/bin/env python3
"""
Command-line entry point for codedoc-callflow.

Parses a Java source tree (or loads a pre-parsed JSON corpus), computes the
call flow of every controller and SOAP entry point and writes the flows as
JSON, optionally with one PlantUML sequence diagram per entry point.

Usage:
    codedoc-callflow path/to/project --output flows.json --diagrams-dir docs/flows
    codedoc-callflow --types-json corpus.json --workers 4
    codedoc-callflow path/to/project --graph callgraph.json
    codedoc-callflow --generate-config callflow_config.json
"""

import sys
import json
import logging
import argparse
import dataclasses
from typing import List, Optional

from .config.analysis import AnalysisConfig, CONFIG_ENV_VAR, generate_example_config
from .core.exceptions import CallFlowError
from .core.models import TypeRecord
from .flow.analyzer import CallFlowAnalyzer
from .flow.graph import CallFlowGraph

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def load_types_json(path: str) -> List[TypeRecord]:
    """Load a corpus written as a JSON list of TypeRecord.to_dict() records"""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise CallFlowError(f"Expected a JSON list of type records in {path}")
    return [TypeRecord.from_dict(item) for item in data]


def parse_sources(source_dir: str, config: AnalysisConfig) -> List[TypeRecord]:
    # tree-sitter is only needed when scanning sources
    from .parsers.java_parser import JavaSourceParser
    return JavaSourceParser().parse_directory(source_dir, config)


def load_config(config_path: Optional[str]) -> AnalysisConfig:
    if config_path:
        config = AnalysisConfig.from_file(config_path)
        logger.info(f"Loaded config from: {config_path}")
        return config
    return AnalysisConfig.from_env()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Entry-point call flows for Java codebases")
    parser.add_argument("source_dir", nargs="?", help="Root of the Java source tree")
    parser.add_argument("--types-json", type=str, help="Analyze a pre-parsed JSON corpus instead of a source tree")
    parser.add_argument("--config", type=str, help=f"Config file path (default: ${CONFIG_ENV_VAR} if set)")
    parser.add_argument("--output", "-o", type=str, help="Write flows JSON here (default: stdout)")
    parser.add_argument("--diagrams-dir", type=str, help="Write one PlantUML sequence diagram per entry point")
    parser.add_argument("--graph", type=str, metavar="FILE", help="Write the combined call graph as JSON")
    parser.add_argument("--workers", type=int, help="Trace entry points on this many threads")
    parser.add_argument("--log-level", type=str, help="Log level (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--generate-config", type=str, metavar="FILE", help="Write an example config file and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the codedoc-callflow command"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.generate_config:
        generate_example_config(args.generate_config)
        print(f"Example config written to {args.generate_config}")
        return 0

    if not args.source_dir and not args.types_json:
        parser.error("either SOURCE_DIR or --types-json is required")

    try:
        config = load_config(args.config)
        overrides = {}
        if args.workers is not None:
            overrides["max_workers"] = args.workers
        if args.log_level:
            overrides["log_level"] = args.log_level
        if overrides:
            config = dataclasses.replace(config, **overrides)
    except (FileNotFoundError, ValueError, CallFlowError) as e:
        logger.error(f"Failed to load config: {e}")
        return 1

    # Set log level
    logging.getLogger().setLevel(getattr(logging, config.log_level))

    try:
        if args.types_json:
            types = load_types_json(args.types_json)
            logger.info(f"Loaded {len(types)} types from {args.types_json}")
        else:
            types = parse_sources(args.source_dir, config)
    except (OSError, ValueError, CallFlowError) as e:
        logger.error(f"Failed to load types: {e}")
        return 1

    analyzer = CallFlowAnalyzer(config)
    traces = analyzer.trace_entry_points(types)
    flows = {entry: trace.flow for entry, trace in traces.items()}

    output = json.dumps(flows, indent=2)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output + "\n")
        logger.info(f"Wrote {len(flows)} call flows to {args.output}")
    else:
        print(output)

    if args.diagrams_dir:
        from .render.sequence import write_sequence_diagrams
        write_sequence_diagrams(traces, args.diagrams_dir)

    if args.graph:
        graph = CallFlowGraph.from_traces(traces.values())
        with open(args.graph, 'w', encoding='utf-8') as f:
            json.dump(graph.to_dict(), f, indent=2)
        stats = graph.get_stats()
        logger.info(
            f"Wrote call graph to {args.graph}: {stats['total_nodes']} nodes, "
            f"{stats['total_edges']} edges, {len(graph.find_cycles())} cycles"
        )

    if analyzer.unresolved_calls:
        logger.info(f"{len(analyzer.unresolved_calls)} distinct call expressions could not be resolved")

    return 0


if __name__ == "__main__":
    sys.exit(main())
