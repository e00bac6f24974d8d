"""
citenet CLI - build citation networks from paper records, search semantic scholar.
"""

import argparse
import json
import sys
import logging
from dataclasses import replace
from pathlib import Path
from typing import List

from .core.config import CitenetConfig
from .core.models import Paper
from .core.errors import CitenetError
from .core.resilience import setup_logging
from .graph.builder import build_citation_network
from .layout import apply_layout
from .providers.semantic_scholar import SemanticScholarProvider

logger = logging.getLogger("citenet.cli")


def load_papers(source: str) -> List[Paper]:
    """read a json array of paper records from a file, or stdin for "-"."""
    if source == "-":
        raw = json.load(sys.stdin)
    else:
        raw = json.loads(Path(source).read_text(encoding="utf-8"))

    if isinstance(raw, dict):
        raw = raw.get("papers", [])
    if not isinstance(raw, list):
        raise ValueError(f"{source}: expected a json array of papers")

    return [Paper.from_dict(item) for item in raw if isinstance(item, dict)]


def cmd_build(args) -> int:
    config = CitenetConfig.from_env()
    options = replace(
        config.builder,
        max_nodes=args.max_nodes,
        min_citations=args.min_citations,
        include_semantic_edges=args.semantic,
        min_semantic_similarity=args.min_semantic
    )

    try:
        papers = load_papers(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"[cli] cannot read papers: {e}")
        return 1

    logger.info(f"[cli] loaded {len(papers)} papers from {args.input}")
    result = build_citation_network(papers, args.origin, options)

    if args.layout == "hierarchical":
        graph = apply_layout(result.graph, "hierarchical", config.hierarchical)
    elif args.layout == "force":
        force = config.force
        if args.iterations is not None:
            force = replace(force, iterations=args.iterations)
        graph = apply_layout(result.graph, "force", force)
    else:
        graph = result.graph

    json.dump({"graph": graph.to_dict(), "stats": result.stats.to_dict()}, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def cmd_search(args) -> int:
    config = CitenetConfig.from_env()

    try:
        with SemanticScholarProvider(config.provider) as provider:
            papers = provider.search_papers(
                args.query,
                limit=args.limit,
                year_from=args.year_from,
                year_to=args.year_to
            )
    except CitenetError as e:
        logger.error(f"[cli] search failed: {e}")
        return 1

    json.dump([p.to_dict() for p in papers], sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Citation network builder.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  %(prog)s build papers.json --origin 649def34f8be52c8b66281af98ae884c09aef38b
  %(prog)s build - --origin abc --layout hierarchical --semantic < papers.json
  %(prog)s search "CRISPR gene editing" --limit 10
        """
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="command")

    # build subcommand
    build_parser = subparsers.add_parser("build", help="build a network from paper records")
    build_parser.add_argument(
        "input",
        help="json file with an array of papers (- for stdin)"
    )
    build_parser.add_argument(
        "--origin",
        required=True,
        help="origin paper id"
    )
    build_parser.add_argument(
        "--max-nodes",
        type=int,
        default=100,
        help="maximum papers in the network (default: 100)"
    )
    build_parser.add_argument(
        "--min-citations",
        type=int,
        default=0,
        help="drop papers with fewer citations (default: 0)"
    )
    build_parser.add_argument(
        "--semantic",
        action="store_true",
        help="add edges between papers sharing fields of study"
    )
    build_parser.add_argument(
        "--min-semantic",
        type=float,
        default=0.5,
        help="minimum field overlap for semantic edges (default: 0.5)"
    )
    build_parser.add_argument(
        "--layout",
        default="force",
        choices=["force", "hierarchical", "none"],
        help="layout algorithm (default: force)"
    )
    build_parser.add_argument(
        "--iterations",
        type=int,
        help="force layout iterations"
    )
    build_parser.set_defaults(func=cmd_build)

    # search subcommand
    search_parser = subparsers.add_parser("search", help="search semantic scholar")
    search_parser.add_argument(
        "query",
        help="search query"
    )
    search_parser.add_argument(
        "--limit",
        type=int,
        default=20,
        help="maximum results (default: 20)"
    )
    search_parser.add_argument("--year-from", type=int, help="earliest publication year")
    search_parser.add_argument("--year-to", type=int, help="latest publication year")
    search_parser.set_defaults(func=cmd_search)

    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help()
        return 1

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
