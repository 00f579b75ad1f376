"""
Command Line Interface for DOM Cores
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .core.config import CoreConfig
from .core.core_finder import CoreFinder, GroupSummary
from .core.dot_exporter import DotExporter
from .core.slot_grouper import SlotGrouper
from .core.tree_accessor import SoupTreeAccessor, parse_html


def run_cli(argv: List[str] = None):
    """Parse arguments, analyze the input and return the CoreRunResult"""
    parser = argparse.ArgumentParser(
        description='DOM Cores - find structurally repeating regions in an HTML page'
    )

    # Input
    parser.add_argument(
        'path',
        type=str,
        help="HTML file to analyze ('-' reads stdin)"
    )
    parser.add_argument(
        '--parser',
        type=str,
        choices=['html.parser', 'lxml'],
        default='html.parser',
        help='BeautifulSoup parser (default: html.parser)'
    )
    parser.add_argument(
        '--config',
        type=str,
        help='JSON file with CoreConfig settings; command line options override it'
    )

    # Thresholds
    parser.add_argument(
        '--min-group-size',
        type=int,
        help='Minimum same-tag siblings to align (default: 4)'
    )
    parser.add_argument(
        '--support-threshold',
        type=float,
        help='Fraction of siblings a node must match in (default: 0.8)'
    )

    # Resource bounds
    parser.add_argument(
        '--max-nodes',
        type=int,
        help='Max reference subtree nodes per group (default: 20000)'
    )
    parser.add_argument(
        '--max-depth',
        type=int,
        help='Max depth below a group root (default: 1500)'
    )

    # Output
    parser.add_argument(
        '--dot',
        type=str,
        help='Write Graphviz DOT of the tree with cores colored'
    )
    parser.add_argument(
        '--json',
        type=str,
        help='Write per-group summary as JSON'
    )
    parser.add_argument(
        '--top',
        type=int,
        metavar='N',
        help='List the N largest sibling groups per parent'
    )

    # Other
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )

    args = parser.parse_args(argv)

    # Setup logging
    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(args)
    except (OSError, ValueError) as e:
        parser.error(str(e))

    try:
        html = read_input(args.path)
    except OSError as e:
        print(f"❌ Failed to read {args.path}: {e}")
        sys.exit(1)

    _, root = parse_html(html, args.parser)
    if root is None:
        print("⚠️ No elements found in input")
        sys.exit(1)

    accessor = SoupTreeAccessor()
    result = CoreFinder(accessor, config).run(root)

    print_summary(result.summaries)

    if args.top:
        print_top_groups(accessor, root, config.min_group_size, args.top)

    if args.dot:
        dot = DotExporter(accessor).build(root, result.flags, result.groups)
        save_text(args.dot, dot.dot)
        print(f"💾 Saved {args.dot} (nodes={dot.nodes_count}, edges={dot.edges_count})")

    if args.json:
        save_text(args.json, json.dumps(result.to_dict(), indent=2))
        print(f"💾 Saved {args.json} (JSON)")

    print(f"\n✅ Done!")
    print(f"   Groups: {len(result.groups)}")
    print(f"   Core nodes: {len(result.flags)}")

    return result


def build_config(args) -> CoreConfig:
    """CoreConfig from the optional --config file plus explicit options"""
    settings = {}
    if args.config:
        settings = json.loads(Path(args.config).read_text(encoding='utf-8'))
        if not isinstance(settings, dict):
            raise ValueError(f"{args.config} must hold a JSON object")

    overrides = {
        'min_group_size': args.min_group_size,
        'support_threshold': args.support_threshold,
        'max_nodes_per_group': args.max_nodes,
        'max_depth': args.max_depth,
    }
    settings.update({k: v for k, v in overrides.items() if v is not None})

    return CoreConfig.from_dict(settings)


def read_input(path: str) -> str:
    """Read HTML from a file path or stdin"""
    if path == '-':
        return sys.stdin.read()
    return Path(path).read_text(encoding='utf-8', errors='replace')


def save_text(output_path: str, text: str):
    """Save text to file, creating parent directories"""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(text, encoding='utf-8')


def print_summary(summaries: List[GroupSummary]):
    """Print one line per processed group"""
    for s in summaries:
        if s.error:
            status = f"error: {s.error}"
        elif s.skipped_reason:
            status = f"skipped ({s.skipped_reason})"
        else:
            status = (
                f"ref #{s.reference_index} {s.reference_label} "
                f"({s.reference_subtree_count} nodes), +{s.newly_flagged} flagged"
            )
            if s.cap_hit:
                status += " [cap hit]"
        print(f"  {s.signature}  x{s.member_count}  {status}")


def print_top_groups(accessor, root, min_group_size: int, top_n: int):
    """Print the largest sibling groups, keyed by parent xpath"""
    groups = SlotGrouper(accessor).group_by_parent(root, min_group_size)
    top = SlotGrouper.top_groups(groups, top_n)

    print(f"\n📊 Top {len(top)} sibling groups:")
    for g in top:
        tags = sorted({accessor.tag(m) for m in g.members})
        print(f"  {g.signature}  x{g.size}  [{', '.join(tags)}]")


def main(argv: List[str] = None):
    run_cli(argv)


if __name__ == '__main__':
    main()
