"""
DOT Export Example
Analyze an HTML file and write a Graphviz map of its cores
"""

import sys

from dom_cores import CoreFinder
from dom_cores.core import DotExporter, SoupTreeAccessor, parse_html


def main(path: str, output: str = 'dom_cores.dot'):
    with open(path, 'r', encoding='utf-8') as f:
        _, root = parse_html(f.read())

    accessor = SoupTreeAccessor()
    result = CoreFinder(accessor).run(root)

    # Render with: dot -Tsvg dom_cores.dot -o dom_cores.svg
    dot = DotExporter(accessor).build(root, result.flags, result.groups)
    with open(output, 'w', encoding='utf-8') as f:
        f.write(dot.dot)

    print(f"💾 Saved {output} ({dot.nodes_count} nodes, {len(result.flags)} core)")


if __name__ == '__main__':
    if len(sys.argv) < 2:
        print("Usage: python dot_export.py page.html [output.dot]")
        sys.exit(1)
    main(*sys.argv[1:3])
