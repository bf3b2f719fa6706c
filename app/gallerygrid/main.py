from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from app.gallerygrid.config import LayoutConfig
from app.gallerygrid.layout.engine import LayoutEngine, RowLayout
from app.gallerygrid.layout.items import ContentItem
from app.gallerygrid.layout.rows import Strategy
from app.gallerygrid.utils.imaging import scan_folder

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def load_items(path: str | Path) -> List[ContentItem]:
    """Items from a JSON file: a list, or an object with an ``items`` list."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("items", [])
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a list of items")
    return [ContentItem.from_dict(entry) for entry in data]


def rows_to_dict(rows: List[RowLayout]) -> list:
    out = []
    for layout in rows:
        pattern = layout.row.pattern
        entry = {
            "pattern": pattern.kind.value,
            "start": layout.row.start,
            "items": [size.to_dict() for size in layout.sizes],
        }
        for role in ("main", "secondaries", "main_position", "top_pair", "bottom"):
            value = getattr(pattern, role, None)
            if value is not None:
                entry[role] = getattr(value, "value", value)
        out.append(entry)
    return out


def run_layout(
    items: List[ContentItem],
    container_width: float,
    config: Optional[LayoutConfig] = None,
    *,
    with_rows: bool = False,
):
    engine = LayoutEngine(config)
    rows = engine.layout_rows(items, container_width)
    if with_rows:
        return {"width": container_width, "rows": rows_to_dict(rows)}
    return [size.to_dict() for layout in rows for size in layout.sizes]


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()
    try:
        defaults = LayoutConfig.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    parser = argparse.ArgumentParser(description="Compute grid row layouts for a list of media items")
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", help="JSON file with items ({id, width, height, rating?, isCollectionCard?})")
    source.add_argument("--folder", help="Folder of images to read dimensions and ratings from")
    parser.add_argument("--width", type=float, required=True, help="Container width in pixels")
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        default=defaults.strategy,
        help="Row partitioning strategy",
    )
    parser.add_argument("--chunk-size", type=int, default=defaults.chunk_size, help="Slots per row")
    parser.add_argument("--gap", type=float, default=defaults.gap, help="Gap between items in pixels")
    parser.add_argument("--rows", action="store_true", help="Emit row structure instead of a flat list")
    parser.add_argument("--output", help="Write JSON here instead of stdout")
    parser.add_argument("--verbose", action="store_true", help="Log row decisions")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format=LOG_FORMAT)

    try:
        config = LayoutConfig(
            chunk_size=args.chunk_size,
            gap=args.gap,
            window_size=defaults.window_size,
            strategy=args.strategy,
        )
        items = load_items(args.input) if args.input else scan_folder(args.folder)
        result = run_layout(items, args.width, config, with_rows=args.rows)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    text = json.dumps(result, indent=2)
    if args.output:
        Path(args.output).write_text(text + "\n", encoding="utf-8")
        print(f"Wrote layout for {len(items)} items to {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
