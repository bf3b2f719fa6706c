#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.gallerygrid.config import LayoutConfig
from app.gallerygrid.layout.engine import LayoutEngine
from app.gallerygrid.layout.items import ContentItem
from app.gallerygrid.layout.rows import Strategy
from app.gallerygrid.utils.imaging import scan_folder

# (width, height, rating) of a small sample shoot
SAMPLE = [
    (6000, 4000, 5),
    (4000, 6000, 5),
    (4000, 6000, 2),
    (4000, 6000, 3),
    (6000, 4000, 4),
    (6000, 4000, 2),
    (6000, 4000, 1),
    (9000, 3000, 0),
    (4000, 6000, 1),
    (4000, 6000, 0),
    (4000, 6000, 1),
    (6000, 4000, 1),
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Demo: print the row structure for a sample or a folder of images")
    parser.add_argument("--width", type=float, default=1200.0)
    parser.add_argument("--folder", help="Lay out the images in this folder instead of the built-in sample")
    args = parser.parse_args()

    if args.folder:
        items = scan_folder(args.folder)
    else:
        items = [ContentItem(i + 1, w, h, r) for i, (w, h, r) in enumerate(SAMPLE)]

    for strategy in Strategy:
        engine = LayoutEngine(LayoutConfig(strategy=strategy.value))
        rows = engine.layout_rows(items, args.width)
        print(f"== {strategy.value}: {len(rows)} rows")
        for layout in rows:
            sizes = ", ".join(f"{s.id}:{s.width:.0f}x{s.height:.0f}" for s in layout.sizes)
            print(f"- [{layout.row.kind.value}] {sizes}")


if __name__ == "__main__":
    main()
