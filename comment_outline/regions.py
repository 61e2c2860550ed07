"""Block regions: the body lines owned by each heading."""

from __future__ import annotations

from collections.abc import Sequence

from .config import OutlineConfig
from .models import BlockRegion
from .scanner import is_blank, is_closed_line, scan


def compute_regions(
    lines: Sequence[str], comment_char: str, config: OutlineConfig | None = None
) -> list[BlockRegion]:
    """Compute the block region of every heading.

    A block ends at the next heading of any level, so only heading positions
    matter. For a heading at ``h`` followed by the next heading (or the end of
    the document) at ``n``:

    1. The block starts at ``h + 1``, or ``h + 2`` when ``h + 1`` is a CLOSED line.
    2. Trailing blank lines before ``n`` are trimmed, then up to
       `block_padding` of them are kept again.
    3. Headings without any line left yield no region.

    Regions are recomputed from the lines on every call.

    Args:
        lines: Document lines.
        comment_char: Comment character of the document.
        config: Configuration providing the base level and padding.

    Returns:
        list[BlockRegion]: Disjoint regions in line order.

    Examples:
        compute_regions(["/// Title", "content", "//// Sub", "more"], "/")
        # [BlockRegion(heading=0, start=1, end=1), BlockRegion(heading=2, start=3, end=3)]
    """
    config = config or OutlineConfig()
    positions = scan(lines, comment_char, config).positions()
    regions: list[BlockRegion] = []

    for heading, next_heading in zip(positions, [*positions[1:], len(lines)]):
        start = heading + 1
        if start < next_heading and is_closed_line(lines[start], comment_char):
            start += 1

        last_content_line = next_heading - 1
        while last_content_line > heading and is_blank(lines[last_content_line]):
            last_content_line -= 1
        end = min(last_content_line + config.block_padding, next_heading - 1)

        if start <= end:
            regions.append(BlockRegion(heading=heading, start=start, end=end))

    return regions


def region_containing(regions: Sequence[BlockRegion], line: int) -> BlockRegion | None:
    """The region covering `line`, if any."""
    for region in regions:
        if line in region:
            return region
    return None
