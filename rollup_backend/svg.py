"""
SVG export - paints a renderer Frame as a standalone SVG document.

Markers are circles filled by state color, labels sit to the right of
their marker, toggle glyphs to the left, and connectors use the frame's
precomputed curve paths.
"""
from html import escape

from rollup_core import Frame

MARKER_RADIUS = 4
LABEL_OFFSET = 8
GLYPH_OFFSET = -15
LINK_STROKE = "#adb5bd"


def _fmt(value: float) -> str:
    return f"{value:.2f}"


def frame_to_svg(frame: Frame) -> str:
    """Render `frame` to SVG markup."""
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" '
        f'width="{_fmt(frame.width)}" height="{_fmt(frame.height)}" '
        f'font-family="sans-serif" font-size="12">'
    ]

    for link in frame.links:
        parts.append(
            f'<path class="link" data-id="{escape(link.id)}" d="{link.path}" '
            f'fill="none" stroke="{LINK_STROKE}" stroke-width="1.5" '
            f'opacity="{_fmt(link.opacity)}"/>'
        )

    for node in frame.nodes:
        parts.append(
            f'<g class="node" data-id="{escape(node.id)}" '
            f'transform="translate({_fmt(node.x)},{_fmt(node.y)})" '
            f'opacity="{_fmt(node.opacity)}">'
        )
        parts.append(f'<circle r="{MARKER_RADIUS}" fill="{node.color}"/>')
        parts.append(
            f'<text x="{LABEL_OFFSET}" dy="0.32em" '
            f'text-decoration="{node.text_decoration}">{escape(node.label)}</text>'
        )
        if node.glyph:
            parts.append(
                f'<text class="toggle" x="{GLYPH_OFFSET}" dy="0.32em">{node.glyph}</text>'
            )
        parts.append('</g>')

    parts.append('</svg>')
    return "".join(parts)
