"""Static layout resolution for AMP custom elements.

:func:`apply_layout` turns the declarative ``layout``/``width``/``height``
attributes of an element into the markup the AMP runtime would otherwise
produce on the client:

* a ``i-amphtml-layout-<layout>`` class (plus
  ``i-amphtml-layout-size-defined`` where the layout fixes the box size),
* an ``i-amphtml-layout`` attribute naming the resolved layout,
* inline ``width``/``height`` styles for fixed boxes,
* an ``<i-amphtml-sizer>`` child carrying the aspect ratio for responsive
  boxes.

Only layouts that can be resolved without knowing the viewport are handled.
Anything else leaves the element untouched and reports ``False`` so the
caller keeps the runtime boilerplate.
"""

import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from app.services.dom import create_element, insert_first

logger = logging.getLogger(__name__)

KNOWN_LAYOUTS = {
    "nodisplay",
    "fixed",
    "fixed-height",
    "responsive",
    "container",
    "fill",
    "flex-item",
    "fluid",
    "intrinsic",
}

SUPPORTED_LAYOUTS = {
    "nodisplay",
    "fixed",
    "fixed-height",
    "responsive",
    "container",
    "fill",
    "flex-item",
}

# Layouts whose box size is fully determined by the element's own attributes.
SIZE_DEFINED_LAYOUTS = {
    "fixed",
    "fixed-height",
    "responsive",
    "fill",
    "flex-item",
    "fluid",
    "intrinsic",
}

# Elements that are invisible trackers default to a 1x1 box.
_PIXEL_TAGS = {"amp-analytics", "amp-pixel"}

_LENGTH_RE = re.compile(r"(\d+(?:\.\d+)?)(px|em|rem|vh|vw|vmin|vmax)?")


class CssLength:
    """A parsed ``width``/``height`` attribute value.

    ``is_set`` is False when the attribute is absent.  ``auto`` and ``fluid``
    are only valid where the caller allows them.
    """

    def __init__(self, value: Optional[str], allow_auto: bool = False, allow_fluid: bool = False):
        self.is_valid = False
        self.is_set = False
        self.is_auto = False
        self.is_fluid = False
        self.numeral: Optional[float] = None
        self.unit = "px"

        if value is None:
            self.is_valid = True
            return

        self.is_set = True
        if value == "auto":
            self.is_auto = True
            self.is_valid = allow_auto
            return
        if value == "fluid":
            self.is_fluid = True
            self.is_valid = allow_fluid
            return

        match = _LENGTH_RE.fullmatch(value)
        if match:
            self.is_valid = True
            self.numeral = float(match.group(1))
            self.unit = match.group(2) or "px"

    @property
    def is_numeric(self) -> bool:
        return self.numeral is not None

    def __str__(self) -> str:
        if self.is_auto:
            return "auto"
        if self.is_fluid:
            return "fluid"
        return f"{_format_number(self.numeral)}{self.unit}"


def _format_number(value: float) -> str:
    """Render *value* in fixed-point CSS notation: ``10`` rather than ``10.0``,
    never an exponent, at most four decimals."""
    return f"{value:.4f}".rstrip("0").rstrip(".")


def parse_layout(value: Optional[str]) -> str:
    """Return the lower-cased layout keyword, or ``""`` when none is declared."""
    if not value:
        return ""
    return value.strip().lower()


def calculate_width(layout: str, width: CssLength, tag_name: str) -> CssLength:
    if layout in ("", "fixed") and not width.is_set:
        if tag_name in _PIXEL_TAGS:
            return CssLength("1px")
        if tag_name == "amp-audio":
            return CssLength("auto", allow_auto=True)
    return width


def calculate_height(layout: str, height: CssLength, tag_name: str) -> CssLength:
    if layout in ("", "fixed", "fixed-height") and not height.is_set:
        if tag_name in _PIXEL_TAGS:
            return CssLength("1px")
    return height


def calculate_layout(
    layout: str,
    width: CssLength,
    height: CssLength,
    sizes: Optional[str],
    heights: Optional[str],
) -> str:
    """Infer the effective layout when the element does not declare one."""
    if layout:
        return layout
    if not width.is_set and not height.is_set:
        return "container"
    if height.is_set and height.is_fluid:
        return "fluid"
    if height.is_set and (not width.is_set or width.is_auto):
        return "fixed-height"
    if height.is_set and width.is_set and (sizes or heights):
        return "responsive"
    return "fixed"


def _has_required_dimensions(layout: str, width: CssLength, height: CssLength) -> bool:
    if layout == "fixed":
        return width.is_numeric and height.is_numeric
    if layout == "fixed-height":
        return height.is_numeric and (not width.is_set or width.is_auto)
    if layout == "responsive":
        return width.is_numeric and height.is_numeric
    return True


def apply_layout(node: Tag, document: BeautifulSoup) -> bool:
    """Resolve the layout of *node* into static attributes, in place.

    Returns:
        True when the layout was applied; False when it cannot be resolved on
        the server, in which case *node* is left unchanged.
    """
    layout = parse_layout(node.get("layout"))
    if layout and layout not in KNOWN_LAYOUTS:
        logger.debug("Cannot apply layout to <%s>: unknown layout %r", node.name, layout)
        return False

    input_width = CssLength(node.get("width"), allow_auto=True)
    if not input_width.is_valid:
        logger.debug("Cannot apply layout to <%s>: invalid width %r", node.name, node.get("width"))
        return False

    input_height = CssLength(
        node.get("height"),
        allow_auto=layout == "fixed-height",
        allow_fluid=layout == "fluid",
    )
    if not input_height.is_valid:
        logger.debug("Cannot apply layout to <%s>: invalid height %r", node.name, node.get("height"))
        return False

    width = calculate_width(layout, input_width, node.name)
    height = calculate_height(layout, input_height, node.name)
    layout = calculate_layout(layout, width, height, node.get("sizes"), node.get("heights"))

    if layout not in SUPPORTED_LAYOUTS:
        logger.debug("Cannot apply layout to <%s>: unsupported layout %r", node.name, layout)
        return False
    if not _has_required_dimensions(layout, width, height):
        logger.debug("Cannot apply layout to <%s>: %s layout is missing a dimension", node.name, layout)
        return False

    _apply(layout, width, height, node, document)
    return True


def _apply(layout: str, width: CssLength, height: CssLength, node: Tag, document: BeautifulSoup) -> None:
    classes = [f"i-amphtml-layout-{layout}"]
    if layout in SIZE_DEFINED_LAYOUTS:
        classes.append("i-amphtml-layout-size-defined")
    existing_class = node.get("class")
    if existing_class:
        classes.insert(0, existing_class)
    node["class"] = " ".join(classes)

    styles = ""
    if layout == "nodisplay":
        node["hidden"] = "hidden"
    elif layout == "fixed":
        styles = f"width:{width};height:{height};"
    elif layout == "fixed-height":
        styles = f"height:{height};"
    elif layout == "flex-item":
        if width.is_numeric:
            styles += f"width:{width};"
        if height.is_numeric:
            styles += f"height:{height};"
    elif layout == "responsive":
        _add_sizer(node, width, height, document)

    style = styles + (node.get("style") or "")
    if style:
        node["style"] = style

    node["i-amphtml-layout"] = layout


def _add_sizer(node: Tag, width: CssLength, height: CssLength, document: BeautifulSoup) -> None:
    """Insert an ``<i-amphtml-sizer>`` that reserves the element's aspect ratio."""
    if width.numeral == 0 or width.unit != height.unit:
        return
    padding = round(height.numeral / width.numeral * 100, 4)
    sizer = create_element(
        document,
        "i-amphtml-sizer",
        {"style": f"display:block;padding-top:{_format_number(padding)}%;"},
    )
    insert_first(node, sizer)
