"""Server-side rendering pass for AMP documents.

:func:`transform` pre-computes the layout of every AMP custom element it can
and, when nothing in the document still depends on the runtime boilerplate,
removes that boilerplate from ``<head>``.

The pass mutates the document in place and is a no-op on a document it has
already processed (``<html i-amphtml-layout>``).
"""

import logging
from typing import List

from bs4 import BeautifulSoup, Tag

from app.services.dom import (
    child_elements,
    create_element,
    first_child_by_tag,
    has_ancestor_with_tag,
    insert_first,
    next_node,
    remove,
)
from app.services.extensions import is_custom_element, is_render_delaying_extension
from app.services.layout import apply_layout

logger = logging.getLogger(__name__)

LAYOUT_MARKER = "i-amphtml-layout"
NO_BOILERPLATE_MARKER = "i-amphtml-no-boilerplate"
RUNTIME_MARKER = "amp-runtime"
BOILERPLATE_MARKER = "amp-boilerplate"

# Any of these on a custom element means it resizes at runtime, which the
# boilerplate's CSS is there to support.
_RESPONSIVE_ATTRS = ("heights", "media", "sizes")


def transform(document: BeautifulSoup) -> None:
    """Apply server-side rendering to *document* in place."""
    html = first_child_by_tag(document, "html")
    body = first_child_by_tag(html, "body")
    head = first_child_by_tag(html, "head")

    if html.has_attr(LAYOUT_MARKER):
        logger.debug("Document already server-side rendered; skipping")
        return
    html[LAYOUT_MARKER] = ""

    can_remove_boilerplate = _apply_layouts(body, document)

    runtime_marker = create_element(document, "style", {RUNTIME_MARKER: ""})
    insert_first(head, runtime_marker)

    can_remove_boilerplate = _check_head_extensions(head, can_remove_boilerplate)

    if not can_remove_boilerplate:
        logger.info("Layout applied; boilerplate kept")
        return

    html[NO_BOILERPLATE_MARKER] = ""
    removed = _remove_boilerplate(head)
    logger.info("Layout applied; removed %d boilerplate node(s)", removed)


def _apply_layouts(body: Tag, document: BeautifulSoup) -> bool:
    """Apply static layout to every custom element under *body*.

    Returns whether the boilerplate may still be removed once the body has
    been scanned.  Every element gets its layout attempt even after the
    answer has become False.
    """
    can_remove_boilerplate = True
    node = next_node(body, body)
    while node is not None:
        if not _visit(node, document):
            can_remove_boilerplate = False
        # A sizer inserted by apply_layout is the next node; it is not a
        # custom element and is skipped like any other plain tag.
        node = next_node(node, body)
    return can_remove_boilerplate


def _visit(node, document: BeautifulSoup) -> bool:
    """Process a single body node; False when it rules out boilerplate removal."""
    if not is_custom_element(node):
        return True

    # Markup inside <template> is inert.
    if has_ancestor_with_tag(node, "template"):
        return True

    can_remove = True
    if any(node.has_attr(attr) for attr in _RESPONSIVE_ATTRS):
        logger.debug("<%s> uses responsive attributes; boilerplate required", node.name)
        can_remove = False

    # amp-experiment only delays rendering when the tag is actually used, so
    # it is counted here instead of through its extension script in <head>.
    if node.name == "amp-experiment":
        can_remove = False

    # amp-audio needs the browser's dimensions: leave its layout alone.
    if node.name == "amp-audio":
        return False

    if not apply_layout(node, document):
        can_remove = False
    return can_remove


def _check_head_extensions(head: Tag, can_remove_boilerplate: bool) -> bool:
    for node in child_elements(head):
        # Already accounted for by the body scan.
        if node.name == "script" and node.get("custom-element") == "amp-experiment":
            continue
        if is_render_delaying_extension(node):
            logger.debug("Render-delaying extension %s declared", node.get("custom-element"))
            can_remove_boilerplate = False
    return can_remove_boilerplate


def _is_boilerplate(node: Tag) -> bool:
    # <noscript> in <head> is assumed to only ever hold the boilerplate.
    if node.name == "noscript":
        return True
    return node.name == "style" and node.has_attr(BOILERPLATE_MARKER)


def _remove_boilerplate(head: Tag) -> int:
    """Remove the boilerplate from *head* and return how many nodes went."""
    to_remove: List[Tag] = [node for node in child_elements(head) if _is_boilerplate(node)]
    for node in to_remove:
        remove(node)
    return len(to_remove)
