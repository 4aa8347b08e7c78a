"""Classification of AMP custom elements and extension scripts."""

from bs4 import Tag
from bs4.element import PageElement

CUSTOM_ELEMENT_PREFIX = "amp-"

# Extensions that hold back first paint until their script has loaded.  A
# document declaring any of these cannot drop the boilerplate.
RENDER_DELAYING_EXTENSIONS = {
    "amp-dynamic-css-classes",
    "amp-experiment",
    "amp-story",
}


def is_custom_element(node: PageElement) -> bool:
    """Return True when *node* is an AMP custom element such as ``<amp-img>``."""
    return isinstance(node, Tag) and node.name.startswith(CUSTOM_ELEMENT_PREFIX)


def is_render_delaying_extension(node: PageElement) -> bool:
    """Return True when *node* is a ``<script custom-element=...>`` for a
    render-delaying extension."""
    if not isinstance(node, Tag) or node.name != "script":
        return False
    return node.get("custom-element") in RENDER_DELAYING_EXTENSIONS
