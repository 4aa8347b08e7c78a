"""Tree primitives used by the SSR pass, expressed over BeautifulSoup.

The pass only needs a handful of operations on the parsed document:
first-child-by-tag lookup, document-order stepping, an ancestor test,
element creation, insertion at the head of a child list and removal.
They live here so the transform itself reads as plain control flow.
"""

from typing import Iterator, Optional

from bs4 import BeautifulSoup, Tag
from bs4.element import PageElement

# ``html.parser`` keeps the markup exactly as written (no implied elements,
# no re-parenting of head content), which is what a transform over an
# already-authored AMP document wants.  ``lxml`` is accepted as a faster
# alternative for well-formed input.
DEFAULT_PARSER = "html.parser"
SUPPORTED_PARSERS = ("html.parser", "lxml")


def parse_document(html: str, parser: str = DEFAULT_PARSER) -> BeautifulSoup:
    """Parse *html* into a document tree.

    ``class`` is kept as a plain string rather than split into a list so that
    every attribute value in the tree is a ``str``.

    Raises:
        ValueError: if *parser* is unknown or the document has no
            ``html``/``head``/``body`` structure.
    """
    if parser not in SUPPORTED_PARSERS:
        raise ValueError(f"Parser '{parser}' is not supported.")

    soup = BeautifulSoup(html, parser, multi_valued_attributes=None)

    html_tag = first_child_by_tag(soup, "html")
    if html_tag is None:
        raise ValueError("Document has no <html> element.")
    for name in ("head", "body"):
        if first_child_by_tag(html_tag, name) is None:
            raise ValueError(f"Document has no <{name}> element.")
    return soup


def serialize(document: BeautifulSoup) -> str:
    return document.decode(formatter="minimal")


def first_child_by_tag(node: Tag, name: str) -> Optional[Tag]:
    """Return the first direct child of *node* named *name*, or ``None``."""
    for child in node.contents:
        if isinstance(child, Tag) and child.name == name:
            return child
    return None


def child_elements(node: Tag) -> Iterator[Tag]:
    """Yield the direct element children of *node* in sibling order."""
    child = node.contents[0] if node.contents else None
    while child is not None:
        if isinstance(child, Tag):
            yield child
        child = child.next_sibling


def next_node(node: PageElement, root: Optional[Tag] = None) -> Optional[PageElement]:
    """Return the node following *node* in document order.

    Pre-order, depth first: the first child if there is one, otherwise the
    next sibling, otherwise the next sibling of the closest ancestor that has
    one.  The walk never leaves the subtree rooted at *root*.
    """
    if isinstance(node, Tag) and node.contents:
        return node.contents[0]

    current = node
    while current is not None and current is not root:
        if current.next_sibling is not None:
            return current.next_sibling
        current = current.parent
    return None


def has_ancestor_with_tag(node: PageElement, name: str) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.name == name:
            return True
        parent = parent.parent
    return False


def create_element(document: BeautifulSoup, name: str, attrs: Optional[dict] = None) -> Tag:
    return document.new_tag(name, attrs=attrs or {})


def insert_first(parent: Tag, node: PageElement) -> None:
    """Insert *node* before the first child of *parent* (or as its only child)."""
    parent.insert(0, node)


def remove(node: PageElement) -> None:
    node.extract()
