"""Entry point tying parsing, the SSR pass and serialization together."""

from typing import NamedTuple

from app.services.dom import DEFAULT_PARSER, first_child_by_tag, parse_document, serialize
from app.services.ssr import LAYOUT_MARKER, NO_BOILERPLATE_MARKER, transform


class OptimizeResult(NamedTuple):
    html: str
    already_transformed: bool
    boilerplate_removed: bool


def optimize_html(html: str, parser: str = DEFAULT_PARSER) -> OptimizeResult:
    """Run server-side rendering over *html* and return the serialized result.

    Raises:
        ValueError: if *html* is not a complete ``html``/``head``/``body``
            document or *parser* is unsupported.
    """
    document = parse_document(html, parser)
    html_tag = first_child_by_tag(document, "html")
    already_transformed = html_tag.has_attr(LAYOUT_MARKER)

    transform(document)

    return OptimizeResult(
        html=serialize(document),
        already_transformed=already_transformed,
        boilerplate_removed=html_tag.has_attr(NO_BOILERPLATE_MARKER),
    )
