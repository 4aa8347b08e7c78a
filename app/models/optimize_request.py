from typing import Literal

from pydantic import BaseModel, Field, HttpUrl

ParserName = Literal["html.parser", "lxml"]


class OptimizeRequest(BaseModel):
    html: str = Field(
        min_length=1,
        max_length=10 * 1024 * 1024,
        description="Complete AMP HTML document (with <html>, <head> and <body>).",
    )
    parser: ParserName = "html.parser"
    """HTML parser used to build the document tree.

    ``"html.parser"`` (default)
        Keeps the markup exactly as written.

    ``"lxml"``
        Faster; may normalise the tree for sloppy input.
    """


class OptimizeUrlRequest(BaseModel):
    url: HttpUrl
    parser: ParserName = "html.parser"
