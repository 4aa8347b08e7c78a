from typing import Optional

from pydantic import BaseModel


class OptimizeResponse(BaseModel):
    html: str
    already_transformed: bool
    """True when the input already carried ``<html i-amphtml-layout>``, so the
    pass made no changes.  The document is still re-serialized."""
    boilerplate_removed: bool
    url: Optional[str] = None
    """For ``/optimize/url``: the URL the document was served from, after
    redirects."""
