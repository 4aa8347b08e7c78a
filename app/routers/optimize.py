import logging

import httpx
from fastapi import APIRouter, HTTPException, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.models.optimize_request import OptimizeRequest, OptimizeUrlRequest
from app.models.optimize_response import OptimizeResponse
from app.services.fetcher import FetchedDocument, fetch_document
from app.services.optimizer import optimize_html

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter(prefix="/optimize", tags=["Optimize"])


@router.post(
    "",
    response_model=OptimizeResponse,
    summary="Server-side render an AMP document",
    description=(
        "Applies static layout to the AMP custom elements of the posted "
        "document and removes the runtime boilerplate when nothing in the "
        "document still needs it.\n\n"
        "Documents that were already processed are returned unchanged."
    ),
)
@limiter.limit("30/minute")
async def optimize(request: Request, body: OptimizeRequest) -> OptimizeResponse:
    logger.info("Optimize request received", extra={"size": len(body.html), "parser": body.parser})
    return _optimize(body.html, body.parser)


@router.post(
    "/url",
    response_model=OptimizeResponse,
    summary="Fetch and server-side render an AMP page",
)
@limiter.limit("10/minute")
async def optimize_url(request: Request, body: OptimizeUrlRequest) -> OptimizeResponse:
    """Download the AMP page at *url* and return its server-side rendered form.

    The response carries the URL the document was finally served from.
    """
    url = str(body.url)
    logger.info("Optimize URL request received", extra={"url": url, "parser": body.parser})

    document = await _fetch(url)
    if document.url != url:
        logger.info("Followed redirects from %s to %s", url, document.url)
    response = _optimize(document.html, body.parser)
    return response.model_copy(update={"url": document.url})


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _optimize(html: str, parser: str) -> OptimizeResponse:
    try:
        result = optimize_html(html, parser)
    except ValueError as exc:
        logger.warning("Rejected document: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc))

    return OptimizeResponse(
        html=result.html,
        already_transformed=result.already_transformed,
        boilerplate_removed=result.boilerplate_removed,
    )


async def _fetch(url: str) -> FetchedDocument:
    """Fetch *url* and propagate errors as HTTP exceptions."""
    try:
        return await fetch_document(url)
    except ValueError as exc:
        logger.warning("Invalid, blocked or non-HTML URL: %s – %s", url, exc)
        raise HTTPException(status_code=400, detail=str(exc))
    except httpx.TimeoutException:
        logger.error("Timeout fetching URL: %s", url)
        raise HTTPException(status_code=504, detail="The target URL timed out.")
    except httpx.HTTPStatusError as exc:
        logger.error("HTTP error fetching URL %s: %s", url, exc)
        raise HTTPException(
            status_code=502, detail=f"Target URL returned HTTP {exc.response.status_code}."
        )
    except (httpx.RequestError, RuntimeError) as exc:
        logger.error("Error fetching URL %s: %s", url, exc)
        raise HTTPException(status_code=502, detail=str(exc))
