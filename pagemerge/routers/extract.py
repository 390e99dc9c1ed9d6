"""Extraction endpoints: multi-page article to Markdown, and service info."""

import logging

from fastapi import APIRouter, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from pagemerge import __version__
from pagemerge.models.extract_request import ExtractRequest
from pagemerge.models.extract_response import ExtractResponse, ServiceInfo
from pagemerge.services.aggregator import ERROR_PREFIX, extract_content_to_markdown

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()

SERVICE_NAME = "Pagemerge Markdown Converter"
SERVICE_DESCRIPTION = (
    "Extracts article content from websites, follows pagination links, "
    "and converts the merged pages to Markdown."
)
CAPABILITIES = ["extract"]


@router.post(
    "/extract",
    response_model=ExtractResponse,
    summary="Extract a (multi-page) article as Markdown",
    description=(
        "Fetches *url*, extracts its article content, follows \"next page\" "
        "links until the article ends, and returns all pages merged into one "
        "Markdown document.\n\n"
        "Failures do not produce an error status: the `markdown` field then "
        "starts with `Error: ` and `is_error` is true."
    ),
)
@limiter.limit("10/minute")
async def extract_article(request: Request, body: ExtractRequest) -> ExtractResponse:
    """Extract the article at *url* together with all its follow-up pages."""
    logger.info("Handling extract request for URL: %s", body.url)

    markdown = await extract_content_to_markdown(body.url)
    is_error = markdown.startswith(ERROR_PREFIX)
    if is_error:
        logger.warning("Extract failed for %s: %s", body.url, markdown)
    else:
        logger.info("Successfully extracted content from: %s", body.url)

    return ExtractResponse(url=body.url, markdown=markdown, is_error=is_error)


@router.get("/info", response_model=ServiceInfo, summary="Service information")
async def info() -> ServiceInfo:
    return ServiceInfo(
        name=SERVICE_NAME,
        description=SERVICE_DESCRIPTION,
        version=__version__,
        capabilities=CAPABILITIES,
    )
