from typing import List

from pydantic import BaseModel


class ExtractResponse(BaseModel):
    url: str
    markdown: str
    is_error: bool
    """True when *markdown* holds an ``"Error: ..."`` message instead of content."""


class ServiceInfo(BaseModel):
    name: str
    description: str
    version: str
    capabilities: List[str]
