from pydantic import BaseModel, Field


class ExtractRequest(BaseModel):
    # Plain string: validation happens in the aggregator so that bad input
    # comes back as an "Error: ..." result instead of a 422.
    url: str = Field(description="URL of the website to extract content from.")
