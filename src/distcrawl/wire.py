"""RPC messages exchanged between the master and workers.

Field names are part of the wire contract; rename nothing here without
updating every deployed worker.
"""

from typing import Annotated

from pydantic import BaseModel, Field

UINT32_MAX = 2**32 - 1

UInt32 = Annotated[int, Field(ge=0, le=UINT32_MAX)]


class CrawlRequest(BaseModel):
    url: str = Field(min_length=1)
    doc_id: UInt32


class CrawlResponse(BaseModel):
    doc_id: UInt32 = 0
    url: str = ""
    tokens: list[str] = []
    raw_text: str = ""
    discovered_urls: list[str] = []
    success: bool = False
    error: str = ""


class StatusRequest(BaseModel):
    pass


class StatusResponse(BaseModel):
    pages_crawled: UInt32 = 0
    pages_failed: UInt32 = 0
