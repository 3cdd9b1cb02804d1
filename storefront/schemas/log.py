from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel

from storefront.schemas.common import ORMBase


class LogResponse(ORMBase):
    id: int
    user_id: Optional[int] = None
    action: str
    resource: str
    status: str
    ip: Optional[str] = None
    ts: datetime
    meta: Optional[Any] = None


class LogPage(BaseModel):
    success: bool = True
    items: List[LogResponse]
    total: int
    page: int
    page_size: int
