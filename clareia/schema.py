# clareia/schema.py
from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict


class StatementItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    date: str
    description: str
    amount: float
    category: str
    explanation: str


class ProcessedStatement(BaseModel):
    model_config = ConfigDict(frozen=True)

    statementDate: str
    totalAmount: float
    items: Tuple[StatementItem, ...]


class ErrorResponse(BaseModel):
    error: str
    detail: str
    status: Optional[int] = None   # upstream HTTP status, service errors only


@dataclass(frozen=True)
class UploadedDocument:
    """Raw upload as handed over by the HTTP layer; never written to disk."""

    filename: str
    media_type: str
    content: bytes
