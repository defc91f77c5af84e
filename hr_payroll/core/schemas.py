from typing import Any, Dict, Optional
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from hr_payroll.core.logging import request_id_var


class ErrorInfo(BaseModel):
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class ErrorResponse(BaseModel):
    """Body of every failed request; successful responses use their own response models."""

    success: bool = False
    error: ErrorInfo
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def build(cls, message: str, code: str = "ERROR", details: Optional[Dict[str, Any]] = None) -> "ErrorResponse":
        return cls(
            error=ErrorInfo(code=code, message=message, details=details),
            request_id=request_id_var.get() or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")
