from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class StructureStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"


class SafetyStatus(str, Enum):
    SAFE = "safe"
    UNSAFE = "unsafe"
    ERROR = "error"
    NO_REDIRECT = "no_redirect"
    INVALID = "invalid"


class RedirectStatus(str, Enum):
    CLEAN = "clean"
    SUSPICIOUS = "suspicious"
    ERROR = "error"
    INVALID = "invalid"


class StructureResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: StructureStatus
    domain: Optional[str] = None
    message: Optional[str] = None


class SafetyResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: SafetyStatus
    positives: int = Field(default=0, ge=0)
    total_scans: int = Field(default=0, ge=0)
    message: Optional[str] = None

    @model_validator(mode="after")
    def check_verdict(self):
        if self.status == SafetyStatus.UNSAFE and self.positives == 0:
            raise ValueError("an unsafe verdict needs at least one positive")
        if self.status == SafetyStatus.SAFE and self.positives > 0:
            raise ValueError("a safe verdict cannot have positives")
        return self

    @classmethod
    def from_report(cls, positives: int, total: int) -> "SafetyResult":
        status = SafetyStatus.UNSAFE if positives > 0 else SafetyStatus.SAFE
        return cls(status=status, positives=positives, total_scans=total)

    @classmethod
    def error(cls, message: Optional[str] = None) -> "SafetyResult":
        return cls(status=SafetyStatus.ERROR, message=message)


class RedirectResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: RedirectStatus
    redirect_chain: List[str]
    status_codes: List[int] = []
    final_url_safety: SafetyResult
    message: Optional[str] = None


class UrlCheckResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    structure: StructureResult
    safety: SafetyResult
    redirects: RedirectResult


class ErrorResponse(BaseModel):
    error: str


class HealthResponse(BaseModel):
    status: str
    cache_entries: int
