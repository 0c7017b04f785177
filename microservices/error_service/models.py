"""
Error Service Data Models
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from core.responses import CamelModel

MAX_MESSAGE_LENGTH = 500
MAX_STACK_LENGTH = 2000
MAX_CONTEXT_SIZE = 5000
RECENT_ERRORS_LIMIT = 10


class ErrorType(str, Enum):
    """Where the error was raised"""
    CLIENT = "client"
    SERVER = "server"
    API = "api"
    DATABASE = "database"
    AUTH = "auth"
    PAYMENT = "payment"


class ErrorSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorLog(CamelModel):
    """Stored error report"""
    id: str
    error_type: ErrorType
    error_message: str
    error_stack: Optional[str] = None
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    url: Optional[str] = None
    user_agent: Optional[str] = None
    severity: ErrorSeverity = ErrorSeverity.MEDIUM
    context: Dict[str, Any] = Field(default_factory=dict)
    resolved: bool = False
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TimeRange(CamelModel):
    start: datetime
    end: datetime


class ErrorMetrics(CamelModel):
    """Dashboard summary of errors reported since a point in time"""
    total: int
    by_type: Dict[str, int]
    by_severity: Dict[str, int]
    resolved: int
    unresolved: int
    error_rate: int = Field(..., description="Errors reported in the last hour")
    recent_errors: List[ErrorLog]
    time_range: TimeRange


class ErrorStatistic(CamelModel):
    """Counts for one (type, severity) pair"""
    error_type: ErrorType
    severity: ErrorSeverity
    count: int
    unresolved: int
    last_seen: Optional[datetime] = None
