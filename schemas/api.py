"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import date, datetime


class ChannelFailureInfo(BaseModel):
    """Terminal error recorded against one channel"""
    channel_id: str
    error_type: str
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)


class SyncRunResponse(BaseModel):
    """Outcome of one sync run"""
    status: str = Field(..., description="success, partial_success, failed or cancelled")
    run_date: date
    started_at: datetime
    finished_at: Optional[datetime] = None
    records_written: int = 0
    succeeded: List[str] = Field(default_factory=list)
    failed: List[ChannelFailureInfo] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "status": "partial_success",
            "run_date": "2024-01-15",
            "started_at": "2024-01-15T00:00:00Z",
            "finished_at": "2024-01-15T00:00:12Z",
            "records_written": 20,
            "succeeded": ["UC_x5XG1OV2P6uZZ5FSM9Ttw", "UCBR8-60-B28hp2BmDPdntcQ"],
            "failed": [
                {
                    "channel_id": "UCdoesnotexist",
                    "error_type": "ChannelNotFoundError",
                    "message": "Channel not found: UCdoesnotexist",
                    "context": {"status_code": 404}
                }
            ],
            "skipped": []
        }
    })


class SyncErrorResponse(BaseModel):
    """Run-level failure returned to the caller"""
    status: str = "failed"
    error_type: str
    message: str
    result: Optional[SyncRunResponse] = None


class InfoResponse(BaseModel):
    """Build and runtime information"""
    version: str
    environment: str
    python_version: str
    platform: str
