"""
Pydantic schemas for API request/response models
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime
from models.base import BatchStatus

# ============================================================================
# Job Execution Schemas
# ============================================================================


class StepExecutionSummary(BaseModel):
    """Counters and timing of one step execution"""
    step_name: str
    status: BatchStatus
    read_count: int = 0
    filter_count: int = 0
    write_count: int = 0
    commit_count: int = 0
    rollback_count: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    exit_description: str = ""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)


class JobExecutionSummary(BaseModel):
    """One job execution as reported by GET /jobs/executions"""
    execution_id: int = Field(..., validation_alias="id")
    job_name: str
    status: BatchStatus
    parameters: Dict[str, Any] = Field(default_factory=dict)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    exit_description: str = ""
    step_executions: List[StepExecutionSummary] = Field(default_factory=list)

    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        json_schema_extra={
            "example": {
                "execution_id": 3,
                "job_name": "importUsers",
                "status": "COMPLETED",
                "parameters": {"startAt": 1760870400000},
                "start_time": "2026-10-19T10:00:00",
                "end_time": "2026-10-19T10:00:02",
                "duration_seconds": 2.1,
                "exit_description": "",
                "step_executions": [
                    {
                        "step_name": "csv-import-step",
                        "status": "COMPLETED",
                        "read_count": 1000,
                        "write_count": 1000,
                        "commit_count": 100
                    }
                ]
            }
        }
    )


class JobExecutionsResponse(BaseModel):
    executions: List[JobExecutionSummary] = Field(default_factory=list)
    total: int = 0
    running: int = 0


# ============================================================================
# Health Check Schemas
# ============================================================================

class HealthCheckResponse(BaseModel):
    """Health check response model"""
    status: str = Field("healthy", description="Overall system status: healthy, degraded, unhealthy")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    database_connected: bool
    job_name: str
    last_job_status: Optional[BatchStatus] = None
    last_job_finished_at: Optional[datetime] = None
    running_executions: int = 0

    model_config = ConfigDict(use_enum_values=True)

    @model_validator(mode="after")
    def determine_status(self):
        """Determine overall health status"""
        if not self.database_connected:
            self.status = "unhealthy"
        elif self.last_job_status == BatchStatus.FAILED:
            self.status = "degraded"
        else:
            self.status = "healthy"
        return self
