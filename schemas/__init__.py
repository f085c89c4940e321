"""
Pydantic schemas for data validation and serialization.

Schemas:
    user: UserRecord, the typed record built from one line of the user file
    api: API response models (job executions, health)

Usage:
    from schemas.user import UserRecord
    from schemas.api import JobExecutionsResponse, HealthCheckResponse

Example:
    # Column aliases (camelCase) and attribute names both populate a record
    record = UserRecord.model_validate({"id": "1", "firstName": "john"})

    assert record.id == 1
    assert record.first_name == "john"
"""

__all__ = [
    "UserRecord",
    "StepExecutionSummary",
    "JobExecutionSummary",
    "JobExecutionsResponse",
    "HealthCheckResponse",
]
