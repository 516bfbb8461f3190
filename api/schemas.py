"""
Pydantic schemas for API request/response models.

The JSON shapes follow the web client: task ids travel as strings, every
text field defaults to an empty string, and errors are ``{"error": "..."}``.
"""

from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Request Schemas

class TaskCreateRequest(BaseModel):
    """Schema for creating new tasks."""
    date: Optional[str] = Field(None, description="Due date as YYYYMMDD; empty means today")
    title: Optional[str] = Field(None, description="Task title (required, non-empty)")
    comment: Optional[str] = Field(None, description="Free-form comment")
    repeat: Optional[str] = Field(None, description="Repeat rule: 'd <n>', 'y', 'm <days> [months]', 'w <weekdays>'")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "date": "20240201",
                "title": "Water the plants",
                "comment": "Balcony first",
                "repeat": "d 3"
            }
        }
    )


class TaskUpdateRequest(TaskCreateRequest):
    """Schema for updating tasks; every field is replaced."""
    id: Optional[Union[int, str]] = Field(None, description="Identifier of the task to update")


# Response Schemas

class TaskResponse(BaseModel):
    """Schema for task response data."""
    id: str
    date: str
    title: str
    comment: str = ""
    repeat: str = ""

    model_config = ConfigDict(from_attributes=True)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, v: Any) -> str:
        return str(v)

    @field_validator("comment", "repeat", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> str:
        return "" if v is None else v


class TaskListResponse(BaseModel):
    """Tasks ordered by date."""
    tasks: List[TaskResponse]


class TaskCreatedResponse(BaseModel):
    id: int


class ErrorResponse(BaseModel):
    """Standard error response format."""
    error: str

    model_config = ConfigDict(
        json_schema_extra={"example": {"error": "Task 42 not found"}}
    )
