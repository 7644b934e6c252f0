"""
Common schemas used across multiple endpoints.
"""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema exchanged with the dashboard in camelCase."""
    
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class OkResponse(BaseModel):
    """Bare acknowledgement."""
    ok: bool = True


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    
    class Config:
        json_schema_extra = {"example": {"error": "Forbidden"}}


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "healthy"
    version: str = "1.0.0"
