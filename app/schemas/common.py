from typing import Optional, Any, Dict
from pydantic import BaseModel


class ResponseModel(BaseModel):
    """Standard API response model"""
    success: bool
    data: Optional[Any] = None
    message: Optional[str] = None
    error: Optional[Dict[str, Any]] = None


class ErrorBody(BaseModel):
    code: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Envelope for every failed request: {success: false, message, error: {code, details}}"""
    success: bool = False
    message: str
    error: ErrorBody
