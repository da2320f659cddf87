# putik/schemas/api_result.py
from typing import Any, Optional
from pydantic import BaseModel
from putik.schemas.error_type import ErrorType

class ApiResult(BaseModel):
    '''
    Envelope of every JSON response.

    ok: bool - whether the request did what it asked
    error_type: Optional[ErrorType] - structured error class
    error_message: Optional[str] - human readable explanation
    data: Optional[Any] - payload
    '''
    ok: bool

    error_type: Optional[ErrorType] = None
    error_message: Optional[str] = None

    data: Optional[Any] = None

    @classmethod
    def success(cls, data: Any = None) -> "ApiResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, error_type: ErrorType, message: str, data: Any = None) -> "ApiResult":
        return cls(ok=False, error_type=error_type, error_message=message, data=data)
