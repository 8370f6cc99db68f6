from fastapi import HTTPException, status
from carealert.messages import ja

class AppError(Exception):
    """Base application error class."""
    pass

class DatabaseError(AppError):
    """For database related errors."""
    pass

class AlertCheckError(AppError):
    """When an alert check or batch name is not registered."""
    pass

# Common HTTP-related exceptions used across the API endpoints
class NotFoundException(HTTPException):
    def __init__(self, detail: str = ja.EXC_NOT_FOUND):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)

class UnauthorizedException(HTTPException):
    def __init__(self, detail: str = ja.EXC_UNAUTHORIZED):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )

class InternalServerException(HTTPException):
    def __init__(self, detail: str = ja.EXC_INTERNAL_ERROR):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
