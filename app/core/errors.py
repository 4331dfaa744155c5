"""
Error taxonomy shared by the services.

Every failure is converted to a user-visible message at the point of the
remote call. The subclasses only fix the status code; the detail string is
passed through to the caller as ``{"error": detail}``.
"""

from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Missing inviter, invite or team"""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ValidationFailed(HTTPException):
    """Short password, short or duplicate team name, oversized post, rejected insert"""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UpstreamError(HTTPException):
    """Supabase store or auth call failed; message is the provider's own"""

    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


def error_message(exc: Exception) -> str:
    """Provider message of a Supabase error; postgrest's APIError stringifies to its raw dict"""
    return getattr(exc, "message", None) or str(exc)
