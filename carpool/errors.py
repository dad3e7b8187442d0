from fastapi import Request
from fastapi.responses import JSONResponse

HTTP_STATUS = {
    "invalid-argument": 400,
    "failed-precondition": 400,
    "unauthenticated": 401,
    "not-found": 404,
    "internal": 500,
}


class CallableError(Exception):
    """Typed failure returned to the caller of a callable function."""

    def __init__(self, code, message):
        if code not in HTTP_STATUS:
            raise ValueError(f"Unknown callable error code: {code}")
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self):
        return HTTP_STATUS[self.code]


async def callable_error_handler(request: Request, exc: CallableError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"status": exc.code, "message": exc.message}},
    )
