from __future__ import annotations


class ApiError(Exception):
    def __init__(self, *, status_code: int, code: str, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message


class InvalidArgumentError(ApiError):
    def __init__(self, message: str, *, code: str = "INVALID_ARGUMENT") -> None:
        super().__init__(status_code=400, code=code, message=message)


class UnauthorizedError(ApiError):
    def __init__(self, message: str, *, code: str = "UNAUTHORIZED") -> None:
        super().__init__(status_code=401, code=code, message=message)


class NotFoundError(ApiError):
    def __init__(self, message: str, *, code: str = "NOT_FOUND") -> None:
        super().__init__(status_code=404, code=code, message=message)


class InvalidStateError(ApiError):
    def __init__(self, message: str, *, code: str = "INVALID_STATE") -> None:
        super().__init__(status_code=409, code=code, message=message)


class ConflictError(ApiError):
    def __init__(self, message: str, *, code: str = "CONFLICT") -> None:
        super().__init__(status_code=409, code=code, message=message)


class PersistenceError(ApiError):
    def __init__(self, message: str) -> None:
        super().__init__(status_code=500, code="PERSISTENCE_ERROR", message=message)
