"""Error taxonomy shared by the services and the HTTP layer."""


class ApiError(Exception):
    status_code = 500

    def __init__(self, message, field=None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self):
        body = {"message": self.message}
        if self.field:
            body["field"] = self.field
        return body


class ValidationError(ApiError):
    status_code = 400


class AvailabilityConflict(ValidationError):
    pass


class NotFound(ApiError):
    status_code = 404


class Unauthorized(ApiError):
    status_code = 401


class Forbidden(ApiError):
    status_code = 403


class Conflict(ApiError):
    status_code = 409


class InternalError(ApiError):
    status_code = 500
