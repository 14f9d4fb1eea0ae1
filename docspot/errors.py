"""
Error taxonomy shared by services and routes.
Every error carries the HTTP status the API answers with.
"""


class DocspotError(Exception):
    """Base class for errors surfaced to API clients"""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    @property
    def code(self):
        return type(self).__name__

    def to_dict(self):
        return {
            'success': False,
            'error': self.message,
            'code': self.code,
        }


class ValidationError(DocspotError):
    """Malformed or missing input"""
    status_code = 400

    def __init__(self, message, field=None):
        super().__init__(message)
        self.field = field

    def to_dict(self):
        data = super().to_dict()
        if self.field:
            data['field'] = self.field
        return data


class InvalidTransition(DocspotError):
    """Status change not allowed from the current state or by this actor"""
    status_code = 409


class DoctorNotBookable(DocspotError):
    """Target doctor is missing or not approved"""
    status_code = 422


class NotFound(DocspotError):
    status_code = 404


class PermissionDenied(DocspotError):
    status_code = 403


class CollaboratorUnavailable(DocspotError):
    """The database call failed; nothing was applied"""
    status_code = 503
