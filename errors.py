class DomainError(Exception):
    """ Base class of every error the write path raises on purpose. """
    status_code = 400

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []

    def to_dict(self):
        payload = {'error': self.message}
        if self.errors:
            payload['fields'] = [
                {'field': field, 'message': message} for field, message in self.errors
            ]
        return payload


class ValidationError(DomainError):
    """ One or more fields failed validation. `errors` holds (field, message) pairs. """
    status_code = 400

    def __init__(self, errors):
        errors = list(errors)
        message = errors[0][1] if len(errors) == 1 else 'Validation failed'
        super().__init__(message, errors)

    @property
    def fields(self):
        return [field for field, _ in self.errors]


class ConflictError(DomainError):
    """ A unique value (email, phone, slug, ...) is already taken. """
    status_code = 409

    def __init__(self, message, field=None):
        super().__init__(message, [(field, message)] if field else None)
        self.field = field


class InvariantError(DomainError):
    """ A rule spanning several records (booking participants, review author) is broken. """
    status_code = 422


class TransitionError(DomainError):
    """ A lifecycle move that the current state does not allow. """
    status_code = 409


class NotFoundError(DomainError):
    status_code = 404


class AuthError(DomainError):
    status_code = 401


class PermissionDenied(DomainError):
    status_code = 403
