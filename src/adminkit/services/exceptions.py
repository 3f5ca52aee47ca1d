# adminkit/services/exceptions.py

class ServiceException(Exception):
    """Base exception for all admin layer errors."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

class NotFoundError(ServiceException):
    """Raised when an entity slug or a record cannot be found."""
    pass

class FormConfigurationError(ServiceException):
    """Raised when an entity or a field tree node is missing a required property."""
    pass

class WidgetNotFoundError(FormConfigurationError):
    """Raised when a field node refers to a widget that is not registered."""
    pass

class ActionNotFoundError(ServiceException):
    """Raised when a triggered button's action cannot be resolved on the model."""
    pass

class FormPersistenceError(ServiceException):
    """Raised when the transactional save of a form fails. Nothing of the save is persisted."""
    pass

class RelatedRecordNotFoundError(FormPersistenceError):
    """Raised when a submitted relation identifier does not resolve to a record."""
    pass
