class GradingError(Exception):
    """Base class for everything the grading session raises."""


class GatewayError(GradingError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class LoadError(GradingError):
    """The grading dataset could not be loaded; the view must be abandoned."""


class GradeValidationError(GradingError):
    def __init__(self, message: str, record_id: int | None = None, value=None):
        super().__init__(message)
        self.record_id = record_id
        self.value = value


class SaveError(GradingError):
    """The batch was not persisted. Local edits and dirty flags are untouched."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EditPreconditionError(GradingError):
    pass


class UnknownRecordError(GradingError):
    pass


class SessionBusyError(GradingError):
    pass


class SessionClosedError(GradingError):
    pass
