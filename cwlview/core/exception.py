from __future__ import annotations


class WorkflowException(Exception):
    pass


class WorkflowDefinitionException(WorkflowException):
    pass


class CyclicReferenceException(WorkflowDefinitionException):
    pass


class WorkflowExecutionException(WorkflowException):
    pass


class LoaderException(WorkflowException):
    pass


class CWLValidationException(WorkflowException):
    pass


class WorkflowNotFoundException(CWLValidationException):
    pass


class SizeLimitExceededException(WorkflowException):
    def __init__(self, path: str, size: int, limit: int):
        super().__init__(
            f"File '{path}' is over singleFileSizeLimit - {size} bytes/{limit} bytes"
        )
        self.path: str = path
        self.size: int = size
        self.limit: int = limit


class UnresolvedReferenceWarning(UserWarning):
    def __init__(self, element: str, reference: str, reason: str):
        super().__init__(f"Reference `{reference}` of `{element}` {reason}")
        self.element: str = element
        self.reference: str = reference
        self.reason: str = reason
