class WorkbookAnalysisError(ValueError):
    """Workbook-level failure: the whole analysis is aborted."""


class UnsupportedFileTypeError(WorkbookAnalysisError):
    pass


class UnreadableContainerError(WorkbookAnalysisError):
    pass


class NoValidSheetsError(WorkbookAnalysisError):
    def __init__(self, message: str = "No valid sheets found in workbook"):
        super().__init__(message)


class LLMUnavailableError(RuntimeError):
    pass


class WorkbookSummaryLLMError(RuntimeError):
    pass
