class FetchError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BrowserLaunchError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class StorageError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TextExtractionError(Exception):
    def __init__(self, message: str, source_document: str | None = None):
        self.message = message
        self.source_document = source_document
        super().__init__(message)


class RasterizationError(Exception):
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class LLMError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class RateLimitError(Exception):
    def __init__(self, service: str):
        self.service = service
        super().__init__(f"Rate limit exceeded for {service}")
