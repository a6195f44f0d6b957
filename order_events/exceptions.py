from typing import Any


class PipelineError(Exception):
    pass


class OrderValidationError(PipelineError):
    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class RepositoryError(PipelineError):
    pass


class PublishError(PipelineError):
    def __init__(self, message: str, event_type: str | None = None, key: str | None = None) -> None:
        super().__init__(message)
        self.event_type = event_type
        self.key = key


class ParseError(PipelineError):
    pass


class HandlerError(PipelineError):
    pass


class InvalidNotificationError(PipelineError):
    pass


class ChannelError(PipelineError):
    def __init__(self, channel: str, message: str) -> None:
        super().__init__(message)
        self.channel = channel


class ChannelUnavailable(ChannelError):
    pass
