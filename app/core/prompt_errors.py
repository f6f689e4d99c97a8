"""Error taxonomy for prompt generation and storage."""


class PromptEngineError(Exception):
    """Base class for prompt engine errors."""


class GatewayError(PromptEngineError):
    """The text-generation call failed, timed out, or returned nothing."""


class OutputValidationError(PromptEngineError):
    """The generator answered but its output could not be decoded."""


class NotFoundError(PromptEngineError):
    """A referenced user or prompt no longer exists."""


class StoreError(PromptEngineError):
    """A prompt store write failed."""
