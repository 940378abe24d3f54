"""promptsmith package entry point."""

from .classifier import TaskShape, classify
from .configuration import (
    SamplingConfig,
    SamplingConfigStore,
    derive_adaptive,
    load_sampling_config,
    validate_field,
)
from .exceptions import (
    ParseError,
    PromptsmithError,
    ProviderError,
    ValidationError,
)
from .history import ConversationHistory
from .orchestrator import RequestOrchestrator, RequestResult
from .recovery import recover_structured_output

__all__ = [
    "ConversationHistory",
    "ParseError",
    "PromptsmithError",
    "ProviderError",
    "RequestOrchestrator",
    "RequestResult",
    "SamplingConfig",
    "SamplingConfigStore",
    "TaskShape",
    "ValidationError",
    "classify",
    "derive_adaptive",
    "load_sampling_config",
    "recover_structured_output",
    "validate_field",
]
