"""Preform - compose structured commit messages in a terminal form."""

__version__ = "0.3.0"

# Re-export core components for convenience
from .composer import compose_message
from .config import PreformConfig, configure_logging
from .exceptions import ConfigError, FileAccessError, PreformError, ValidationError
from .options import add_type_option, load_type_options
from .tui import FormApp, FormField, FormState, FormStatus, InputDispatcher, run_form

__all__ = [
    "__version__",
    # Form
    "FormApp",
    "FormField",
    "FormState",
    "FormStatus",
    "InputDispatcher",
    "run_form",
    "compose_message",
    # Options
    "load_type_options",
    "add_type_option",
    # Config
    "PreformConfig",
    "configure_logging",
    # Exceptions
    "PreformError",
    "ConfigError",
    "FileAccessError",
    "ValidationError",
]
