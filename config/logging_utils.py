"""
Debug Logging Utilities

Provides conditional logging for the auth flows based on the DEBUG setting.
"""

import logging
from datetime import datetime
from config.settings import settings


_debug_logger = logging.getLogger("leafguard.debug")
_debug_handler = logging.StreamHandler()
_debug_handler.setFormatter(
    logging.Formatter('[%(asctime)s] [DEBUG] %(message)s', datefmt='%H:%M:%S')
)
_debug_logger.addHandler(_debug_handler)
_debug_logger.setLevel(logging.DEBUG if settings.DEBUG else logging.WARNING)


def mask_email(email: str) -> str:
    """
    Shorten an email address for log output.

    Args:
        email: Address to mask (e.g., 'ann@x.com')

    Returns:
        Masked address (e.g., 'a**@x.com'); the input unchanged if it has no '@'
    """
    if not email or "@" not in email:
        return email
    local, domain = email.split("@", 1)
    return f"{local[:1]}{'*' * max(len(local) - 1, 1)}@{domain}"


def log_debug(message: str, prefix: str = "") -> None:
    """
    Log a debug message only if DEBUG is set to True in settings.

    Args:
        message: The message to log
        prefix: Optional prefix for categorizing logs (e.g., "AUTH", "GOOGLE")
    """
    if not settings.DEBUG:
        return

    if prefix:
        formatted_message = f"[{prefix}] {message}"
    else:
        formatted_message = message

    _debug_logger.debug(formatted_message)


def log_step(step_name: str, step_number: int = None, total_steps: int = None) -> None:
    """
    Log a step of a multi-step flow (e.g. the Google callback).

    Args:
        step_name: Name/description of the current step
        step_number: Current step number (optional)
        total_steps: Total number of steps (optional)
    """
    if not settings.DEBUG:
        return

    if step_number is not None and total_steps is not None:
        progress = f"[{step_number}/{total_steps}]"
    elif step_number is not None:
        progress = f"[Step {step_number}]"
    else:
        progress = "[STEP]"

    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] {progress} {step_name}")


def log_success(message: str, prefix: str = "") -> None:
    """Log a success message with a checkmark."""
    if not settings.DEBUG:
        return

    timestamp = datetime.now().strftime("%H:%M:%S")
    prefix_str = f"[{prefix}] " if prefix else ""
    print(f"[{timestamp}] {prefix_str}✓ {message}")


def log_error(message: str, prefix: str = "") -> None:
    """Log an error message with an X mark."""
    if not settings.DEBUG:
        return

    timestamp = datetime.now().strftime("%H:%M:%S")
    prefix_str = f"[{prefix}] " if prefix else ""
    print(f"[{timestamp}] {prefix_str}✗ {message}")
