"""
Errors raised while provisioning a pinned checkout.
"""

import re
from typing import Any, Dict, Optional

# GitPython wraps raw stderr as "\n  stderr: '...'"
_GIT_STDERR = re.compile(r"^\s*stderr: '(.*)'\s*$", re.DOTALL)


class ProvisionError(Exception):
    """
    A provisioning run failed.

    ``cause`` is the git or filesystem exception that triggered the failure;
    ``diagnostic`` hands its text back unchanged for the command line.
    Keyword arguments other than ``cause`` describe the failing target and
    end up in ``context`` (``None`` values are dropped).
    """

    error_code: Optional[str] = None

    def __init__(self, message: str, cause: Optional[BaseException] = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context: Dict[str, Any] = {
            key: value for key, value in context.items() if value is not None
        }

    @property
    def diagnostic(self) -> str:
        """Text produced by the underlying git or filesystem call."""
        if self.cause is None:
            return self.message
        stderr = getattr(self.cause, "stderr", None)
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        if stderr:
            match = _GIT_STDERR.match(stderr)
            return (match.group(1) if match else stderr).strip()
        return str(self.cause)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": dict(self.context),
            "cause": str(self.cause) if self.cause is not None else None,
        }

    def __str__(self) -> str:
        text = self.message
        if self.error_code:
            text += f" | Code: {self.error_code}"
        if self.context:
            text += " | Context: " + ", ".join(f"{k}={v}" for k, v in self.context.items())
        if self.cause is not None:
            text += f" | Caused by: {self.cause}"
        return text


class RemovalError(ProvisionError):
    """Whatever sits at the target path could not be cleared for the new checkout."""

    error_code = "REMOVAL_FAILED"

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause, path=path)
        self.path = path


class FetchError(ProvisionError):
    """
    The shallow clone did not produce a checkout.

    Unreachable hosts, missing references, refused credentials and full disks
    all land here; the git stderr in ``diagnostic`` tells them apart.
    """

    error_code = "FETCH_FAILED"

    def __init__(
        self,
        message: str,
        repository_url: Optional[str] = None,
        reference: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message, cause=cause, repository_url=repository_url, reference=reference)
        self.repository_url = repository_url
        self.reference = reference


class ConfigurationError(ProvisionError):
    """A config file, environment variable or option held an unusable value."""

    error_code = "INVALID_CONFIG"

    def __init__(
        self,
        message: str,
        config_section: Optional[str] = None,
        config_key: Optional[str] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message, cause=cause, config_section=config_section, config_key=config_key)
        self.config_section = config_section
        self.config_key = config_key
