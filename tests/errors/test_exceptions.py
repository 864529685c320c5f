"""Tests for the provisioning error taxonomy."""

from __future__ import annotations

from git import GitCommandError

from pinned_checkout.error_handling import (
    ConfigurationError,
    FetchError,
    ProvisionError,
    RemovalError,
)


def test_fetch_error_passes_git_stderr_through() -> None:
    cause = GitCommandError(
        ["git", "clone"], 128, stderr="fatal: unable to access 'https://example.com/': Could not resolve host"
    )

    error = FetchError("clone failed", repository_url="https://example.com/", reference="v1", cause=cause)

    assert error.diagnostic == "fatal: unable to access 'https://example.com/': Could not resolve host"
    assert error.error_code == "FETCH_FAILED"
    assert error.context == {"repository_url": "https://example.com/", "reference": "v1"}


def test_removal_error_uses_os_error_text() -> None:
    cause = PermissionError(13, "Permission denied", "/srv/deps")

    error = RemovalError("cannot remove", path="/srv/deps", cause=cause)

    assert error.diagnostic == "[Errno 13] Permission denied: '/srv/deps'"
    assert error.error_code == "REMOVAL_FAILED"


def test_diagnostic_falls_back_to_message() -> None:
    assert ProvisionError("plain failure").diagnostic == "plain failure"


def test_string_form_includes_code_and_context() -> None:
    error = ConfigurationError("bad depth", config_section="source", config_key="depth")

    assert str(error) == (
        "bad depth | Code: INVALID_CONFIG | Context: config_section=source, config_key=depth"
    )


def test_to_dict() -> None:
    error = RemovalError("cannot remove", path="/srv/deps", cause=OSError("busy"))

    assert error.to_dict() == {
        "error_type": "RemovalError",
        "message": "cannot remove",
        "error_code": "REMOVAL_FAILED",
        "context": {"path": "/srv/deps"},
        "cause": "busy",
    }


def test_all_errors_share_the_base_class() -> None:
    for error_type in (RemovalError, FetchError, ConfigurationError):
        assert issubclass(error_type, ProvisionError)


def test_missing_details_are_left_out_of_context() -> None:
    error = FetchError("clone failed", repository_url="https://example.com/")

    assert error.context == {"repository_url": "https://example.com/"}
    assert error.reference is None
    assert str(error) == "clone failed | Code: FETCH_FAILED | Context: repository_url=https://example.com/"


def test_base_error_has_no_code() -> None:
    error = ProvisionError("plain failure", cause=OSError("busy"))

    assert error.error_code is None
    assert str(error) == "plain failure | Caused by: busy"
