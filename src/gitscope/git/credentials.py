"""Credentials for cloning and fetching working copies."""

from __future__ import annotations

import os
import subprocess
import threading
from typing import TYPE_CHECKING
from urllib.parse import urlparse

import pygit2

from gitscope.git.errors import TransferAborted

if TYPE_CHECKING:
    from pygit2.enums import CredentialType

# libgit2 calls back again after a rejected credential; stop after this many
MAX_ATTEMPTS = 2
HELPER_TIMEOUT_SEC = 30


def _helper_request(url: str) -> str:
    """Request body for ``git credential fill`` (blank line terminated)."""
    parsed = urlparse(url)
    fields = {"protocol": parsed.scheme, "host": parsed.hostname or parsed.netloc}
    if path := parsed.path.lstrip("/"):
        fields["path"] = path
    return "".join(f"{key}={value}\n" for key, value in fields.items()) + "\n"


def credential_fill(url: str) -> tuple[str, str] | None:
    """Ask the system git credential helper for a username and password.

    Returns None when git is missing, the helper fails or times out, or it
    answers without both fields. See https://git-scm.com/docs/git-credential.
    """
    try:
        result = subprocess.run(
            ["git", "credential", "fill"],
            input=_helper_request(url),
            capture_output=True,
            text=True,
            timeout=HELPER_TIMEOUT_SEC,
            check=False,
            # Never block on an interactive prompt
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
    except (subprocess.TimeoutExpired, OSError):
        return None
    if result.returncode != 0:
        return None

    answer = dict(
        line.split("=", 1) for line in result.stdout.splitlines() if "=" in line
    )
    if "username" in answer and "password" in answer:
        return answer["username"], answer["password"]
    return None


class SystemCredentialCallback(pygit2.RemoteCallbacks):
    """RemoteCallbacks for anonymous, token and helper-backed access.

    SSH remotes authenticate through the running SSH agent. HTTPS remotes
    try the configured API token once, then the git credential helper.
    Setting ``abort`` stops a running clone or fetch at its next progress
    report.
    """

    def __init__(
        self, token: str | None = None, abort: threading.Event | None = None
    ) -> None:
        super().__init__()
        self._token = token
        self._abort = abort
        self._attempts = 0

    def transfer_progress(self, stats: pygit2.remotes.TransferProgress) -> None:  # noqa: ARG002
        if self._abort is not None and self._abort.is_set():
            raise TransferAborted()

    def credentials(  # type: ignore[override]
        self,
        url: str,
        username_from_url: str | None,
        allowed_types: CredentialType,
    ) -> pygit2.Username | pygit2.UserPass | pygit2.Keypair | None:
        self._attempts += 1
        if self._attempts > MAX_ATTEMPTS:
            return None

        if allowed_types & pygit2.enums.CredentialType.SSH_KEY:
            return pygit2.KeypairFromAgent(username_from_url or "git")

        if allowed_types & pygit2.enums.CredentialType.USERPASS_PLAINTEXT:
            if self._token and self._attempts == 1:
                return pygit2.UserPass("x-access-token", self._token)
            if pair := credential_fill(url):
                return pygit2.UserPass(*pair)

        return None


def get_default_callbacks(
    token: str | None = None, abort: threading.Event | None = None
) -> SystemCredentialCallback:
    return SystemCredentialCallback(token, abort)
