from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Union

from hackeros.cli.editor import EditorBuffer


class Mode(str, Enum):
    NORMAL = "normal"
    PASSWORD_PROMPT = "password_prompt"
    REMOTE_SESSION = "remote_session"
    REMOTE_SESSION_PASSWORD = "remote_session_password"
    EDITOR = "editor"


@dataclass(slots=True)
class NormalMode:
    kind: ClassVar[Mode] = Mode.NORMAL


@dataclass(slots=True)
class PasswordPromptMode:
    kind: ClassVar[Mode] = Mode.PASSWORD_PROMPT

    deferred: str
    attempts: int = 0
    # objective candidates of the sudo line, checked once the password is accepted
    candidates: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RemoteSessionMode:
    kind: ClassVar[Mode] = Mode.REMOTE_SESSION

    host: str | None = None
    user: str = "anonymous"
    authenticated: bool = False
    cwd: str = "/"
    uploads: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class RemoteSessionPasswordMode:
    kind: ClassVar[Mode] = Mode.REMOTE_SESSION_PASSWORD

    session: RemoteSessionMode


@dataclass(slots=True)
class EditorMode:
    kind: ClassVar[Mode] = Mode.EDITOR

    path: str
    buffer: EditorBuffer


SessionMode = Union[NormalMode, PasswordPromptMode, RemoteSessionMode, RemoteSessionPasswordMode, EditorMode]
