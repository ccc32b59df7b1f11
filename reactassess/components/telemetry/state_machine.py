"""Shell / assistant-active state machine for terminal telemetry.

``transition`` is a pure function: it takes the current state and one
telemetry event and returns the next state plus the effects the event
produced. The surrounding loop in ``parser.py`` only folds effects into
totals, so the classification rules can be tested one event at a time.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Tuple, Union

from ...platform.config import TerminalParserConfig
from .schemas import AssistantSession, Direction, TelemetryEvent

ANSI_PATTERN = re.compile(
    r"[\u001b\u009b][\[()#;?]*(?:[0-9]{1,4}(?:;[0-9]{0,4})*)?[0-9A-ORZcf-nqry=><]"
)
_LINE_BREAK = re.compile(r"(\r\n|\r|\n)")
_GENERIC_PROMPT = re.compile(r"\$\s*$")
_ERASE_CHARS = ("\x7f", "\b")


class ParserMode(str, enum.Enum):
    SHELL = "shell"
    ASSISTANT = "assistant_active"


@dataclass(frozen=True)
class ParserState:
    mode: ParserMode = ParserMode.SHELL
    pending_line: str = ""
    session_start: int = 0
    prompt_count: int = 0
    session_input_chars: int = 0
    session_output_chars: int = 0
    output_since_prompt: int = 0


@dataclass(frozen=True)
class CommandEntered:
    line: str
    timestamp: int


@dataclass(frozen=True)
class SessionOpened:
    timestamp: int


@dataclass(frozen=True)
class PromptSubmitted:
    line: str
    timestamp: int


@dataclass(frozen=True)
class SessionClosed:
    session: AssistantSession


Effect = Union[CommandEntered, SessionOpened, PromptSubmitted, SessionClosed]


def strip_ansi(text: str) -> str:
    return ANSI_PATTERN.sub("", text or "")


def is_assistant_invocation(line: str, command: str) -> bool:
    """``claude`` alone or ``claude <args>``; ``claudette`` does not count."""
    lowered = (line or "").strip().lower()
    if not lowered or not command:
        return False
    return lowered == command or bool(re.match(re.escape(command) + r"\s", lowered))


def is_shell_prompt(clean_output: str, markers: Tuple[str, ...]) -> bool:
    if any(marker in clean_output for marker in markers):
        return True
    return bool(_GENERIC_PROMPT.search(clean_output))


def _apply_keystrokes(pending: str, chunk: str) -> str:
    for char in chunk:
        if char in _ERASE_CHARS:
            pending = pending[:-1]
        else:
            pending += char
    return pending


def _close_session(state: ParserState, end_time: int) -> AssistantSession:
    end = max(end_time, state.session_start)
    return AssistantSession(
        start_time=state.session_start,
        end_time=end,
        duration_ms=end - state.session_start,
        prompt_count=max(state.prompt_count, 1),
        input_chars=state.session_input_chars,
        output_chars=state.session_output_chars,
    )


def _open_session(state: ParserState, timestamp: int) -> ParserState:
    return replace(
        state,
        mode=ParserMode.ASSISTANT,
        session_start=timestamp,
        prompt_count=0,
        session_input_chars=0,
        session_output_chars=0,
        output_since_prompt=0,
    )


def _consume_input(
    state: ParserState,
    event: TelemetryEvent,
    config: TerminalParserConfig,
) -> Tuple[ParserState, List[Effect]]:
    effects: List[Effect] = []
    parts = _LINE_BREAK.split(event.text)
    # re.split with a capture group alternates text, terminator, text, ...
    for index in range(0, len(parts), 2):
        chunk = parts[index]
        terminator = parts[index + 1] if index + 1 < len(parts) else ""

        if state.mode is ParserMode.ASSISTANT:
            state = replace(
                state,
                session_input_chars=state.session_input_chars + len(chunk) + len(terminator),
            )
        state = replace(state, pending_line=_apply_keystrokes(state.pending_line, strip_ansi(chunk)))
        if not terminator:
            continue

        line = state.pending_line.strip()
        state = replace(state, pending_line="")
        if not line:
            continue
        if state.mode is ParserMode.ASSISTANT:
            state = replace(state, prompt_count=state.prompt_count + 1)
            effects.append(PromptSubmitted(line=line, timestamp=event.timestamp))
            continue

        effects.append(CommandEntered(line=line, timestamp=event.timestamp))
        if is_assistant_invocation(line, config.assistant_command):
            state = _open_session(state, event.timestamp)
            effects.append(SessionOpened(timestamp=event.timestamp))
    return state, effects


def _consume_output(
    state: ParserState,
    event: TelemetryEvent,
    config: TerminalParserConfig,
) -> Tuple[ParserState, List[Effect]]:
    if state.mode is not ParserMode.ASSISTANT:
        return state, []

    size = len(event.text)
    state = replace(
        state,
        session_output_chars=state.session_output_chars + size,
        output_since_prompt=state.output_since_prompt + size,
    )
    if (
        is_shell_prompt(strip_ansi(event.text), config.shell_prompt_markers)
        and state.output_since_prompt > config.prompt_debounce_chars
    ):
        session = _close_session(state, event.timestamp)
        return ParserState(pending_line=state.pending_line), [SessionClosed(session=session)]
    return state, []


def transition(
    state: ParserState,
    event: TelemetryEvent,
    config: TerminalParserConfig,
) -> Tuple[ParserState, List[Effect]]:
    if event.direction is Direction.IN:
        return _consume_input(state, event, config)
    return _consume_output(state, event, config)


def finish(state: ParserState, last_timestamp: int) -> Optional[AssistantSession]:
    """Close a session left open at end-of-stream."""
    if state.mode is not ParserMode.ASSISTANT:
        return None
    return _close_session(state, last_timestamp)
