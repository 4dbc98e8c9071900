"""
Edit Commands

This module defines the typed commands parsed from script lines and the
result objects the executor returns for them. Commands are immutable
values: every re-parse produces a fresh list, and the executor never
modifies a command.

Usage:
    cmd = EditCommand.cut(5.0, line_number=12)
    cmd.to_script()        # "CUT 00:00:05.000"

    digest = command_list_hash(commands)
    if digest != last_digest:
        report = executor.execute_all(commands)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Iterable
import hashlib

from script_editor.parsing.timecode import format_timecode


class CommandType(Enum):
    LOAD = "LOAD"
    CUT = "CUT"
    HIDE = "HIDE"
    SHOW = "SHOW"
    DELETE = "DELETE"
    MERGE = "MERGE"
    SPEED = "SPEED"


# Commands that take a start/end pair
RANGE_COMMANDS = (CommandType.HIDE, CommandType.SHOW, CommandType.DELETE,
                  CommandType.MERGE, CommandType.SPEED)


@dataclass(frozen=True)
class EditCommand:
    """
    One parsed command line.

    Only the fields relevant to ``type`` are set. ``line_number`` is kept
    for diagnostics and does not take part in equality or hashing, so a
    command that merely moved within the document compares equal.

    Attributes:
        type: Which command this is
        file_path: Source path (LOAD)
        time: Cut point in seconds (CUT)
        start_time: Range start in seconds (range commands)
        end_time: Range end in seconds (range commands)
        rate: Speed multiplier (SPEED)
        line_number: 1-based line in the document, 0 if synthesized
    """
    type: CommandType
    file_path: Optional[str] = None
    time: Optional[float] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    rate: Optional[float] = None
    line_number: int = field(default=0, compare=False)

    # --- Factories ---

    @classmethod
    def load(cls, file_path: str, line_number: int = 0) -> "EditCommand":
        return cls(CommandType.LOAD, file_path=file_path, line_number=line_number)

    @classmethod
    def cut(cls, time: float, line_number: int = 0) -> "EditCommand":
        return cls(CommandType.CUT, time=time, line_number=line_number)

    @classmethod
    def ranged(cls, command_type: CommandType, start_time: float, end_time: float,
               line_number: int = 0) -> "EditCommand":
        """Build HIDE/SHOW/DELETE/MERGE from a keyword and a range."""
        if command_type not in RANGE_COMMANDS or command_type is CommandType.SPEED:
            raise ValueError(f"{command_type.value} is not a plain range command")
        return cls(command_type, start_time=start_time, end_time=end_time, line_number=line_number)

    @classmethod
    def speed(cls, rate: float, start_time: float, end_time: float,
              line_number: int = 0) -> "EditCommand":
        return cls(CommandType.SPEED, rate=rate, start_time=start_time,
                   end_time=end_time, line_number=line_number)

    # --- Text forms ---

    def to_script(self) -> str:
        """Render the canonical script line for this command."""
        if self.type is CommandType.LOAD:
            return f"LOAD {self.file_path}"
        if self.type is CommandType.CUT:
            return f"CUT {format_timecode(self.time)}"
        span = f"{format_timecode(self.start_time)} {format_timecode(self.end_time)}"
        if self.type is CommandType.SPEED:
            return f"SPEED {self.rate:g} {span}"
        return f"{self.type.value} {span}"

    def signature(self) -> str:
        """Stable serialization used for the content hash."""
        if self.type is CommandType.LOAD:
            return f"LOAD|{self.file_path}"
        if self.type is CommandType.CUT:
            return f"CUT|{self.time:.3f}"
        if self.type is CommandType.SPEED:
            return f"SPEED|{self.rate!r}|{self.start_time:.3f}|{self.end_time:.3f}"
        return f"{self.type.value}|{self.start_time:.3f}|{self.end_time:.3f}"

    def __str__(self) -> str:
        return self.to_script()


def command_list_hash(commands: Iterable[EditCommand]) -> str:
    """SHA-256 digest of the ordered command signatures."""
    payload = "\n".join(cmd.signature() for cmd in commands)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


@dataclass
class CommandResult:
    """
    Outcome of executing one command.

    Attributes:
        success: Whether the command applied
        command: The command that was executed
        affected_segment_ids: Segments created or modified
        error_message: Human-readable reason when ``success`` is False
    """
    success: bool
    command: Optional[EditCommand] = None
    affected_segment_ids: List[int] = field(default_factory=list)
    error_message: Optional[str] = None

    @staticmethod
    def ok(command: EditCommand, *affected_ids: int) -> "CommandResult":
        return CommandResult(success=True, command=command, affected_segment_ids=list(affected_ids))

    @staticmethod
    def fail(command: EditCommand, error_message: str) -> "CommandResult":
        return CommandResult(success=False, command=command, error_message=error_message)


@dataclass
class CommandExecutionReport:
    """Summary of a batch run. Failed commands never stop the batch."""
    total_commands: int = 0
    success_count: int = 0
    failure_count: int = 0
    results: List[CommandResult] = field(default_factory=list)

    def add(self, result: CommandResult) -> None:
        self.results.append(result)
        self.total_commands += 1
        if result.success:
            self.success_count += 1
        else:
            self.failure_count += 1

    @property
    def all_succeeded(self) -> bool:
        return self.failure_count == 0

    @property
    def error_messages(self) -> List[str]:
        """Failure reasons, prefixed with the script line when known."""
        messages = []
        for result in self.results:
            if result.success or not result.error_message:
                continue
            prefix = ""
            if result.command is not None and result.command.line_number:
                prefix = f"line {result.command.line_number}: "
            messages.append(f"{prefix}{result.error_message}")
        return messages
