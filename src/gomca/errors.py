from enum import Enum
from typing import List, Optional


class GomcaError(Exception):
    """Base class for every fatal error the tool reports."""


class SyntaxErrorKind(str, Enum):
    MISSING_COLON = "missing colon in file name"
    INVALID_NUMBER = "invalid number"
    MISSING_OFFSET_PREFIX = "missing 0x prefix for offset"
    INVALID_HEX = "invalid hex instruction bytes"
    MISSING_COMMENT_MARKER = "missing GNU assembly comments"


class DisasmSyntaxError(GomcaError):
    """
    A disassembly line that does not match the objdump grammar.
    Keeps the offending line verbatim so it can be matched against the
    disassembler's own output.
    """
    def __init__(self, kind: SyntaxErrorKind, line: str):
        self.kind = kind
        self.line = line
        super().__init__(f"syntax error: {kind.value} ({line})")


class ProcessError(GomcaError):
    def __init__(self, command: List[str], returncode: Optional[int] = None, reason: str = ""):
        self.command = command
        self.returncode = returncode
        if not reason:
            reason = f"exited with status {returncode}"
        super().__init__(f"{command[0]}: {reason}")


class ToolNotFoundError(GomcaError):
    pass
