import re
import struct
from typing import NamedTuple, Tuple

from ..errors import DisasmSyntaxError, SyntaxErrorKind

# --- OBJDUMP GRAMMAR ---
# go tool objdump -gnu emits one instruction per line:
#
#   blake2b_arm64.s:334	0xfbf40			f94007e0		MOVD 8(RSP), R0       // ldr x0, [sp,#8]
#   blake2b_arm64.s:335	0xfbf44			f94013e1		MOVD 32(RSP), R1      // ldr x1, [sp,#32]
#
# Column widths vary between Go releases, so whitespace between fields is
# free-form but the field order is fixed.
RE_DIGITS = re.compile(r"[0-9]*")
RE_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")

OFFSET_PREFIX = "0x"
COMMENT_MARKER = "// "

# Offsets are unsigned, line numbers are signed native ints.
MAX_OFFSET = (1 << (struct.calcsize("P") * 8)) - 1
MAX_LINE = (1 << (struct.calcsize("P") * 8 - 1)) - 1


class InstructionRecord(NamedTuple):
    source_file: str
    source_line: int
    offset: int
    encoded_bytes: bytes
    high_level_asm: str
    architecture_asm: str


def _read_int(s: str, orig: str) -> Tuple[int, str]:
    digits = RE_DIGITS.match(s).group(0)
    if not digits:
        raise DisasmSyntaxError(SyntaxErrorKind.INVALID_NUMBER, orig)
    value = int(digits)
    if value > MAX_LINE:
        raise DisasmSyntaxError(SyntaxErrorKind.INVALID_NUMBER, orig)
    return value, s[len(digits):]


def _read_hex_int(s: str, orig: str) -> Tuple[int, str]:
    digits = RE_HEX_DIGITS.match(s).group(0)
    if not digits:
        raise DisasmSyntaxError(SyntaxErrorKind.INVALID_NUMBER, orig)
    value = int(digits, 16)
    if value > MAX_OFFSET:
        raise DisasmSyntaxError(SyntaxErrorKind.INVALID_NUMBER, orig)
    return value, s[len(digits):]


def _read_hex(s: str, orig: str) -> Tuple[bytes, str]:
    digits = RE_HEX_DIGITS.match(s).group(0)
    try:
        buf = bytes.fromhex(digits)
    except ValueError:
        raise DisasmSyntaxError(SyntaxErrorKind.INVALID_HEX, orig) from None
    return buf, s[len(digits):]


def parse_line(text: str) -> InstructionRecord:
    """
    Parses one instruction line of objdump output.
    Raises DisasmSyntaxError naming the first missing or malformed field.
    """
    orig = text
    s = text.strip()

    file_name, colon, s = s.partition(":")
    if not colon:
        raise DisasmSyntaxError(SyntaxErrorKind.MISSING_COLON, orig)

    line_no, s = _read_int(s, orig)

    s = s.strip()
    if not s.startswith(OFFSET_PREFIX):
        raise DisasmSyntaxError(SyntaxErrorKind.MISSING_OFFSET_PREFIX, orig)
    offset, s = _read_hex_int(s[len(OFFSET_PREFIX):], orig)

    s = s.strip()
    encoded, s = _read_hex(s, orig)

    s = s.strip()
    high_level, marker, arch = s.partition(COMMENT_MARKER)
    if not marker:
        raise DisasmSyntaxError(SyntaxErrorKind.MISSING_COMMENT_MARKER, orig)

    return InstructionRecord(
        source_file=file_name,
        source_line=line_no,
        offset=offset,
        encoded_bytes=encoded,
        high_level_asm=high_level.strip(),
        architecture_asm=arch.strip(),
    )
