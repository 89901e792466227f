from .objdump import InstructionRecord, parse_line
from .mangle import mangle
from .transform import RenderConfig, fix, render_instruction

__all__ = [
    "InstructionRecord",
    "parse_line",
    "mangle",
    "RenderConfig",
    "fix",
    "render_instruction",
]
