import logging
from dataclasses import dataclass
from typing import Iterable, List, TextIO

from .mangle import mangle
from .objdump import InstructionRecord, parse_line
from ..utils.tabwriter import TabWriter

logger = logging.getLogger(__name__)

HEADER_PREFIX = "TEXT "
RETURN_MNEMONIC = "ret"


@dataclass(frozen=True)
class RenderConfig:
    """
    Which annotations trail each instruction. Chosen once per run.
    """
    show_file: bool = False
    show_offset: bool = False
    show_instruction_bytes: bool = False
    show_high_level_asm: bool = False

    @classmethod
    def from_config(cls, config_manager) -> "RenderConfig":
        return cls(
            show_file=bool(config_manager.get("show_file", False)),
            show_offset=bool(config_manager.get("show_offset", False)),
            show_instruction_bytes=bool(config_manager.get("show_instruction_bytes", False)),
            show_high_level_asm=bool(config_manager.get("show_high_level_asm", False)),
        )

    def annotations(self, record: InstructionRecord) -> List[str]:
        segments = []
        if self.show_file:
            segments.append(f"{record.source_file}:{record.source_line}")
        if self.show_offset:
            segments.append(hex(record.offset))
        if self.show_instruction_bytes:
            segments.append(record.encoded_bytes.hex())
        if self.show_high_level_asm:
            segments.append(record.high_level_asm)
        return segments


def render_instruction(record: InstructionRecord, config: RenderConfig) -> str:
    """
    One output line: the mnemonic llvm-mca reads, then the enabled
    annotations as tab separated comment cells.
    """
    parts = [f"  {record.architecture_asm}"]
    segments = config.annotations(record)
    if segments:
        segments[0] = "// " + segments[0]
        parts.extend(segments)
    return "\t".join(parts) + "\n"


def _lines(reader: Iterable[str]):
    for raw in reader:
        yield raw.rstrip("\n").rstrip("\r")


def fix(writer: TextIO, reader: Iterable[str], config: RenderConfig = RenderConfig()) -> None:
    """
    Rewrites objdump output from `reader` into llvm-mca input on `writer`.

    Only the first function is emitted: the first `ret` ends the whole
    stream, later symbols are dropped. A malformed line aborts the run with
    DisasmSyntaxError.
    """
    tw = TabWriter(writer)
    count = 0
    for text in _lines(reader):
        if text.startswith(HEADER_PREFIX):
            tw.write(mangle(text[len(HEADER_PREFIX):]) + "\n")
            continue

        record = parse_line(text)
        if record.architecture_asm == RETURN_MNEMONIC:
            tw.write(f"\t// stopping at {record.architecture_asm}\n")
            break

        tw.write(render_instruction(record, config))
        count += 1

    tw.flush()
    logger.debug("Emitted %d instructions", count)
