"""
Tests for the objdump -> llvm-mca stream transform.
"""
import io
import pytest
from unittest.mock import MagicMock
from gomca.parsing import RenderConfig, fix, parse_line, render_instruction
from gomca.errors import DisasmSyntaxError, SyntaxErrorKind

ALL_ON = RenderConfig(
    show_file=True,
    show_offset=True,
    show_instruction_bytes=True,
    show_high_level_asm=True,
)

OBJDUMP_OUTPUT = """\
TEXT main.add(SB) /tmp/x/main.go
  main.go:3\t\t0x1000\t\t8b000020\t\tADD R1, R0, R0\t\t// add x0, x1, x0
  main.go:4\t\t0x1004\t\tf94007e0\t\tMOVD 8(RSP), R0\t\t// ldr x0, [sp,#8]
  main.go:5\t\t0x1008\t\td65f03c0\t\tRET\t\t\t// ret
TEXT main.sub(SB) /tmp/x/main.go
  main.go:8\t\t0x1010\t\tcb010000\t\tSUB R1, R0, R0\t\t// sub x0, x0, x1
"""


def _fix(text: str, config: RenderConfig = RenderConfig()) -> str:
    out = io.StringIO()
    fix(out, io.StringIO(text), config)
    return out.getvalue()


class TestRenderConfig:

    def test_defaults_all_off(self):
        cfg = RenderConfig()
        assert not (cfg.show_file or cfg.show_offset or cfg.show_instruction_bytes or cfg.show_high_level_asm)

    def test_frozen(self):
        with pytest.raises(Exception):
            RenderConfig().show_file = True

    def test_from_config(self):
        manager = MagicMock()
        manager.get.side_effect = lambda key, default=None: {"show_file": True, "show_offset": 1}.get(key, default)
        cfg = RenderConfig.from_config(manager)
        assert cfg == RenderConfig(show_file=True, show_offset=True)


class TestRenderInstruction:

    def test_bare_mnemonic(self):
        rec = parse_line("foo.s:10  0x20  f94007e0  MOVD 8(RSP), R0  // ldr x0, [sp,#8]")
        assert render_instruction(rec, RenderConfig()) == "  ldr x0, [sp,#8]\n"

    def test_all_annotations_in_order(self):
        rec = parse_line("foo.s:10  0x20  f94007e0  MOVD 8(RSP), R0  // ldr x0, [sp,#8]")
        assert render_instruction(rec, ALL_ON) == "  ldr x0, [sp,#8]\t// foo.s:10\t0x20\tf94007e0\tMOVD 8(RSP), R0\n"

    def test_first_enabled_segment_opens_comment(self):
        rec = parse_line("foo.s:10  0x20  f94007e0  MOVD 8(RSP), R0  // ldr x0, [sp,#8]")
        cfg = RenderConfig(show_offset=True, show_high_level_asm=True)
        assert render_instruction(rec, cfg) == "  ldr x0, [sp,#8]\t// 0x20\tMOVD 8(RSP), R0\n"

    def test_zero_offset_and_no_bytes(self):
        rec = parse_line("a.s:1 0x0   NOP // nop")
        cfg = RenderConfig(show_offset=True, show_instruction_bytes=True)
        assert render_instruction(rec, cfg) == "  nop\t// 0x0\t\n"


class TestFix:

    def test_end_to_end_all_annotations(self):
        out = _fix("foo.s:10  0x20  f94007e0  MOVD 8(RSP), R0  // ldr x0, [sp,#8]\n", ALL_ON)
        assert out == "  ldr x0, [sp,#8]\t// foo.s:10\t\t0x20\t\t\tf94007e0\t\tMOVD 8(RSP), R0\n"
        fields = [f for f in out.strip("\n").split("\t") if f]
        assert fields == ["  ldr x0, [sp,#8]", "// foo.s:10", "0x20", "f94007e0", "MOVD 8(RSP), R0"]

    def test_header_becomes_label(self):
        assert _fix("TEXT pkg.Func(int)\n") == "pkg_Func_int_:\n"

    def test_stops_at_first_ret(self):
        out = _fix(OBJDUMP_OUTPUT)
        assert out == (
            "main_add_SB___tmp_x_main_go:\n"
            "  add x0, x1, x0\n"
            "  ldr x0, [sp,#8]\n"
            "\t\t\t// stopping at ret\n"
        )

    def test_nothing_after_ret_is_emitted(self):
        out = _fix(OBJDUMP_OUTPUT, ALL_ON)
        assert "main_sub" not in out
        assert "sub x0" not in out
        assert out.endswith("// stopping at ret\n")

    def test_truncation_counts(self):
        body = "".join(f"a.s:{i} 0x{i * 4:x} d503201f NOP // nop\n" for i in range(1, 4))
        body += "a.s:4 0x10 d65f03c0 RET // ret\n"
        body += "".join(f"a.s:{i} 0x{i * 4:x} d503201f NOP // nop\n" for i in range(5, 9))
        lines = _fix(body).splitlines()
        assert lines.count("  nop") == 3
        assert len(lines) == 4
        assert lines[-1].endswith("// stopping at ret")

    def test_lines_after_ret_are_not_parsed(self):
        out = _fix("a.s:1 0x0 d65f03c0 RET // ret\nthis is not objdump output\n")
        assert out == "\t\t\t// stopping at ret\n"

    def test_annotation_columns_line_up(self):
        out = _fix(OBJDUMP_OUTPUT, RenderConfig(show_file=True))
        instr = [line for line in out.splitlines() if line.startswith("  ")]
        assert len(instr) == 2
        cols = {line.expandtabs(8).index("//") for line in instr}
        assert len(cols) == 1

    def test_idempotent(self):
        assert _fix(OBJDUMP_OUTPUT, ALL_ON) == _fix(OBJDUMP_OUTPUT, ALL_ON)

    def test_empty_input(self):
        assert _fix("") == ""

    def test_crlf_input(self):
        out = _fix("TEXT pkg.F\r\na.s:1 0x0 d503201f NOP // nop\r\n")
        assert out == "pkg_F:\n  nop\n"

    def test_syntax_error_propagates(self):
        bad = "a.s:1 0x0 d503201f NOP nop"
        with pytest.raises(DisasmSyntaxError) as exc_info:
            _fix("TEXT pkg.F\n" + bad + "\n")
        assert exc_info.value.kind == SyntaxErrorKind.MISSING_COMMENT_MARKER
        assert exc_info.value.line == bad

    def test_blank_line_is_an_error(self):
        with pytest.raises(DisasmSyntaxError):
            _fix("TEXT pkg.F\n\n")

    def test_read_error_propagates(self):
        def reader():
            yield "TEXT pkg.F\n"
            raise OSError("read failed")

        with pytest.raises(OSError, match="read failed"):
            fix(io.StringIO(), reader(), RenderConfig())
