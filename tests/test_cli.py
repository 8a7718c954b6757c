"""
CLI tests — mu0kit.main() argument handling and exit statuses.
"""
import io
import logging
import re
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import mu0kit
from mu0kit import (
    main, EXIT_OK, EXIT_USAGE, EXIT_STEP_LIMIT,
    EXIT_ILLEGAL_INSTRUCTION, EXIT_SEGFAULT,
)


@pytest.fixture
def write(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text)
        return str(path)
    return _write


class TestArguments:

    def test_no_arguments_prints_usage(self, capsys):
        assert main([]) == EXIT_USAGE
        err = capsys.readouterr().err
        assert err.startswith("Usage:")
        assert "mu0 emulate <machine code file> [-v] [-l n]" in err

    def test_single_argument_prints_usage(self, capsys):
        assert main(["emulate"]) == EXIT_USAGE
        assert "Usage:" in capsys.readouterr().err

    def test_unknown_command_goes_to_stdout_and_succeeds(self, capsys):
        assert main(["frobnicate", "x.s"]) == EXIT_OK
        out, err = capsys.readouterr()
        assert out == "Unknown command frobnicate\n"
        assert err == ""

    def test_assemble_needs_output(self, capsys, write):
        src = write("prog.s", "STP\n")
        assert main(["assemble", src]) == EXIT_USAGE
        assert "Not enough arguments to assemble" in capsys.readouterr().err

    def test_limit_without_value(self, write):
        prog = write("prog.hex", "7000\n")
        with pytest.raises(SystemExit) as info:
            main(["emulate", prog, "-l"])
        assert info.value.code == EXIT_USAGE

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as info:
            main(["--version"])
        assert info.value.code == 0
        assert mu0kit.__version__ in capsys.readouterr().out

    def test_missing_file(self, capsys, tmp_path):
        missing = str(tmp_path / "nope.hex")
        assert main(["emulate", missing]) == EXIT_USAGE
        assert "Error:" in capsys.readouterr().err


class TestAssembleCommand:

    def test_writes_machine_code(self, write, tmp_path):
        src = write("add.s", ":a\nLDA :five\nSTP\n:five\n#5\n")
        out = str(tmp_path / "add.hex")
        assert main(["assemble", src, out]) == EXIT_OK
        with open(out) as f:
            assert f.read() == "0002\n7000\n0005\n"

    def test_listing(self, capsys, write, tmp_path):
        src = write("p.s", "LDA 1\nSTP\n")
        assert main(["assemble", src, str(tmp_path / "p.hex"), "--listing"]) == EXIT_OK
        assert "000   0001  LDA 0x001 LDA 1" in capsys.readouterr().out

    def test_unknown_label_fails(self, capsys, write, tmp_path):
        src = write("bad.s", "JMP :missing\n")
        assert main(["assemble", src, str(tmp_path / "bad.hex")]) == EXIT_USAGE
        assert 'Unknown label "missing"' in capsys.readouterr().err

    def test_bad_line_is_not_fatal(self, write, tmp_path):
        src = write("warn.s", "NOP\nSTP\n")
        out = tmp_path / "warn.hex"
        assert main(["assemble", src, str(out)]) == EXIT_OK
        assert out.read_text() == "7000\n"


class TestEmulateCommand:

    def test_hello(self, capsys, write):
        prog = write("hi.hex", "0005\n1fff\n0006\n1fff\n7000\n0068\n0069\n")
        assert main(["emulate", prog]) == EXIT_OK
        assert capsys.readouterr().out == "hi"

    def test_echo_reads_stdin(self, capsys, write, monkeypatch):
        monkeypatch.setattr(sys, "stdin", io.StringIO("x"))
        prog = write("echo.hex", "0fff\n1fff\n7000\n")
        assert main(["emulate", prog]) == EXIT_OK
        assert capsys.readouterr().out == "x"

    def test_step_limit(self, write):
        prog = write("loop.hex", "4000\n")
        assert main(["emulate", prog, "-l", "0x10"]) == EXIT_STEP_LIMIT

    def test_zero_limit_is_unbounded(self, write):
        prog = write("stp.hex", "7000\n")
        assert main(["emulate", prog, "-l", "0"]) == EXIT_OK

    def test_out_of_range(self, capsys, write):
        prog = write("oob.hex", "0002\n7000\n")
        assert main(["emulate", prog]) == EXIT_SEGFAULT
        assert "Memory address 0x2 is out of range" in capsys.readouterr().err

    def test_illegal_instruction(self, write):
        prog = write("ill.hex", "9000\n")
        assert main(["emulate", prog]) == EXIT_ILLEGAL_INSTRUCTION

    def test_verbose_trace(self, capsys, write):
        prog = write("stp.hex", "7000\n")
        assert main(["emulate", prog, "-v"]) == EXIT_OK
        err = capsys.readouterr().err
        assert "state =   FETCH" in err
        assert "Read in 1 lines" in err

    def test_output_is_one_raw_byte(self, capsysbinary, write):
        """STO 0xfff of 0xe9 writes the byte e9 itself, not an encoded character."""
        prog = write("e9.hex", "0003\n1fff\n7000\n00e9\n")
        assert main(["emulate", prog]) == EXIT_OK
        assert capsysbinary.readouterr().out == b"\xe9"

    def test_input_is_read_one_byte_at_a_time(self, capsysbinary, write, monkeypatch):
        """Each LDA 0xfff consumes exactly one byte of stdin."""
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"\xff\xe2\x82\xac")))
        prog = write("echo2.hex", "0fff\n1fff\n0fff\n1fff\n7000\n")
        assert main(["emulate", prog]) == EXIT_OK
        assert capsysbinary.readouterr().out == b"\xff\xe2"


class TestLogFile:

    @pytest.fixture(autouse=True)
    def _close_log_files(self):
        yield
        logger = logging.getLogger("mu0")
        for handler in [h for h in logger.handlers if isinstance(h, logging.FileHandler)]:
            logger.removeHandler(handler)
            handler.close()

    def test_log_dir_writes_timestamped_debug_log(self, write, tmp_path):
        prog = write("stp.hex", "7000\n")
        log_dir = tmp_path / "logs"
        assert main(["emulate", prog, "--log-dir", str(log_dir)]) == EXIT_OK

        files = list(log_dir.glob("*.log"))
        assert len(files) == 1
        assert re.fullmatch(r"mu0_\d{8}_\d{6}\.log", files[0].name)
        text = files[0].read_text(encoding="utf-8")
        assert "Read in 1 lines" in text
        assert "state =   FETCH" in text

    def test_log_dir_on_assemble(self, write, tmp_path):
        src = write("p.s", ":top\nJMP :top\n")
        log_dir = tmp_path / "asm_logs"
        assert main(["assemble", src, str(tmp_path / "p.hex"), "--log-dir", str(log_dir)]) == EXIT_OK
        text = next(log_dir.glob("mu0_*.log")).read_text(encoding="utf-8")
        assert 'Found label definition "top" at address 0' in text


class TestEndToEnd:

    def test_assemble_then_emulate(self, capsys, write, tmp_path):
        src = write("add.s", "LDA :a\nADD :b\nSTO 0xfff\nSTP\n:a\n$0\n:b\n#1\n")
        out = str(tmp_path / "add.hex")
        assert main(["assemble", src, out]) == EXIT_OK
        assert main(["emulate", out]) == EXIT_OK
        assert capsys.readouterr().out == "1"
