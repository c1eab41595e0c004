"""
Unit tests for the invocation builder and the compiler driver.
Process spawning is mocked; see tests/integration for real runs.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from cccdiag.compiler.driver import CompileResult, CompilerDriver, build_arguments, include_options
from cccdiag.errors import ConfigurationError, DecodingError, InvocationError
from cccdiag.utils.config import Settings


class TestBuildArguments:

    def test_defaults(self):
        args = build_arguments(Settings(), "/src/proj/foo.c")
        assert args == ["-fsyntax-only", "-Wall", "-fdiagnostics-parseable-fixits", "foo.c"]

    def test_target_is_base_name(self):
        args = build_arguments(Settings(compile_options=()), "/deep/nested/dir/main.c")
        assert args == ["main.c"]

    def test_absolute_and_relative_include_paths(self):
        settings = Settings(
            compile_options=("-fsyntax-only",),
            include_paths_absolute=("/usr/local/include",),
            include_paths_relative=("lib", "../shared"),
        )
        args = build_arguments(settings, "/ws/src/foo.c", workspace_root="/ws")
        assert args == [
            "-fsyntax-only",
            "-I/usr/local/include",
            "-I/ws/lib",
            "-I/shared",
            "foo.c",
        ]

    def test_relative_only(self):
        settings = Settings(include_paths_relative=("inc",))
        assert include_options(settings, "/ws") == ["-I/ws/inc"]

    def test_custom_prefix(self):
        settings = Settings(include_option_prefix="/I", include_paths_absolute=("C:/inc",))
        assert include_options(settings) == ["/IC:/inc"]

    def test_no_include_paths(self):
        assert include_options(Settings(), "/ws") == []

    def test_relative_without_workspace_is_configuration_error(self):
        settings = Settings(include_paths_relative=("inc",))
        with pytest.raises(ConfigurationError, match="workspace"):
            build_arguments(settings, "/src/foo.c")

    def test_does_not_mutate_settings(self):
        settings = Settings()
        build_arguments(settings, "/src/foo.c")
        assert settings.compile_options == ("-fsyntax-only", "-Wall", "-fdiagnostics-parseable-fixits")


class TestCompileResult:

    def test_decode_utf8(self):
        result = CompileResult(b"", "foo.c:1:1: error: ‘x’".encode("utf-8"), 1)
        assert result.diagnostic_text("utf-8") == "foo.c:1:1: error: ‘x’"

    def test_decode_shift_jis(self):
        text = "foo.c:1:1: エラー: 未定義"
        result = CompileResult(b"", text.encode("shift_jis"), 1)
        assert result.diagnostic_text("shift_jis") == text

    def test_invalid_bytes(self):
        with pytest.raises(DecodingError, match="utf-8"):
            CompileResult(b"", b"\xff\xfe\xfa", 1).diagnostic_text("utf-8")

    def test_unknown_encoding(self):
        with pytest.raises(DecodingError, match="unknown encoding"):
            CompileResult(b"", b"", 0).diagnostic_text("no-such-encoding")

    @pytest.mark.parametrize("encoding", ["rot13", "base64", "hex"])
    def test_binary_codec_is_not_a_text_encoding(self, encoding):
        with pytest.raises(DecodingError, match="not a text encoding"):
            CompileResult(b"", b"foo.c:1:1: error: x", 1).diagnostic_text(encoding)

    def test_succeeded(self):
        assert CompileResult(b"", b"", 0).succeeded
        assert not CompileResult(b"", b"", 1).succeeded


def _fake_process(stderr: bytes, returncode: int):
    process = MagicMock()
    process.returncode = returncode
    process.communicate = AsyncMock(return_value=(b"", stderr))
    return process


class TestCompilerDriverRun:

    @pytest.mark.asyncio
    async def test_missing_compiler(self):
        settings = Settings(compile_command="definitely-not-a-real-compiler-xyz")
        with pytest.raises(InvocationError, match="not found"):
            await CompilerDriver().run(settings, "/tmp/foo.c")

    @pytest.mark.asyncio
    async def test_spawns_in_source_directory(self):
        process = _fake_process(b"foo.c:1:1: error: x\n", 1)
        with patch("cccdiag.compiler.driver.shutil.which", return_value="/usr/bin/gcc"), \
             patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as spawn:
            result = await CompilerDriver().run(Settings(), "/proj/src/foo.c")

        args, kwargs = spawn.call_args
        assert args == ("gcc", "-fsyntax-only", "-Wall", "-fdiagnostics-parseable-fixits", "foo.c")
        assert kwargs["cwd"] == "/proj/src"
        assert result == CompileResult(b"", b"foo.c:1:1: error: x\n", 1)

    @pytest.mark.asyncio
    async def test_clean_compile(self):
        process = _fake_process(b"", 0)
        with patch("cccdiag.compiler.driver.shutil.which", return_value="/usr/bin/gcc"), \
             patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            result = await CompilerDriver().run(Settings(), "/proj/foo.c")
        assert result.succeeded
        assert result.diagnostic_text("utf-8") == ""

    @pytest.mark.asyncio
    async def test_abnormal_exit_without_output(self):
        process = _fake_process(b"", 139)
        with patch("cccdiag.compiler.driver.shutil.which", return_value="/usr/bin/gcc"), \
             patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(InvocationError, match="status 139"):
                await CompilerDriver().run(Settings(), "/proj/foo.c")

    @pytest.mark.asyncio
    async def test_spawn_failure(self):
        with patch("cccdiag.compiler.driver.shutil.which", return_value="/usr/bin/gcc"), \
             patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=PermissionError("denied"))):
            with pytest.raises(InvocationError, match="failed to start"):
                await CompilerDriver().run(Settings(), "/proj/foo.c")

    @pytest.mark.asyncio
    async def test_cancel_kills_process(self):
        process = MagicMock()
        process.returncode = None
        process.communicate = AsyncMock(side_effect=asyncio.CancelledError())
        process.wait = AsyncMock(return_value=-9)
        with patch("cccdiag.compiler.driver.shutil.which", return_value="/usr/bin/gcc"), \
             patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
            with pytest.raises(asyncio.CancelledError):
                await CompilerDriver().run(Settings(), "/proj/foo.c")
        process.kill.assert_called_once()
