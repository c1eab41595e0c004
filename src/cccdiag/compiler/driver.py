import asyncio
import codecs
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigurationError, DecodingError, InvocationError
from ..utils.config import Settings

logger = logging.getLogger(__name__)


def include_options(settings: Settings, workspace_root: Optional[str] = None) -> List[str]:
    """
    Include-path flags: absolute paths as given, relative paths joined
    onto the workspace root first.
    """
    prefix = settings.include_option_prefix
    flags = [prefix + path for path in settings.include_paths_absolute]

    if settings.include_paths_relative:
        if not workspace_root:
            raise ConfigurationError("includePath.relative is set but no workspace root is open")
        for path in settings.include_paths_relative:
            flags.append(prefix + os.path.normpath(os.path.join(workspace_root, path)))
    return flags


def build_arguments(settings: Settings, source_file: str, workspace_root: Optional[str] = None) -> List[str]:
    """
    Compiler arguments: compile options, include flags, then the source
    file's base name (the compiler runs inside the file's directory).
    """
    args = list(settings.compile_options)
    args.extend(include_options(settings, workspace_root))
    args.append(Path(source_file).name)
    return args


def decode_text(data: bytes, encoding: str, what: str) -> str:
    """
    Decode bytes with a configured encoding.
    Raises DecodingError for unknown or binary-only codecs and for invalid bytes.
    """
    try:
        codecs.lookup(encoding)
    except LookupError as e:
        raise DecodingError(f"unknown encoding '{encoding}'") from e
    try:
        return data.decode(encoding)
    except LookupError as e:
        # rot13, base64, hex and friends resolve but are not text encodings
        raise DecodingError(f"'{encoding}' is not a text encoding") from e
    except UnicodeDecodeError as e:
        raise DecodingError(f"{what} is not valid {encoding}: {e}") from e


@dataclass(frozen=True)
class CompileResult:
    stdout: bytes
    stderr: bytes
    returncode: int

    @property
    def succeeded(self) -> bool:
        return self.returncode == 0

    def diagnostic_text(self, encoding: str) -> str:
        """Decode the diagnostic stream (stderr) with the configured encoding."""
        return decode_text(self.stderr, encoding, "compiler output")


class CompilerDriver:
    """Runs the configured compiler on one source file."""

    async def run(self, settings: Settings, source_file: str, workspace_root: Optional[str] = None) -> CompileResult:
        """
        Spawn the compiler in the source file's directory and capture both
        streams. Cancelling the coroutine kills the child process.
        """
        src_path = Path(source_file)
        args = build_arguments(settings, source_file, workspace_root)
        command = settings.compile_command

        if shutil.which(command) is None:
            raise InvocationError(f"compiler '{command}' not found")

        logger.info("Running %s %s in %s", command, " ".join(args), src_path.parent)
        try:
            process = await asyncio.create_subprocess_exec(
                command,
                *args,
                cwd=str(src_path.parent),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise InvocationError(f"failed to start '{command}': {e}") from e

        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        result = CompileResult(stdout=stdout, stderr=stderr, returncode=process.returncode)
        logger.debug("%s exited with %s (%d bytes of diagnostics)", command, result.returncode, len(stderr))

        # Abnormal exit with nothing to parse is a failed run, not a clean file
        if not result.succeeded and not stderr.strip():
            raise InvocationError(f"'{command}' exited with status {result.returncode} and no diagnostics")
        return result
