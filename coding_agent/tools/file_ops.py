"""
File tools confined to a sandbox directory.

Paths from the model are resolved relative to the sandbox, symlinks
included, and rejected if they land outside it.
"""

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from .base import Tool, ToolResult, tool_success
from .errors import FileSizeError, PathValidationError, SandboxNotFoundError

logger = logging.getLogger(__name__)


class FileReadArgs(BaseModel):
    path: str = Field(min_length=1, description="Path relative to the sandbox")


class SandboxFileSystem:
    """Resolves model-supplied paths inside a sandbox directory."""

    def __init__(self, sandbox_dir: str | Path):
        self.sandbox_dir = Path(sandbox_dir).resolve()

    def verify_sandbox_exists(self) -> None:
        """
        Raises:
            SandboxNotFoundError: If the sandbox directory is missing
            PathValidationError: If the sandbox path is not a directory
        """
        if not self.sandbox_dir.exists():
            raise SandboxNotFoundError(str(self.sandbox_dir))
        if not self.sandbox_dir.is_dir():
            raise PathValidationError(str(self.sandbox_dir), "Not a directory")

    def validate_path(self, requested_path: str) -> Path:
        """
        Resolve a requested path and make sure it stays in the sandbox.

        Raises:
            PathValidationError: If the file is missing, unreadable or
                outside the sandbox
        """
        self.verify_sandbox_exists()
        candidate = self.sandbox_dir / requested_path
        try:
            resolved = candidate.resolve(strict=True)
        except FileNotFoundError:
            raise PathValidationError(requested_path, "File not found")
        except PermissionError:
            raise PathValidationError(requested_path, "Permission denied")

        if resolved != self.sandbox_dir and self.sandbox_dir not in resolved.parents:
            raise PathValidationError(requested_path, "Path escapes sandbox")
        return resolved


def make_file_read_tool(sandbox_dir: str | Path, max_file_size_bytes: int) -> Tool:
    """Build a file_read tool bound to a sandbox and a size limit."""
    fs = SandboxFileSystem(sandbox_dir)

    def file_read(args: FileReadArgs) -> ToolResult:
        path = fs.validate_path(args.path)
        if not path.is_file():
            raise PathValidationError(args.path, "Not a regular file")

        size = path.stat().st_size
        if size > max_file_size_bytes:
            raise FileSizeError(args.path, size, max_file_size_bytes)

        logger.debug("Reading %s (%d bytes)", path, size)
        return tool_success(path.read_text(encoding="utf-8"))

    return Tool(
        name="file_read",
        description="Read contents of a file from the sandbox directory",
        parameters={
            "path": "string - Relative path to file within sandbox "
            "(e.g., 'test.txt', 'subdir/file.js')"
        },
        args_schema=FileReadArgs,
        execute=file_read,
    )
