"""Errors raised by the tool registry and built-in tools."""


class ToolRegistryError(Exception):
    """Base class for registry errors."""


class ToolAlreadyRegisteredError(ToolRegistryError):
    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' is already registered")
        self.tool_name = tool_name


class FileSizeError(Exception):
    def __init__(self, path: str, actual_bytes: int, max_bytes: int):
        actual_mb = actual_bytes / (1024 * 1024)
        max_mb = max_bytes / (1024 * 1024)
        super().__init__(
            f"File at '{path}' exceeds size limit: {actual_mb:.2f}MB "
            f"(max: {max_mb:.2f}MB). Try a smaller file or split content "
            "into multiple files."
        )


class SandboxNotFoundError(Exception):
    def __init__(self, sandbox_path: str):
        super().__init__(
            f"Sandbox directory not found at '{sandbox_path}'. "
            "Please create the sandbox directory before using file operations."
        )


class PathValidationError(Exception):
    def __init__(self, requested_path: str, reason: str):
        super().__init__(
            f"Path validation failed for '{requested_path}': {reason}. "
            "Path must be relative to the sandbox directory. "
            "Valid examples: 'test.txt', 'subdir/file.js'"
        )
        self.requested_path = requested_path
        self.reason = reason
