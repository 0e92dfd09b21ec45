"""Exception types raised at the I/O boundaries of mcp-archy."""


class ArchyError(Exception):
    """Base class for errors the tool handlers convert into error payloads."""


class GitHubError(ArchyError):
    """Repository data could not be fetched from the GitHub API."""


class AIConfigurationError(ArchyError):
    """An AI-only operation was requested without an AI backend configured."""


class HistoryError(ArchyError):
    """Git history could not be read (clone failure, missing file, ...)."""


class ExportError(ArchyError):
    """A diagram could not be rendered to an image."""
