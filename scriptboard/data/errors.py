class ScriptDecodeError(Exception):
    """Base exception for fatal script markdown decoding errors."""


class MissingFrontmatterError(ScriptDecodeError):
    """Raised when the text does not start with a ---...--- frontmatter block."""

    def __init__(self, message: str = "Markdown frontmatter (---...---) not found."):
        super().__init__(message)


class MissingScriptIdError(ScriptDecodeError):
    """Raised when the frontmatter has no non-empty scriptId."""

    def __init__(self, message: str = "`scriptId` is missing in the Markdown frontmatter."):
        super().__init__(message)
