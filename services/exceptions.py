"""
Error taxonomy for the skill test backend.

Components raise these; routers translate them into HTTP responses.
Each class carries the status code the HTTP layer should use.
"""


class SkillTestError(Exception):
    """Base class for errors with a client-safe message."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ─── Input / content ───────────────────────────────────────────────────────────

class InvalidRequestError(SkillTestError):
    """Missing or malformed request fields. User must correct the input."""
    status_code = 400


class UnsupportedFileTypeError(InvalidRequestError):
    def __init__(self, message: str = "Unsupported file type. Use PDF or PPTX."):
        super().__init__(message)


class InsufficientContentError(SkillTestError):
    """Extraction worked but produced too little text to build questions from."""
    status_code = 400

    def __init__(
        self,
        message: str = "Could not extract enough text from the file. Try another file or add more content.",
    ):
        super().__init__(message)


# ─── Upstream generation service ───────────────────────────────────────────────

class GenerationServiceError(SkillTestError):
    """The generative-text call failed or returned unusable content."""
    status_code = 500


class GenerationNotConfiguredError(GenerationServiceError):
    def __init__(self, message: str = "OPENAI_API_KEY is not set on server."):
        super().__init__(message)


class NoUsableQuestionsError(SkillTestError):
    """The call succeeded but every returned item failed coercion."""
    status_code = 502

    def __init__(
        self,
        message: str = "AI did not return usable questions. Try again with a different document.",
    ):
        super().__init__(message)


# ─── Storage ───────────────────────────────────────────────────────────────────

class SnapshotNotFoundError(SkillTestError):
    status_code = 404

    def __init__(self, message: str = "No AI snapshot for this test."):
        super().__init__(message)
