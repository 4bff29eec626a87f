"""
Exceptions raised by codeextractor.

Only failures that stop a whole scan are raised; unreadable files and
directories are reported inline in the generated document instead.
"""


class CodeExtractorError(Exception):
    """Base exception for codeextractor errors."""


class InvalidRootError(CodeExtractorError): ...
class ConfigFileError(CodeExtractorError): ...
class OutputError(CodeExtractorError): ...
