"""Exceptions raised while converting a document."""


class ConversionError(Exception):
    """Base exception for document conversion errors."""
    pass


class MathExpressionError(ConversionError):
    """Exception for math placeholders whose expression cannot be extracted or decoded."""
    pass
