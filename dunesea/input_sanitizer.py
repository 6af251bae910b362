"""Sanitization for user-supplied text that ends up in emails and file names."""
import re
from typing import Any


class InputSanitizer:
    """
    Sanitizes user input before it is embedded somewhere sensitive.

    Protections:
    - Email HTML: angle brackets stripped so no tags survive
    - Email headers: line breaks removed so no header can be injected
    - File names: only a safe character set, so no path traversal
    """

    ANGLE_BRACKETS = re.compile(r'[<>]')
    LINE_BREAKS = re.compile(r'[\r\n]+')
    UNSAFE_TOKEN_CHARS = re.compile(r'[^A-Za-z0-9_-]')
    UNSAFE_FILENAME_CHARS = re.compile(r'[^A-Za-z0-9._-]')

    @staticmethod
    def clean_text(value: Any) -> str:
        """Coerce to str and trim; None becomes ""."""
        if value is None:
            return ""
        return str(value).strip()

    @staticmethod
    def strip_angle_brackets(value: Any) -> str:
        """
        Make a value safe to drop into an HTML email body.

        Args:
            value: Raw user input (any type)

        Returns:
            Text without '<' or '>'
        """
        text = "" if value is None else str(value)
        return InputSanitizer.ANGLE_BRACKETS.sub('', text)

    @staticmethod
    def header_value(value: Any) -> str:
        """Single-line text for an email header: angle brackets and CR/LF removed."""
        text = InputSanitizer.strip_angle_brackets(value)
        return InputSanitizer.LINE_BREAKS.sub(' ', text).strip()

    @staticmethod
    def safe_file_token(value: Any) -> str:
        """Keep letters, digits, '_' and '-' (ids and prefixes in upload names)."""
        return InputSanitizer.UNSAFE_TOKEN_CHARS.sub('', InputSanitizer.clean_text(value))

    @staticmethod
    def safe_upload_name(value: Any) -> str:
        """
        Sanitize a requested upload file name.

        Only allows letters, numbers, dots, hyphens and underscores, and
        refuses names made only of dots.
        """
        name = InputSanitizer.UNSAFE_FILENAME_CHARS.sub('', InputSanitizer.clean_text(value))
        if not name.strip('.'):
            return ""
        return name
