"""Centralized symbols for consistent console output."""


class LogSymbols:
    """Unicode symbols for log messages."""
    
    SUCCESS = "✓"
    ERROR = "✗"
    ERROR_BOLD = "❌"     # U+274C - Cross mark (bold error for fatal messages)
    WARNING = "⚠️"
    INFO = "ℹ"
    NOT_INSTALLED = "○"
    UPDATED = "↑"
    DOWNLOADING = "⬇"    # U+2B07 - Download indicator
    EXTRACTING = "📦"    # U+1F4E6 - Package (extraction)
    
    # List and formatting
    BULLET = "•"         # U+2022 - Bullet point for lists
    TRASH = "🗑"         # U+1F5D1 - Trash/delete indicator
    ARROW_RIGHT = "→"    # U+2192 - Rightwards arrow (for "A → B" transitions)
    SEPARATOR = "─"      # U+2500 - Box drawing light horizontal (line separator)


class AnsiColors:
    """Terminal escape sequences used by the console log."""
    
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    GRAY = "\033[90m"
    YELLOW_BACKGROUND = "\033[43m"
