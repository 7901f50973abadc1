import logging
import sys
import os
from voke.config import settings

# Custom formatter with colors for console output
class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels and component tags."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m',
    }

    # Component colors for easier visual parsing
    COMPONENT_COLORS = {
        '[API]': '\033[94m',         # Light blue
        '[PROXY]': '\033[95m',       # Light magenta
        '[HISTORY]': '\033[96m',     # Light cyan
        '[DB]': '\033[93m',          # Light yellow
        '[TRENDS]': '\033[92m',      # Light green
        '[CLIENT]': '\033[97m',      # White
        '[LLM]': '\033[35m',         # Magenta
        '[STREAM]': '\033[35m',      # Magenta
    }

    OUTCOME_HIGHLIGHTS = {
        'STREAM COMPLETE': '\033[42m',   # Green background
        'REQUEST FAILED': '\033[41m',    # Red background
        'FAILED mid-flight': '\033[41m',
        'DEGRADED': '\033[43m',          # Yellow background
    }

    def format(self, record):
        # Apply level color
        level_color = self.COLORS.get(record.levelname, '')
        reset = self.COLORS['RESET']

        # Format the message first
        formatted = super().format(record)

        # Apply component colors to the message
        for component, color in self.COMPONENT_COLORS.items():
            if component in formatted:
                formatted = formatted.replace(component, f'{color}{component}{reset}')

        # Request and stream outcomes stand out in a busy console
        for marker, background in self.OUTCOME_HIGHLIGHTS.items():
            if marker in formatted:
                formatted = formatted.replace(marker, f'{background}{marker}{reset}')

        # Color the log level
        formatted = formatted.replace(
            f'[{record.levelname}]',
            f'{level_color}[{record.levelname}]{reset}'
        )

        return formatted


def setup_logging():
    """
    Configures the logging system with both file and console output.
    Console output has colors, file output is plain text.
    """
    log_format = "[%(asctime)s] [%(levelname)s] %(message)s"
    date_format = "%Y-%m-%d %H:%M:%S"

    # Ensure log directory exists
    log_dir = os.path.dirname(settings.log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir, exist_ok=True)

    # Create root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level.upper())

    # Clear any existing handlers
    root_logger.handlers.clear()

    # File handler (plain text)
    file_handler = logging.FileHandler(settings.log_file)
    file_handler.setFormatter(logging.Formatter(log_format, datefmt=date_format))
    root_logger.addHandler(file_handler)

    # Console handler (with colors)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColoredFormatter(log_format, datefmt=date_format))
    root_logger.addHandler(console_handler)

    # Set lower level for some noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger instance with the given name.
    """
    return logging.getLogger(name)

# Initialize logging on import
setup_logging()
