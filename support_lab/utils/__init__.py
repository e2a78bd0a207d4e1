"""
Utility functions
"""
from support_lab.utils.logger import setup_logging, get_logger
from support_lab.utils.validators import (
    validate_ticket_id,
    parse_non_negative_int,
    sanitize_input
)

__all__ = [
    "setup_logging",
    "get_logger",
    "validate_ticket_id",
    "parse_non_negative_int",
    "sanitize_input",
]
