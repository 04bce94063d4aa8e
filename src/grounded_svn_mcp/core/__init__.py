from .validation import (
    ParseResult,
    Rejected,
    Valid,
    validate_file_path,
    validate_info,
    validate_log_entries,
    validate_log_entry,
    validate_status,
    validate_status_list,
)

__all__ = [
    "ParseResult",
    "Rejected",
    "Valid",
    "validate_file_path",
    "validate_info",
    "validate_log_entries",
    "validate_log_entry",
    "validate_status",
    "validate_status_list",
]
