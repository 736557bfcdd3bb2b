import os

from services.exceptions import UnsupportedFileTypeError

ALLOWED_EXTENSIONS = (".xlsx", ".xlsm", ".csv")


def validate_upload(filename: str, size: int, max_bytes: int) -> None:
    """
    Reject uploads that cannot be analyzed before reading them any further.
    Legacy binary .xls files are not zip containers and are refused here.
    """
    ext = os.path.splitext(filename or "")[1]
    if ext.lower() not in ALLOWED_EXTENSIONS:
        raise UnsupportedFileTypeError("Only Excel files (.xlsx, .xlsm) and CSV files are supported.")

    if size == 0:
        raise ValueError("Uploaded file is empty.")
    if size > max_bytes:
        raise ValueError(f"Uploaded file is too large ({size} bytes, limit {max_bytes}).")
