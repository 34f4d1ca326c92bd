"""
File content accessor cho token estimation.

Functions:
- file_fingerprint(): (byte length, mtime_ns) - proxy re cho content identity
- read_text(): Doc toan bo file (UTF-8, bytes loi duoc replace)
- slice_lines(): Cat text theo 1-based inclusive line range
- load_selection_text(): read_text + slice_lines cho 1 SelectionItem

Fingerprint va read KHONG atomic: neu file bi ghi giua hai buoc,
cache co the giu entry cu cho den khi fingerprint doi hoac invalidate_path().
"""

from pathlib import Path
from typing import List, NamedTuple, Optional

from core.errors import SelectionReadError
from core.selection.types import LineRange, SelectionItem


class FileFingerprint(NamedTuple):
    """Length + modification time (ns) cua file tai thoi diem doc."""

    length: int
    modified_ns: int


def file_fingerprint(path: str) -> Optional[FileFingerprint]:
    """
    Lay fingerprint cua file.

    Returns:
        FileFingerprint hoac None neu khong lay duoc metadata
    """
    try:
        stat = Path(path).stat()
    except OSError:
        return None
    return FileFingerprint(stat.st_size, stat.st_mtime_ns)


def read_text(path: str) -> str:
    """
    Doc toan bo noi dung file.

    Raises:
        SelectionReadError: File khong ton tai hoac khong doc duoc
    """
    try:
        raw = Path(path).read_bytes()
    except OSError as e:
        raise SelectionReadError(path, e.strerror or str(e)) from e
    return raw.decode("utf-8", errors="replace")


def slice_lines(text: str, range_: Optional[LineRange]) -> str:
    """
    Cat text theo line range.

    - end duoc clamp ve so dong thuc te
    - start vuot qua cuoi file -> chuoi rong
    - Cac dong duoc noi lai bang "\\n" (khong co newline cuoi)

    Args:
        text: Noi dung file
        range_: Inclusive 1-based (start, end), None = giu nguyen

    Returns:
        Text da cat
    """
    if range_ is None:
        return text

    start, end = range_
    start_idx = max(start - 1, 0)
    end_idx = max(end, start_idx)
    lines = split_lines(text)
    if start_idx >= len(lines):
        return ""
    return "\n".join(lines[start_idx:min(end_idx, len(lines))])


def split_lines(text: str) -> List[str]:
    """
    Tach text thanh cac dong, chi ngat tai "\\n".

    "\\r" cuoi moi dong (CRLF) bi bo; newline cuoi file khong tao dong rong.
    Cac ky tu khac ("\\x0c", "\\u2028", "\\r" le) van nam trong dong.
    """
    if not text:
        return []
    lines = text.split("\n")
    if text.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def load_selection_text(item: SelectionItem) -> str:
    return slice_lines(read_text(item.path), item.range)
