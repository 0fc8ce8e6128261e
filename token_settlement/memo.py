"""
Memo grammar: "zupy:v1:{source}:{source_id}".

The source id is the remainder of the text and may itself contain colons.
"""
from .constants import MEMO_PREFIX, MEMO_VERSION
from .errors import ErrorCode, ValidationError


def is_valid_memo(memo: str) -> bool:
    parts = memo.split(':', 3)
    if len(parts) != 4:
        return False
    prefix, version, source, source_id = parts
    return prefix == MEMO_PREFIX and version == MEMO_VERSION and bool(source) and bool(source_id)


def validate_memo_format(memo: str):
    if not is_valid_memo(memo):
        raise ValidationError(ErrorCode.INVALID_MEMO_FORMAT, f"Invalid memo format: {memo!r}")


def make_memo(source: str, source_id: str) -> str:
    return f"{MEMO_PREFIX}:{MEMO_VERSION}:{source}:{source_id}"
