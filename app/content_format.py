import enum
import json


class ContentFormat(str, enum.Enum):
    STRUCTURED = "structured"
    LEGACY = "legacy"
    UNKNOWN = "unknown"


def detect_content_format(content: str | None) -> ContentFormat:
    """
    Classify stored post content before any conversion is attempted.

    Already-structured content (a JSON list of typed blocks, possibly empty)
    must never be fed back into the legacy converter.
    """
    if not content or not content.strip():
        return ContentFormat.UNKNOWN

    try:
        parsed = json.loads(content)
    except ValueError:
        if "<" in content and ">" in content:
            return ContentFormat.LEGACY
        return ContentFormat.UNKNOWN

    if isinstance(parsed, list):
        if not parsed or (isinstance(parsed[0], dict) and "type" in parsed[0]):
            return ContentFormat.STRUCTURED
    return ContentFormat.UNKNOWN
