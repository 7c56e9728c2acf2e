"""
JSON extraction and repair for enrichment responses.

Model output may be wrapped in code fences, surrounded by prose or cut off
mid-object when the token budget runs out. extract() recovers the first
JSON object it can:

    1. strip ```json / ``` fences
    2. string-aware brace scan for the first balanced object
    3. truncated: cut back to a comma and append the missing closers
    4. cruder regex repair of the dangling tail
    5. direct parse of the whole content

Every failure path logs the byte length, missing brace/bracket counts and a
preview of the content.
"""

import json
import re
from typing import Any, Optional

from loguru import logger

from src.utils.image_urls import is_valid_image_url

repair_log = logger.bind(module="JsonRepair")

PREVIEW_CHARS = 500
TAIL_CHARS = 200

FENCE_JSON_PATTERN = re.compile(r"```json\s*", re.IGNORECASE)
FENCE_PATTERN = re.compile(r"```\s*")
CONTROL_CHARS_PATTERN = re.compile(r"[\x00-\x1F\x7F]")
TRAILING_CONTROL_PATTERN = re.compile(r"[\x00-\x1F\x7F\s]+$")

# Crude repairs, applied in order to the truncated tail
DANGLING_KEY_PATTERN = re.compile(r",\s*\"[^\"]*$", re.MULTILINE)
DANGLING_ARRAY_PATTERN = re.compile(r"\[\s*\"[^\"]*$", re.MULTILINE)
DANGLING_VALUE_PATTERN = re.compile(r":\s*\"[^\"]*$", re.MULTILINE)


def _loads_object(text: str) -> Optional[dict[str, Any]]:
    try:
        decoded = json.loads(text)
    except ValueError:
        return None
    return decoded if isinstance(decoded, dict) else None


def _byte_length(text: str) -> int:
    return len(text.encode("utf-8", errors="ignore"))


def strip_fences(content: str) -> str:
    """Remove markdown code fences."""
    content = FENCE_JSON_PATTERN.sub("", content)
    content = FENCE_PATTERN.sub("", content)
    return content.strip()


def find_json_object(content: str) -> tuple[str, int, int, int]:
    """
    Scan for the first balanced {...} span.

    Quotes and escapes are tracked so braces inside strings are ignored.

    Returns:
        (object_text, open_braces, open_brackets, start_pos). object_text is
        empty when no balanced object was found, in which case the counts
        give how many closers are missing. start_pos is -1 when there is
        no "{" at all.
    """
    brace_count = 0
    bracket_count = 0
    start_pos = -1
    in_string = False
    escape_next = False

    for i, char in enumerate(content):
        if escape_next:
            escape_next = False
            continue
        if char == "\\":
            escape_next = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if char == "{":
            if start_pos == -1:
                start_pos = i
            brace_count += 1
        elif char == "}":
            brace_count -= 1
            if brace_count == 0 and start_pos != -1:
                return content[start_pos : i + 1], 0, 0, start_pos
        elif char == "[":
            bracket_count += 1
        elif char == "]":
            bracket_count -= 1

    return "", brace_count, bracket_count, start_pos


def closers(missing_braces: int, missing_brackets: int) -> str:
    """Closing characters for a truncated object, brackets first."""
    return "]" * max(0, missing_brackets) + "}" * max(0, missing_braces)


def repair_truncated(
    text: str, missing_braces: int, missing_brackets: int
) -> Optional[dict[str, Any]]:
    """
    Repair by truncating at successively earlier commas and closing.

    Args:
        text: Content from the first "{" to the end of input
        missing_braces: Unclosed "{" count
        missing_brackets: Unclosed "[" count

    Returns:
        Parsed object or None
    """
    text = TRAILING_CONTROL_PATTERN.sub("", text)
    text = CONTROL_CHARS_PATTERN.sub(" ", text)
    suffix = closers(missing_braces, missing_brackets)

    for i in range(len(text) - 1, 0, -1):
        if text[i] != ",":
            continue
        parsed = _loads_object(text[:i] + suffix)
        if parsed is not None:
            return parsed

    return _loads_object(text + suffix)


def repair_dangling(
    text: str, missing_braces: int, missing_brackets: int
) -> Optional[dict[str, Any]]:
    """
    Regex repair of a dangling tail, then close.

    Drops an unterminated trailing key, empties a dangling array and blanks
    a dangling string value.
    """
    text = DANGLING_KEY_PATTERN.sub("", text)
    text = DANGLING_ARRAY_PATTERN.sub("[]", text)
    text = DANGLING_VALUE_PATTERN.sub(': ""', text)
    return _loads_object(text + closers(missing_braces, missing_brackets))


def clean_image_urls(data: dict[str, Any]) -> dict[str, Any]:
    """
    Drop invalid image URLs from a repaired object.

    Repairs can leave half-written URLs behind; images and
    selected_images.gallery_urls are filtered and an invalid
    selected_images.hero_url is nulled.
    """
    images = data.get("images")
    if isinstance(images, list):
        data["images"] = [url for url in images if is_valid_image_url(url)]

    selected = data.get("selected_images")
    if isinstance(selected, dict):
        gallery = selected.get("gallery_urls")
        if isinstance(gallery, list):
            selected["gallery_urls"] = [url for url in gallery if is_valid_image_url(url)]
        if selected.get("hero_url") is not None and not is_valid_image_url(selected["hero_url"]):
            selected["hero_url"] = None

    return data


def extract(content: str) -> Optional[dict[str, Any]]:
    """
    Recover a JSON object from model output.

    Args:
        content: Raw response text

    Returns:
        Parsed object or None if nothing could be recovered
    """
    original_length = _byte_length(content)
    content = strip_fences(content)

    json_text, brace_count, bracket_count, start_pos = find_json_object(content)

    if json_text:
        parsed = _loads_object(json_text)
        if parsed is not None:
            return parsed
        repair_log.warning(
            f"Balanced object failed to parse ({_byte_length(json_text)} bytes): "
            f"{json_text[:PREVIEW_CHARS]!r}"
        )

    if start_pos != -1 and (brace_count > 0 or bracket_count > 0):
        repair_log.warning(
            f"Repairing truncated JSON: {original_length} bytes, "
            f"missing_braces={brace_count}, missing_brackets={bracket_count}"
        )
        incomplete = content[start_pos:]

        parsed = repair_truncated(incomplete, brace_count, bracket_count)
        if parsed is None:
            parsed = repair_dangling(incomplete, brace_count, bracket_count)
        if parsed is not None:
            return clean_image_urls(parsed)

        repair_log.warning(
            f"Both repair strategies failed: {original_length} bytes, "
            f"missing_braces={brace_count}, missing_brackets={bracket_count}, "
            f"tail={incomplete[-TAIL_CHARS:]!r}"
        )

    parsed = _loads_object(content)
    if parsed is not None:
        return parsed

    repair_log.error(
        f"Could not extract JSON: {original_length} bytes, "
        f"missing_braces={brace_count}, missing_brackets={bracket_count}, "
        f"preview={content[:PREVIEW_CHARS]!r}"
    )
    return None
