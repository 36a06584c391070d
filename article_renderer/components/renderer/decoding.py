"""
Decoding of script-evaluation results.

Browser surfaces hand back whatever a script returned as JSON text, so a
returned string arrives quoted and escaped (``"\\"<html>...\\""``). This
module turns that back into a plain string.
"""
import json
from typing import Optional


def decode_script_result(raw: Optional[str]) -> Optional[str]:
    """
    Unwraps a JSON-encoded script result.

    Args:
        raw (Optional[str]): The text the surface returned.

    Returns:
        Optional[str]: The decoded string. JSON ``null`` (an ``undefined`` or
        ``null`` script result) decodes to None; other JSON scalars are returned
        in their canonical JSON form. Text that is not valid JSON has one layer
        of surrounding double quotes removed.
    """
    if raw is None:
        return None
    try:
        value = json.loads(raw)
    except ValueError:
        return _strip_one_quote_layer(raw)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value)


def _strip_one_quote_layer(raw: str) -> str:
    text = raw.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1]
    return text
