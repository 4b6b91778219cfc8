import re
import html
from typing import Optional

_SCRIPT_RE = re.compile(r'<script.*?>.*?</script>', flags=re.DOTALL | re.IGNORECASE)


def sanitize_input(text: Optional[str]) -> Optional[str]:
    """Basic input sanitization for free text that is rendered back to reviewers."""
    if not isinstance(text, str):
        return text
    # Strip script blocks before escaping so the tags are still recognisable
    sanitized = _SCRIPT_RE.sub('', text)
    return html.escape(sanitized.strip())
