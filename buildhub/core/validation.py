import html


def sanitize_text(value: str | None) -> str:
    """Escape user-provided text so it is inert when rendered as HTML.

    Covers the characters html.escape does (``& < > " '``) plus ``/`` and the
    backtick, then trims surrounding whitespace.
    """
    if not value:
        return ""

    escaped = html.escape(value, quote=True)
    escaped = escaped.replace("/", "&#x2F;").replace("`", "&#x60;")
    return escaped.strip()
