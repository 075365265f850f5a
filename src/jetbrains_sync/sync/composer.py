"""Assemble the final vmoptions document from its fragments.

The document is, in order: the product-specific fragment, the shared
fragment, and, only when the target already carried preset variables, the
toolbox comment fragment followed by those preset lines.  IDEs read
vmoptions files with LF line endings only, so every CRLF is normalised.
"""

from __future__ import annotations

Fragment = bytes | str


def _as_text(fragment: Fragment | None) -> str:
    if fragment is None:
        return ""
    if isinstance(fragment, bytes):
        return fragment.decode("utf-8")
    return fragment


def compose_content(
    specific: Fragment,
    general: Fragment,
    toolbox_comment: Fragment | None = None,
    preset_vars: str | None = None,
) -> str:
    """Merge fragments into one LF-terminated document.

    Args:
        specific: Product-specific options.
        general: Options shared by every product.
        toolbox_comment: Comment introducing the preserved preset lines.
        preset_vars: Preset lines recovered from the previous target content.

    Returns:
        The composed document.  With no preset lines this is exactly
        ``specific + "\\n" + general + "\\n"`` with CRLF replaced by LF.
    """
    content = _as_text(specific) + "\n" + _as_text(general) + "\n"
    if preset_vars:
        content += _as_text(toolbox_comment) + "\n" + preset_vars
    return content.replace("\r\n", "\n")
