"""Query helpers shared by services."""


def escape_like(value: str) -> str:
    r"""
    Escape LIKE wildcards so user input matches literally.

    ``%`` and ``_`` are wildcards and ``\`` is the escape character; pair the
    result with ``escape="\\"`` on ``like``/``ilike``.
    """
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
