import re

BRANDING_SUFFIX = "| LinkedIn Learning"

_INVALID_RUN = re.compile(r'[^A-Za-z0-9._-]+')


def sanitize_filename(name: str) -> str:
    """Turn display text into a filesystem token made of [A-Za-z0-9._-] only.

    Applying it twice gives the same result as applying it once.
    """
    name = name.replace(BRANDING_SUFFIX, "")
    name = name.strip()
    return _INVALID_RUN.sub('_', name)
