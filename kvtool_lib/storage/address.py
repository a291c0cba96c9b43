from typing import Tuple

DEFAULT_CONTAINER = "default"
SEPARATOR = "/"


def parse_address(key: str) -> Tuple[str, str]:
    """Split `key` into `(container, item)` at the last separator.

    A key without a separator, or whose only separator is the first
    character, lands in the default container with the whole key as item.
    The item is empty when the key ends with the separator.
    """
    i = key.rfind(SEPARATOR)
    if i > 0:
        return key[:i], key[i + 1:]
    return DEFAULT_CONTAINER, key
