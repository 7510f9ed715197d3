ORDINAL_SLOT = "{n}"


def placeholder_family(template: str) -> str:
    """Template with its ordinal slot removed, e.g. "<EMAIL_{n}>" -> "<EMAIL_>"."""
    return template.replace(ORDINAL_SLOT, "")


def _normalize(text: str) -> str:
    return text.strip().casefold()


class PlaceholderAllocator:
    """Assigns stable, sequential placeholder numbers within one scan.

    Each placeholder family keeps its own counter; the same normalized value
    always gets the same number. One allocator belongs to exactly one scan.
    """

    def __init__(self) -> None:
        # family -> normalized value -> ordinal
        self._ordinals: dict[str, dict[str, int]] = {}

    def allocate(self, template: str, text: str) -> str:
        """Return the placeholder for text, numbering it on first sight."""
        values = self._ordinals.setdefault(placeholder_family(template), {})
        key = _normalize(text)

        if key not in values:
            values[key] = len(values) + 1

        return template.replace(ORDINAL_SLOT, str(values[key]))

    def peek(self, template: str, text: str) -> int | None:
        """Look up the ordinal already given to text, without allocating."""
        return self._ordinals.get(placeholder_family(template), {}).get(_normalize(text))

    def count(self, template: str) -> int:
        return len(self._ordinals.get(placeholder_family(template), {}))

    def reset(self) -> None:
        self._ordinals.clear()
