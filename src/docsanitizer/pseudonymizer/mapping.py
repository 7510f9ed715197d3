import contextlib
import json
import os
from pathlib import Path


class MappingStore:
    """Placeholder -> original values, in first-seen order without duplicates.

    This is the reversible record of a masking: whoever holds it can restore
    the original text.
    """

    def __init__(self, mapping: dict[str, list[str]] | None = None) -> None:
        self._values: dict[str, list[str]] = {}
        for placeholder, originals in (mapping or {}).items():
            for original in originals:
                self.add(placeholder, original)

    def add(self, placeholder: str, original: str) -> None:
        values = self._values.setdefault(placeholder, [])
        if original not in values:
            values.append(original)

    def get_originals(self, placeholder: str) -> list[str]:
        return list(self._values.get(placeholder, []))

    @property
    def mapping(self) -> dict[str, list[str]]:
        return {placeholder: list(values) for placeholder, values in self._values.items()}

    def __len__(self) -> int:
        return len(self._values)

    def restore(self, masked_text: str) -> str:
        """Replace every placeholder with its first original value."""
        result = masked_text
        # Longest first so <EMAIL_1> never eats the prefix of <EMAIL_12>
        for placeholder in sorted(self._values, key=len, reverse=True):
            if placeholder in result and self._values[placeholder]:
                result = result.replace(placeholder, self._values[placeholder][0])
        return result

    def save(self, path: Path) -> None:
        """Save mapping to a JSON file with restricted permissions (contains the originals)."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self._values, f, ensure_ascii=False, indent=2)
        with contextlib.suppress(OSError):
            os.chmod(path, 0o600)

    @classmethod
    def load(cls, path: Path) -> "MappingStore":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        store = cls()
        for placeholder, originals in data.items():
            if isinstance(originals, str):
                originals = [originals]
            for original in originals:
                store.add(placeholder, str(original))
        return store
