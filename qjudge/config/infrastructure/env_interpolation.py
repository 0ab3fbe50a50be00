"""${ENV_VAR} and ${ENV_VAR:-default} substitution over raw YAML data."""

import os
import re
from collections.abc import Mapping

_REFERENCE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")

type RawValue = (
    str | int | float | bool | None | list["RawValue"] | dict[str, "RawValue"]
)


class EnvInterpolator:
    """Resolves environment references in every string of a raw config tree.

    A reference with a `:-default` never counts as missing.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = os.environ if environ is None else environ

    def missing(self, data: RawValue) -> list[str]:
        """Names of unset variables referenced without a default, in first-seen order."""
        found: list[str] = []
        for text in _strings(data):
            for match in _REFERENCE.finditer(text):
                name, default = match.group(1), match.group(2)
                if default is None and name not in self._environ and name not in found:
                    found.append(name)
        return found

    def interpolate(self, data: RawValue) -> RawValue:
        """Return a copy of data with every reference substituted.

        Call `missing` first; an unset variable without a default raises KeyError.
        """
        if isinstance(data, str):
            return _REFERENCE.sub(self._resolve, data)
        if isinstance(data, list):
            return [self.interpolate(item) for item in data]
        if isinstance(data, dict):
            return {key: self.interpolate(value) for key, value in data.items()}
        return data

    def _resolve(self, match: re.Match[str]) -> str:
        name, default = match.group(1), match.group(2)
        if name in self._environ:
            return self._environ[name]
        if default is not None:
            return default
        raise KeyError(name)


def _strings(data: RawValue) -> list[str]:
    if isinstance(data, str):
        return [data]
    if isinstance(data, list):
        return [text for item in data for text in _strings(item)]
    if isinstance(data, dict):
        return [text for value in data.values() for text in _strings(value)]
    return []
