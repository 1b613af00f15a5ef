"""Cell value normalizers.

Every function here is total: malformed input yields ``None`` instead of raising,
so a bad cell never costs the rest of its row.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Mapping

_NON_DIGITS = re.compile(r"\D")

HEADCOUNT_LABELS: Final[Mapping[str, str]] = MappingProxyType(
    {
        "NN": "0 (non employeur)",
        "00": "0 salarié",
        "01": "1-2 sal.",
        "02": "3-5 sal.",
        "03": "6-9 sal.",
        "11": "10-19 sal.",
        "12": "20-49 sal.",
        "21": "50-99 sal.",
        "22": "100-199 sal.",
        "31": "200-249 sal.",
        "32": "250-499 sal.",
        "41": "500-999 sal.",
    }
)

SMALL_BUSINESS_CODES: Final[frozenset[str]] = frozenset({"NN", "00", "01", "02", "03", "11"})

# (required substrings, forbidden substrings, code); first match wins, so "120" -> "01".
_LABEL_RULES: Final[tuple[tuple[tuple[str, ...], tuple[str, ...], str], ...]] = (
    (("1", "2"), ("10",), "01"),
    (("3", "5"), (), "02"),
    (("6", "9"), (), "03"),
    (("10", "19"), (), "11"),
    (("20", "49"), (), "12"),
    (("50", "99"), (), "21"),
)


def cell_text(value: object) -> str | None:
    """Render a spreadsheet cell as stripped text, ``None`` when blank.

    Integral floats (numeric cells such as ``75001.0``) lose their ``.0``.
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float):
        if value != value:  # NaN
            return None
        if value.is_integer():
            value = int(value)
    text = str(value).strip()
    return text or None


def digits_only(value: object) -> str | None:
    text = cell_text(value)
    if text is None:
        return None
    digits = _NON_DIGITS.sub("", text)
    return digits or None


def normalize_phone(value: object) -> str | None:
    """Return the 10-digit national form of a French phone number.

    The trailing digits carry the national number whatever prefix the source
    used (``+33``, ``0033``, leading zero or none).
    """

    digits = digits_only(value)
    if digits is None or len(digits) < 9:
        return None
    last_ten = digits[-10:]
    if len(last_ten) == 10 and last_ten.startswith("0"):
        return last_ten
    return "0" + digits[-9:]


def normalize_postal_code(value: object) -> str | None:
    text = cell_text(value)
    if text is None:
        return None
    if "." in text:
        text = text.split(".", 1)[0]
    code = _NON_DIGITS.sub("", text)
    if len(code) < 4:
        return None
    if len(code) == 4:
        code = "0" + code
    return code[:5]


def infer_headcount_code(label: object) -> str | None:
    """Guess a small-business bracket code from a free-text headcount label."""

    text = cell_text(label)
    if text is None:
        return None
    lowered = text.lower()
    for required, forbidden, code in _LABEL_RULES:
        if all(part in lowered for part in required) and not any(
            part in lowered for part in forbidden
        ):
            return code
    return None


def normalize_headcount_code(value: object) -> str | None:
    text = cell_text(value)
    if text is None:
        return None
    code = text.upper()
    if len(code) == 1 and code.isdigit():
        code = code.zfill(2)
    return code


@dataclass(frozen=True, slots=True)
class Headcount:
    code: str | None
    label: str | None

    @property
    def present(self) -> bool:
        return self.code is not None or self.label is not None


def resolve_headcount(
    code: object,
    label: object,
    *,
    labels: Mapping[str, str] = HEADCOUNT_LABELS,
) -> Headcount:
    """Combine an explicit bracket code and/or a free-text label.

    A recognized code always carries its table label; an unrecognized code keeps
    whatever label the source supplied.
    """

    label_text = cell_text(label)
    normalized_code = normalize_headcount_code(code)
    if normalized_code is None and label_text is not None:
        normalized_code = infer_headcount_code(label_text)
    if normalized_code is not None and normalized_code in labels:
        return Headcount(code=normalized_code, label=labels[normalized_code])
    return Headcount(code=normalized_code, label=label_text)
