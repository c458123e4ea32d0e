"""Decoding of raw provider answer sets into a closed set of value shapes.

Raw answers arrive as a mapping of internal field key to an entry such as
``{"name": "ndisNumber", "text": "NDIS Number", "type": "control_textbox",
"answer": "431187858"}``. The ``answer`` member is untyped: a string, a
name object, an address object, a list of uploaded file URLs, or anything
else. Each entry is decoded once, here, into an :class:`AnswerEntry` whose
``value`` is one of the ``*Value`` classes below.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Union

FILE_UPLOAD_TYPES = {"control_fileupload"}
_ADDRESS_KEYS = ("addr_line1", "addr_line2", "city", "state", "postal")
_ENTRY_KEYS = {"answer", "prettyFormat", "text", "type", "name"}
QUESTION_KEY_RE = re.compile(r"^q\d+_(?P<name>.+)$")
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


@dataclass(frozen=True)
class TextValue:
    text: str


@dataclass(frozen=True)
class NameValue:
    first: str
    last: str

    @property
    def full_name(self) -> str:
        return f"{self.first} {self.last}".strip()


@dataclass(frozen=True)
class AddressValue:
    line1: str = ""
    line2: str = ""
    city: str = ""
    state: str = ""
    postal: str = ""

    def joined(self) -> str:
        parts = [self.line1, self.line2, self.city, self.state, self.postal]
        return ", ".join(part for part in parts if part)


@dataclass(frozen=True)
class FileListValue:
    urls: tuple[str, ...]


@dataclass(frozen=True)
class ScalarValue:
    raw: Any


AnswerValue = Union[TextValue, NameValue, AddressValue, FileListValue, ScalarValue]


@dataclass(frozen=True)
class AnswerEntry:
    key: str
    label: str
    name: str
    field_type: str
    value: AnswerValue

    @property
    def label_lower(self) -> str:
        return self.label.lower()

    @property
    def name_lower(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class AnswerBag:
    entries: tuple[AnswerEntry, ...]

    def __iter__(self) -> Iterator[AnswerEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def searchable_text(self) -> str:
        """Lower-cased concatenation of labels and textual values, for keyword scans."""
        chunks: list[str] = []
        for entry in self.entries:
            chunks.append(entry.label_lower)
            chunks.append(value_text(entry.value).lower())
        return "\n".join(chunk for chunk in chunks if chunk)


@dataclass(frozen=True)
class Submission:
    form_id: str
    submission_id: str
    answers: AnswerBag
    created_at: str | None = None


def _is_url(value: Any) -> bool:
    return isinstance(value, str) and value.strip().startswith(("http://", "https://"))


def _clean(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def decode_value(raw: Any, field_type: str = "") -> AnswerValue:
    if isinstance(raw, list):
        urls = tuple(item.strip() for item in raw if _is_url(item))
        if urls and (field_type in FILE_UPLOAD_TYPES or len(urls) == len(raw)):
            return FileListValue(urls=urls)
        return ScalarValue(raw=raw)
    if field_type in FILE_UPLOAD_TYPES and _is_url(raw):
        return FileListValue(urls=(raw.strip(),))
    if isinstance(raw, Mapping):
        if "first" in raw or "last" in raw:
            return NameValue(first=_clean(raw.get("first")), last=_clean(raw.get("last")))
        if any(key in raw for key in _ADDRESS_KEYS):
            return AddressValue(
                line1=_clean(raw.get("addr_line1")),
                line2=_clean(raw.get("addr_line2")),
                city=_clean(raw.get("city")),
                state=_clean(raw.get("state")),
                postal=_clean(raw.get("postal")),
            )
        return ScalarValue(raw=dict(raw))
    if isinstance(raw, str):
        return TextValue(text=raw)
    return ScalarValue(raw=raw)


def split_question_key(key: str) -> tuple[str, str]:
    """``q7_preferredLocation`` to ``("preferredLocation", "Preferred Location")``."""
    match = QUESTION_KEY_RE.match(key)
    name = match.group("name") if match else key
    label = " ".join(_CAMEL_RE.sub(" ", name).replace("_", " ").split())
    return name, label[:1].upper() + label[1:]


def is_question_key(key: str) -> bool:
    return QUESTION_KEY_RE.match(key) is not None


def decode_entry(key: str, raw_entry: Any) -> AnswerEntry:
    if not isinstance(raw_entry, Mapping) or not _ENTRY_KEYS & set(raw_entry):
        # Flat webhook payloads carry bare values keyed by field name.
        name, label = split_question_key(str(key))
        return AnswerEntry(key=str(key), label=label, name=name, field_type="", value=decode_value(raw_entry))

    field_type = _clean(raw_entry.get("type"))
    name = _clean(raw_entry.get("name"))
    label = _clean(raw_entry.get("text")) or name or str(key)
    raw_value = raw_entry.get("answer")
    if raw_value in (None, ""):
        raw_value = raw_entry.get("prettyFormat")
    return AnswerEntry(key=str(key), label=label, name=name, field_type=field_type, value=decode_value(raw_value, field_type))


def decode_answers(raw_answers: Mapping[str, Any] | None) -> AnswerBag:
    if not raw_answers:
        return AnswerBag(entries=())
    return AnswerBag(entries=tuple(decode_entry(key, entry) for key, entry in raw_answers.items()))


def decode_submission(raw: Mapping[str, Any], *, form_id: str | None = None) -> Submission:
    return Submission(
        form_id=str(raw.get("form_id") or form_id or ""),
        submission_id=str(raw.get("id") or ""),
        answers=decode_answers(raw.get("answers") or {}),
        created_at=raw.get("created_at"),
    )


def value_text(value: AnswerValue) -> str:
    """Collapse any value shape to a trimmed string; empty when nothing usable."""
    if isinstance(value, TextValue):
        return value.text.strip()
    if isinstance(value, NameValue):
        return value.full_name
    if isinstance(value, AddressValue):
        return value.joined()
    if isinstance(value, FileListValue):
        return ""
    if value.raw is None:
        return ""
    if isinstance(value.raw, list):
        return ", ".join(_clean(item) for item in value.raw if _clean(item))
    if isinstance(value.raw, dict):
        return ", ".join(_clean(item) for item in value.raw.values() if _clean(item))
    return _clean(value.raw)
