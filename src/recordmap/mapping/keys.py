"""Key normalization between Python field names and external document keys.

Field names are idiomatic identifiers (``userName``, ``_class``, ``zip_code``);
document keys are whatever the producer chose (``user_name``, ``class``,
``zip-code``). `normalize_key` bridges the two with a fixed rule order, first
match wins:

1. Verbatim match against the document keys.
2. Reserved-word unescape: ``_class`` -> ``class`` when ``class`` is reserved.
3. Illegal-character recovery: a document key whose punctuation, replaced by
   ``_``, equals the candidate maps back to the ORIGINAL document key.
4. camelCase/PascalCase -> snake_case.
5. With document keys supplied and no match -> ``None``.
6. Without document keys (cleanup mode) -> the snake_case form.

Inbound conversion therefore never invents keys that the document lacks,
while outbound cleanup always yields a normalized key.

Public Functions:
    camel_case_to_underscores: Pure camel/Pascal -> snake transform
    sanitize_key: Replace illegal characters with underscores
    normalize_key: Apply the rule order above
    build_key_mapping: Document key -> field name map for one populate pass
"""
from __future__ import annotations

import logging
from typing import AbstractSet, Collection, Dict, Iterable, Mapping, Optional

from ..config import BASE_RESERVED_WORDS
from ..models.fields import FieldDescriptor

logger = logging.getLogger(__name__)

__all__ = [
    "ILLEGAL_CHARACTERS",
    "build_key_mapping",
    "camel_case_to_underscores",
    "normalize_key",
    "sanitize_key",
]

ILLEGAL_CHARACTERS = (
    " ", "-", "&", "%", "#", "@", "!", "$", "^", "*",
    "(", ")", "<", ">", "?", ".", ",", ":", ";",
)

_SANITIZE_TABLE = str.maketrans({c: "_" for c in ILLEGAL_CHARACTERS})


def camel_case_to_underscores(value: str) -> str:
    """Convert camelCase or PascalCase to snake_case.

    The first character is lowercased; every later uppercase letter becomes
    an underscore followed by its lowercase form. Runs of capitals are not
    grouped: ``"URL"`` becomes ``"u_r_l"``.
    """
    if not value:
        return value
    out = [value[0].lower()]
    for ch in value[1:]:
        if ch.isupper():
            out.append("_")
            out.append(ch.lower())
        else:
            out.append(ch)
    return "".join(out)


def sanitize_key(key: str) -> str:
    return key.translate(_SANITIZE_TABLE)


def normalize_key(
    candidate: str,
    reserved_words: AbstractSet[str] = BASE_RESERVED_WORDS,
    document_keys: Optional[Collection[str]] = None,
) -> Optional[str]:
    """Map a field name (or custom key) onto a document key.

    Args:
        candidate: Field name or custom external key to normalize
        reserved_words: Words that fields escape with a leading underscore
        document_keys: Keys of the inbound document; ``None`` selects cleanup
            mode (producing output keys)

    Returns:
        Matching document key, the snake_case form in cleanup mode, or None
        when a document was supplied and nothing matched.
    """
    if document_keys is not None and candidate in document_keys:
        return candidate

    key = candidate
    if key.startswith("_") and key[1:] in reserved_words:
        key = key[1:]
        if document_keys is not None and key in document_keys:
            return key

    if document_keys is not None:
        for doc_key in document_keys:
            if not isinstance(doc_key, str):
                continue
            if sanitize_key(doc_key) == key:
                return doc_key

    key = camel_case_to_underscores(key)
    if document_keys is not None:
        if key in document_keys:
            return key
        return None
    return key


def build_key_mapping(
    fields: Iterable[FieldDescriptor],
    document: Mapping[str, object],
    reserved_words: AbstractSet[str] = BASE_RESERVED_WORDS,
) -> Dict[str, str]:
    """Build the document key -> field name mapping for one populate pass.

    Custom external keys are registered first; every field's external key is
    then normalized against the document keys. Identity entries are omitted
    (a document key equal to the field name needs no mapping). Excluded
    fields never appear.
    """
    descriptors = [d for d in fields if not d.excluded]
    field_names = {d.name for d in descriptors}
    document_keys = document.keys()
    mapping: Dict[str, str] = {}
    for descriptor in descriptors:
        if descriptor.external_key is not None:
            mapping[descriptor.external_key] = descriptor.name
        doc_key = normalize_key(descriptor.key, reserved_words, document_keys)
        if doc_key is None or doc_key == descriptor.name:
            continue
        # a key spelled exactly like another field belongs to that field
        if doc_key in field_names:
            continue
        mapping.setdefault(doc_key, descriptor.name)
    return mapping
