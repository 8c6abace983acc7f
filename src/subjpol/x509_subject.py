# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

from __future__ import annotations

import re
from typing import Iterable, Iterator

from cryptography import x509

from subjpol.constants import OID_SHORT_NAMES, SHORT_NAME_OIDS, SPECIAL_CHARS

ATTR_NAME_RE = re.compile(r'^(?:[A-Za-z][A-Za-z0-9-]*|\d+(?:\.\d+)+)$')
DOTTED_OID_RE = re.compile(r'^\d+(?:\.\d+)+$')


# === SLASH SYNTAX =============================================================

def _split_unescaped(text: str, sep: str) -> list[str]:
    parts = []
    current = ''
    i = 0
    while i < len(text):
        if text[i] == '\\':
            current += text[i:i + 2]
            i += 2
        elif text[i] == sep:
            parts.append(current)
            current = ''
            i += 1
        else:
            current += text[i]
            i += 1
    parts.append(current)
    return parts


def _unescape_value(key: str, value: str) -> str:
    # Leading/trailing spaces and a leading '#' must be escaped
    if value.startswith(' ') or value.startswith('#'):
        raise ValueError(
            f"Leading spaces or '#' must be escaped in value for {key}: {value}")

    out = ''
    last_escaped = False
    i = 0
    while i < len(value):
        if value[i] == '\\':
            if i + 1 >= len(value):
                raise ValueError(f'Dangling escape in value for {key}')
            out += value[i + 1]
            last_escaped = True
            i += 2
        elif value[i] in SPECIAL_CHARS:
            raise ValueError(
                f"Unescaped special character '{value[i]}' in value for {key}")
        else:
            out += value[i]
            last_escaped = False
            i += 1

    if value.endswith(' ') and not last_escaped:
        raise ValueError(
            f'Trailing spaces must be escaped in value for {key}: {value}')
    return out


def _escape_value(value: str) -> str:
    out = ''
    for i, char in enumerate(value):
        if char in SPECIAL_CHARS or char == '/':
            out += '\\' + char
        elif char == ' ' and (i == 0 or i == len(value) - 1):
            out += '\\ '
        else:
            out += char
    return out


def verify_x509_subject(subject: str) -> list[tuple[str, str]]:
    """
    Validates a subject string in Yubico/OpenSSL slash-delimited format.
    Returns list of (key, value) tuples if valid, with escapes removed.
    Raises ValueError if invalid.
    """
    if not subject.startswith('/'):
        raise ValueError("Subject must start with '/'")

    parts = _split_unescaped(subject, '/')[1:]  # Skip the first empty part
    if parts and parts[-1] == '':
        parts = parts[:-1]  # openssl appends a trailing '/'

    rdn_list = []
    for part in parts:
        if '=' not in part:
            raise ValueError(f"Missing '=' in RDN: {part}")
        key, value = part.split('=', 1)
        if not ATTR_NAME_RE.match(key):
            raise ValueError(f'Invalid RDN attribute: {key!r}')
        rdn_list.append((key, _unescape_value(key, value)))

    return rdn_list


# === SUBJECT ==================================================================

class Subject:
    '''
    Ordered, immutable sequence of (attribute name, value) pairs.

    The order is the encoding order of the certificate subject.
    '''

    def __init__(self, items: Iterable[tuple[str, str]] = ()):
        pairs = []
        for item in items:
            name, value = item
            if not isinstance(name, str) or not isinstance(value, str):
                raise TypeError(
                    f'Subject items must be (str, str) pairs, got {item!r}')
            pairs.append((name, value))
        self._items: tuple[tuple[str, str], ...] = tuple(pairs)

    # --- SUBJECT PARSE --------------------------------------------------------

    @classmethod
    def parse(cls, text: str) -> Subject:
        return cls(verify_x509_subject(text))

    # --- SUBJECT FROM_X509_NAME -----------------------------------------------

    @classmethod
    def from_x509_name(cls, name: x509.Name) -> Subject:
        items = []
        for rdn in name.rdns:
            if len(rdn) != 1:
                raise ValueError(
                    f'Multi-valued RDNs are not supported: {rdn.rfc4514_string()}')
            attr = next(iter(rdn))
            if not isinstance(attr.value, str):
                raise ValueError(
                    f'Non-string value for attribute {attr.oid.dotted_string}')
            short_name = OID_SHORT_NAMES.get(attr.oid, attr.oid.dotted_string)
            items.append((short_name, attr.value))
        return cls(items)

    # --- SUBJECT TO_X509_NAME -------------------------------------------------

    def to_x509_name(self) -> x509.Name:
        attributes = []
        for name, value in self._items:
            oid = SHORT_NAME_OIDS.get(name)
            if oid is None:
                if not DOTTED_OID_RE.match(name):
                    raise ValueError(f'Unknown attribute short name: {name}')
                oid = x509.ObjectIdentifier(name)
            attributes.append(x509.NameAttribute(oid, value))
        return x509.Name(attributes)

    def names(self) -> list[str]:
        return [name for name, _ in self._items]

    def get(self, name: str) -> str | None:
        'Value of the first pair named `name`, or None.'
        for key, value in self._items:
            if key == name:
                return value
        return None

    def to_list(self) -> list[tuple[str, str]]:
        return list(self._items)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> tuple[str, str]:
        return self._items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subject):
            return NotImplemented
        return self._items == other._items

    def __hash__(self) -> int:
        return hash(self._items)

    def __str__(self) -> str:
        return ''.join(f'/{name}={_escape_value(value)}'
                       for name, value in self._items)

    def __repr__(self) -> str:
        return f'Subject({list(self._items)!r})'
