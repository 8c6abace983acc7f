#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

"""
Tests for the Subject value type: slash syntax and x509.Name conversion.
"""

from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.x509.oid import NameOID

from subjpol.x509_subject import Subject, verify_x509_subject


# === SLASH SYNTAX =============================================================

def test_parse_keeps_order() -> None:
    subject = Subject.parse('/CN=YubiKey ECCP256/O=Example Corp/C=US')
    assert subject.to_list() == [
        ('CN', 'YubiKey ECCP256'), ('O', 'Example Corp'), ('C', 'US')]
    assert subject.names() == ['CN', 'O', 'C']
    assert subject.get('O') == 'Example Corp'
    assert subject.get('OU') is None


def test_parse_accepts_openssl_trailing_slash() -> None:
    assert Subject.parse('/CN=foo/') == Subject([('CN', 'foo')])
    assert Subject.parse('/') == Subject()


def test_parse_custom_and_dotted_names() -> None:
    subject = Subject.parse('/CN=foo/myAttr=1/2.5.4.97=VATUS-1')
    assert subject.names() == ['CN', 'myAttr', '2.5.4.97']


def test_escapes() -> None:
    subject = Subject.parse(r'/CN=a\,b\/c/O=\ padded\ ')
    assert subject.to_list() == [('CN', 'a,b/c'), ('O', ' padded ')]
    assert Subject.parse(str(subject)) == subject


@pytest.mark.parametrize('text', [
    'CN=foo',
    '/CN',
    '/CN=a,b',
    '/CN= foo',
    '/CN=#foo',
    '/CN=foo ',
    '/CN=a\\\\ ',
    '/CN=foo\\',
    '/C N=foo',
    '/=foo',
])
def test_parse_rejects(text: str) -> None:
    with pytest.raises(ValueError):
        verify_x509_subject(text)


def test_str_round_trip() -> None:
    subject = Subject([('CN', 'x'), ('O', 'y'), ('L', 'Chicago')])
    assert str(subject) == '/CN=x/O=y/L=Chicago'
    assert Subject.parse(str(subject)) == subject


def test_items_must_be_string_pairs() -> None:
    with pytest.raises(TypeError):
        Subject([('CN', 1)])
    with pytest.raises(ValueError):
        Subject([('CN',)])


# === X509 NAME ================================================================

def test_to_x509_name() -> None:
    subject = Subject([
        ('C', 'US'), ('L', 'Chicago'), ('CN', 'x'), ('emailAddress', 'a@b.com')])
    name = subject.to_x509_name()
    assert [attr.oid for attr in name] == [
        NameOID.COUNTRY_NAME,
        NameOID.LOCALITY_NAME,
        NameOID.COMMON_NAME,
        NameOID.EMAIL_ADDRESS,
    ]
    assert Subject.from_x509_name(name) == subject


def test_to_x509_name_with_dotted_oid() -> None:
    name = Subject([('2.5.4.97', 'VATUS-1')]).to_x509_name()
    attr = next(iter(name))
    assert attr.oid == x509.ObjectIdentifier('2.5.4.97')
    assert Subject.from_x509_name(name) == Subject([('2.5.4.97', 'VATUS-1')])


def test_to_x509_name_rejects_unknown_short_name() -> None:
    with pytest.raises(ValueError):
        Subject([('myAttr', 'x')]).to_x509_name()


def test_from_x509_name_rejects_multi_valued_rdn() -> None:
    name = x509.Name([x509.RelativeDistinguishedName([
        x509.NameAttribute(NameOID.COMMON_NAME, 'x'),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, 'y'),
    ])])
    with pytest.raises(ValueError):
        Subject.from_x509_name(name)


def test_trailing_space_after_escaped_backslash() -> None:
    with pytest.raises(ValueError, match='Trailing spaces'):
        verify_x509_subject('/CN=a\\\\ ')
    assert verify_x509_subject('/CN=a\\\\\\ ') == [('CN', 'a\\ ')]
    assert verify_x509_subject('/CN=a\\\\') == [('CN', 'a\\')]
