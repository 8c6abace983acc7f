#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

"""
Tests for reading and writing YAML policy files.
"""

from __future__ import annotations

import io

import pytest

from subjpol.policy import InvalidPolicyDefinition, SubjectPolicy
from subjpol.policy_file import dump_policy, load_definition, load_policy_file

PROFILE = '''\
basic_constraints:
  ca: false
subject_item_policy:
  CN: {policy: required}
  O: {policy: required}
  OU: {policy: optional}
  L: {policy: match, value: Chicago}
'''


def test_load_plain_definition() -> None:
    definition = load_definition('CN: {policy: required}\n')
    assert definition == {'CN': {'policy': 'required'}}


def test_empty_document_is_empty_policy() -> None:
    assert load_definition('') == {}
    assert SubjectPolicy(load_definition('')) == SubjectPolicy()


def test_load_section() -> None:
    policy = SubjectPolicy(load_definition(PROFILE, section='subject_item_policy'))
    assert policy.required == ('CN', 'O')
    assert policy.optional == ('OU',)
    assert dict(policy.match_values) == {'L': 'Chicago'}


def test_missing_section() -> None:
    with pytest.raises(InvalidPolicyDefinition):
        load_definition(PROFILE, section='nope')


def test_duplicate_attribute_is_rejected() -> None:
    text = 'CN: {policy: required}\nCN: {policy: optional}\n'
    with pytest.raises(InvalidPolicyDefinition, match='CN'):
        load_definition(text)


def test_duplicate_key_inside_rule_is_rejected() -> None:
    with pytest.raises(InvalidPolicyDefinition):
        load_definition('L: {policy: match, value: a, value: b}\n')


def test_malformed_yaml() -> None:
    with pytest.raises(InvalidPolicyDefinition):
        load_definition('CN: {policy: required\n')


def test_bogus_kind_in_file(tmp_path) -> None:
    path = tmp_path / 'policy.yaml'
    path.write_text('CN: {policy: bogus}\n')
    with pytest.raises(InvalidPolicyDefinition):
        load_policy_file(str(path))


def test_file_round_trip(tmp_path) -> None:
    path = tmp_path / 'profile.yaml'
    path.write_text(PROFILE)
    policy = load_policy_file(str(path), section='subject_item_policy')

    out = io.StringIO()
    assert dump_policy(policy, out) is None
    again = tmp_path / 'policy.yaml'
    again.write_text(out.getvalue())
    assert load_policy_file(str(again)) == policy
    assert dump_policy(policy) == out.getvalue()


@pytest.mark.parametrize('value, shown', [
    ('NO', 'bool False'),
    ('60601', 'int 60601'),
])
def test_coerced_match_value_is_named(value: str, shown: str) -> None:
    definition = load_definition(f'C: {{policy: match, value: {value}}}\n')
    with pytest.raises(InvalidPolicyDefinition, match=shown) as excinfo:
        SubjectPolicy(definition)
    assert 'quote the value' in str(excinfo.value)


def test_quoted_match_value_is_accepted() -> None:
    policy = SubjectPolicy(load_definition("C: {policy: match, value: 'NO'}\n"))
    assert dict(policy.match_values) == {'C': 'NO'}
