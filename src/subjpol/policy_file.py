# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

from __future__ import annotations

from typing import IO

from subjpol.policy import InvalidPolicyDefinition, SubjectPolicy, parse_policy_yaml


def load_definition(text: str | IO, section: str | None = None) -> object:
    """
    Parse a YAML policy definition.

    Args:
        text: YAML document (string or open stream)
        section: Optional top-level key the policy is nested under, e.g.
            'subject_item_policy' in a certificate profile

    Returns:
        The definition mapping, ready for SubjectPolicy()

    Raises:
        InvalidPolicyDefinition: If the YAML is malformed, declares a key
            twice, or the section is missing
    """
    data = parse_policy_yaml(text)
    if section is not None:
        if not isinstance(data, dict) or section not in data:
            raise InvalidPolicyDefinition(f'No {section!r} section in policy')
        data = data[section]
        if data is None:
            data = {}
    return data


def load_policy_file(path: str, section: str | None = None) -> SubjectPolicy:
    with open(path, encoding='utf-8') as f:
        return SubjectPolicy(load_definition(f, section=section))


def dump_policy(policy: SubjectPolicy, stream: IO | None = None) -> str | None:
    if stream is None:
        return policy.to_yaml()
    stream.write(policy.to_yaml())
    return None
