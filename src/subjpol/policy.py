# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

"""
Subject item policy.

A policy declares which subject fields are allowed in a certificate.
Required means the field *must* be supplied, optional means it will be
encoded if provided, and match means the field must be present and must
match the pinned value. Fields governed by no rule are dropped.

Example definition (as found in a YAML profile):

    CN: {policy: required}
    O: {policy: required}
    OU: {policy: optional}
    L: {policy: match, value: Chicago}
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import IO, Iterable, Mapping

import yaml

from subjpol.constants import (
    POLICY_KEY,
    POLICY_MATCH,
    POLICY_OPTIONAL,
    POLICY_REQUIRED,
    VALUE_KEY,
)
from subjpol.x509_subject import Subject

# === ERRORS ===================================================================

class SubjectPolicyError(ValueError):
    pass


class InvalidPolicyDefinition(SubjectPolicyError):
    pass


class SubjectValidationError(SubjectPolicyError):
    pass


class MatchMismatch(SubjectValidationError):

    def __init__(self, name: str, expected: str, actual: str):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f'This policy requires that {name} have value: {expected!r} '
            f'(got {actual!r})')


class MissingAttributes(SubjectValidationError):

    def __init__(self, missing: Iterable[str]):
        self.missing = tuple(missing)
        super().__init__(
            'This policy requires you supply ' + ', '.join(self.missing))


# === RULES ====================================================================

def describe_scalar(value: object) -> str:
    if value is None:
        return 'got nothing'
    # YAML 1.1 turns unquoted NO, 60601, 2024-01-01... into non-strings
    return (f'got {type(value).__name__} {value!r}; '
            'quote the value in YAML files')


class RuleKind(Enum):
    REQUIRED = POLICY_REQUIRED
    OPTIONAL = POLICY_OPTIONAL
    MATCH = POLICY_MATCH


@dataclass(frozen=True)
class PolicyRule:
    kind: RuleKind
    value: str | None = None

    def __post_init__(self):
        if not isinstance(self.kind, RuleKind):
            try:
                kind = RuleKind(self.kind)
            except ValueError:
                raise InvalidPolicyDefinition(
                    f'Unknown subject item policy: {self.kind!r}') from None
            object.__setattr__(self, 'kind', kind)
        if (self.kind is RuleKind.MATCH) != (self.value is not None):
            raise InvalidPolicyDefinition(
                'Only match rules carry a value, and they must have one')
        if self.value is not None and not isinstance(self.value, str):
            raise InvalidPolicyDefinition(
                f'Match value must be a string, {describe_scalar(self.value)}')

    @classmethod
    def required(cls) -> PolicyRule:
        return cls(RuleKind.REQUIRED)

    @classmethod
    def optional(cls) -> PolicyRule:
        return cls(RuleKind.OPTIONAL)

    @classmethod
    def match(cls, value: str) -> PolicyRule:
        return cls(RuleKind.MATCH, value)

    @classmethod
    def from_spec(cls, name: str, spec: object) -> PolicyRule:
        '''
        Parse one rule record, e.g. {'policy': 'match', 'value': 'Chicago'}.

        Raises InvalidPolicyDefinition naming the attribute on any problem.
        '''
        if not isinstance(spec, Mapping):
            raise InvalidPolicyDefinition(
                f'Rule for {name} must be a mapping with a {POLICY_KEY!r} key')
        try:
            kind = RuleKind(spec.get(POLICY_KEY))
        except ValueError:
            raise InvalidPolicyDefinition(
                f'Unknown subject item policy for {name}: '
                f'{spec.get(POLICY_KEY)!r}. Allowed values are '
                f'{POLICY_REQUIRED}, {POLICY_OPTIONAL}, or {POLICY_MATCH}'
            ) from None
        if kind is RuleKind.MATCH:
            value = spec.get(VALUE_KEY)
            if not isinstance(value, str):
                raise InvalidPolicyDefinition(
                    f'Match rule for {name} needs a string {VALUE_KEY!r}, '
                    f'{describe_scalar(value)}')
            return cls.match(value)
        return cls(kind)

    def to_spec(self) -> dict:
        if self.kind is RuleKind.MATCH:
            return {POLICY_KEY: self.kind.value, VALUE_KEY: self.value}
        return {POLICY_KEY: self.kind.value}


# === YAML LOADER ==============================================================

class UniqueKeyLoader(yaml.SafeLoader):
    '''SafeLoader that refuses mappings declaring the same key twice.'''

    def construct_mapping(self, node, deep=False):
        if not isinstance(node, yaml.MappingNode):
            return super().construct_mapping(node, deep=deep)
        seen = set()
        for key_node, _ in node.value:
            if key_node.tag == 'tag:yaml.org,2002:merge':
                continue
            key = self.construct_object(key_node, deep=deep)
            try:
                duplicate = key in seen
            except TypeError:
                # Unhashable keys are reported by the base class
                break
            if duplicate:
                raise InvalidPolicyDefinition(
                    f'Duplicate key {key!r} at line {key_node.start_mark.line + 1}')
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


def parse_policy_yaml(text: str | IO) -> object:
    '''
    Parse a YAML document with UniqueKeyLoader. An empty document is {}.

    Raises InvalidPolicyDefinition on malformed YAML or duplicate keys.
    '''
    try:
        data = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as e:
        raise InvalidPolicyDefinition(f'Malformed policy YAML: {e}') from e
    return {} if data is None else data


# === SUBJECT POLICY ===========================================================

class SubjectPolicy:

    # --- SUBJECT_POLICY __INIT__ ----------------------------------------------

    def __init__(self, definition: Mapping | None = None):
        if definition is None:
            definition = {}
        if not isinstance(definition, Mapping):
            raise InvalidPolicyDefinition(
                "Must supply a mapping in form 'shortname' -> rule")

        rules = {}
        for name, spec in definition.items():
            if not isinstance(name, str) or not name:
                raise InvalidPolicyDefinition(
                    f'Attribute names must be non-empty strings, got {name!r}')
            rules[name] = PolicyRule.from_spec(name, spec)
        self._init_rules(rules)

    def _init_rules(self, rules: dict[str, PolicyRule]) -> None:
        self._rules = MappingProxyType(dict(rules))
        self._required = tuple(n for n, r in rules.items()
                               if r.kind is RuleKind.REQUIRED)
        self._optional = tuple(n for n, r in rules.items()
                               if r.kind is RuleKind.OPTIONAL)
        self._match = tuple(n for n, r in rules.items()
                            if r.kind is RuleKind.MATCH)
        self._match_values = MappingProxyType(
            {n: rules[n].value for n in self._match})
        self._must_supply = self._required + self._match

    # --- SUBJECT_POLICY FROM_RULES --------------------------------------------

    @classmethod
    def from_rules(cls, rules: Mapping[str, PolicyRule]) -> SubjectPolicy:
        for name, rule in rules.items():
            if not isinstance(name, str) or not name:
                raise InvalidPolicyDefinition(
                    f'Attribute names must be non-empty strings, got {name!r}')
            if not isinstance(rule, PolicyRule):
                raise InvalidPolicyDefinition(
                    f'Rule for {name} must be a PolicyRule, got {rule!r}')
        policy = cls.__new__(cls)
        policy._init_rules(dict(rules))
        return policy

    # --- SUBJECT_POLICY FROM_YAML ---------------------------------------------

    @classmethod
    def from_yaml(cls, text: str | IO) -> SubjectPolicy:
        return cls(parse_policy_yaml(text))

    @property
    def required(self) -> tuple[str, ...]:
        return self._required

    @property
    def optional(self) -> tuple[str, ...]:
        return self._optional

    @property
    def match(self) -> tuple[str, ...]:
        return self._match

    @property
    def match_values(self) -> Mapping[str, str]:
        return self._match_values

    @property
    def rules(self) -> Mapping[str, PolicyRule]:
        return self._rules

    def rule_for(self, name: str) -> PolicyRule | None:
        return self._rules.get(name)

    def governed_names(self) -> tuple[str, ...]:
        return self._required + self._optional + self._match

    # --- SUBJECT_POLICY VALIDATE_SUBJECT --------------------------------------

    def validate_subject(self, subject: Iterable[tuple[str, str]]) -> Subject:
        '''
        Check a subject against the policy and return its filtered copy.

        Parameters:
        - subject: Subject, or any iterable of (name, value) pairs

        Returns a new Subject holding only the governed pairs, in the
        order they were supplied.

        Raises:
        - MatchMismatch: a pinned attribute has another value (checked
          first, in subject order)
        - MissingAttributes: required or match attributes are absent (all
          of them are listed)
        '''
        if not isinstance(subject, Subject):
            subject = Subject(subject)

        self._validate_match(subject)
        self._validate_required_match(subject)

        return Subject(item for item in subject if item[0] in self._rules)

    def is_valid(self, subject: Iterable[tuple[str, str]]) -> bool:
        try:
            self.validate_subject(subject)
        except SubjectValidationError:
            return False
        return True

    def _validate_match(self, subject: Subject) -> None:
        for name, value in subject:
            expected = self._match_values.get(name)
            if expected is not None and value != expected:
                raise MatchMismatch(name, expected, value)

    def _validate_required_match(self, subject: Subject) -> None:
        supplied = set(subject.names())
        missing = [name for name in self._must_supply if name not in supplied]
        if missing:
            raise MissingAttributes(missing)

    # --- SUBJECT_POLICY TO_DEFINITION -----------------------------------------

    def to_definition(self) -> dict:
        return {name: self._rules[name].to_spec()
                for name in self.governed_names()}

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_definition(), indent=2, sort_keys=False)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SubjectPolicy):
            return NotImplemented
        return dict(self._rules) == dict(other._rules)

    def __hash__(self) -> int:
        return hash(frozenset(self._rules.items()))

    def __repr__(self) -> str:
        return f'SubjectPolicy({self.to_definition()!r})'
