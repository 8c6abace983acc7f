# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

from __future__ import annotations

import sys

import click
from cryptography import x509

from subjpol.policy import (
    MatchMismatch,
    MissingAttributes,
    SubjectPolicy,
    SubjectValidationError,
)
from subjpol.x509_subject import Subject


def debug(ctx, message: str) -> None:
    if ctx.obj.get('debug', False):
        print(f'[DEBUG] {message}', file=sys.stderr)


def get_policy(ctx) -> SubjectPolicy:
    """
    Fetch the policy loaded by the main group.

    Raises:
        click.UsageError: If no policy file was given
    """
    policy = ctx.obj.get('policy')
    if policy is None:
        raise click.UsageError(
            'No policy given. Use --policy FILE or set SUBJPOL_POLICY.')
    return policy


def load_subject_from_file(path: str, kind: str) -> Subject:
    '''
    Read the subject of a PEM or DER encoded CSR ('csr') or
    certificate ('cert').
    '''
    with open(path, 'rb') as f:
        data = f.read()

    is_pem = data.lstrip().startswith(b'-----BEGIN')
    try:
        if kind == 'csr':
            loader = (x509.load_pem_x509_csr if is_pem
                      else x509.load_der_x509_csr)
        else:
            loader = (x509.load_pem_x509_certificate if is_pem
                      else x509.load_der_x509_certificate)
        name = loader(data).subject
    except ValueError as e:
        raise click.ClickException(f'Cannot parse {kind} {path}: {e}') from e

    try:
        return Subject.from_x509_name(name)
    except ValueError as e:
        raise click.ClickException(f'Unsupported subject in {path}: {e}') from e


def describe_validation_error(error: SubjectValidationError) -> str:
    if isinstance(error, MatchMismatch):
        return (f'Attribute {error.name} must be {error.expected!r}, '
                f'got {error.actual!r}')
    if isinstance(error, MissingAttributes):
        return 'Missing required attributes: ' + ', '.join(error.missing)
    return str(error)
