# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

import click
import yaml

from subjpol.auxiliaries import (
    debug,
    describe_validation_error,
    get_policy,
    load_subject_from_file,
)
from subjpol.policy import SubjectValidationError
from subjpol.x509_subject import Subject

# === VALIDATE =================================================================

@click.command(
    'validate',
    help='''
        Check a certificate subject against the policy and print the
        subject that would be encoded in the certificate.

        The subject is given either as an OpenSSL slash-delimited string
        (e.g. "/CN=foo/O=Example Corp/L=Chicago"), or read from a CSR or
        certificate file. Attributes that the policy does not mention are
        dropped from the output.

        \b
        Exit status is 1 when the subject violates the policy:
          - a 'match' attribute has another value than the pinned one
          - 'required' or 'match' attributes are missing
    ''',
)
@click.argument('subject', type=str, required=False)
@click.option(
    '--csr',
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help='Read the subject from a PEM or DER certificate signing request.',
)
@click.option(
    '--cert',
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help='Read the subject from a PEM or DER certificate.',
)
@click.option(
    '-f', '--format', 'output_format',
    type=click.Choice(['slash', 'yaml']),
    default='slash',
    show_default=True,
    help='Output format of the validated subject.',
)
@click.pass_context
def cli_validate(
    ctx,
    subject: str | None,
    csr: str | None,
    cert: str | None,
    output_format: str,
) -> None:
    '''Validate a subject against the subject item policy.'''

    # --- Check options sanity -------------------------------------------------

    sources = [s for s in (subject, csr, cert) if s is not None]
    if len(sources) != 1:
        raise click.UsageError(
            'Give exactly one of SUBJECT, --csr or --cert.')

    policy = get_policy(ctx)

    if csr is not None:
        parsed = load_subject_from_file(csr, 'csr')
    elif cert is not None:
        parsed = load_subject_from_file(cert, 'cert')
    else:
        try:
            parsed = Subject.parse(subject)
        except ValueError as e:
            raise click.ClickException(f'Invalid subject: {e}')

    debug(ctx, f'cli_validate input subject: {parsed}')

    try:
        validated = policy.validate_subject(parsed)
    except SubjectValidationError as e:
        raise click.ClickException(
            f'Subject violates policy: {describe_validation_error(e)}')

    dropped = [name for name in parsed.names() if name not in policy]
    if dropped:
        debug(ctx, f'cli_validate dropped attributes: {", ".join(dropped)}')

    if output_format == 'yaml':
        out = [{name: value} for name, value in validated]
        print(yaml.safe_dump(out, indent=2, sort_keys=False), end='')
    else:
        print(validated)
