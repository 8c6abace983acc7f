#!/usr/bin/env python

# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

import sys

import click

from subjpol.cli_show import cli_show
from subjpol.cli_validate import cli_validate
from subjpol.constants import DEFAULT_POLICY_SECTION, ENV_POLICY, ENV_SECTION
from subjpol.policy import InvalidPolicyDefinition
from subjpol.policy_file import load_policy_file

# === Main CLI =================================================================


@click.group(
    help=f'''
        Check certificate subjects against a subject item policy.

        A subject item policy lists, per subject attribute (OpenSSL short
        names such as CN, O, OU, L, ST, C, emailAddress), whether it is
        required, optional, or must match a pinned value. It is read from
        a YAML file:

        \b
          CN: {{policy: required}}
          O: {{policy: required}}
          OU: {{policy: optional}}
          L: {{policy: match, value: Chicago}}

        When the policy is part of a larger certificate profile, use
        --section to select it (e.g. --section {DEFAULT_POLICY_SECTION}).

        Attributes not named by the policy are removed from validated
        subjects.
    '''
)
@click.option(
    '-p', '--policy',
    type=click.Path(exists=True, dir_okay=False),
    envvar=ENV_POLICY,
    required=False,
    help=f'YAML policy file (or set {ENV_POLICY})',
)
@click.option(
    '--section',
    type=str,
    envvar=ENV_SECTION,
    default=None,
    help='Top-level key the policy is nested under in the YAML file',
)
@click.option(
    '--debug',
    is_flag=True,
    default=False,
    hidden=True,
    help='Enable debug instrumentation (hidden flag for troubleshooting)'
)
@click.pass_context
def cli(
    ctx,
    policy: str | None,
    section: str | None,
    debug: bool,
) -> None:
    """CLI tool for subject item policies."""

    loaded = None
    if policy is not None:
        try:
            loaded = load_policy_file(policy, section=section)
        except InvalidPolicyDefinition as e:
            raise click.ClickException(f'Invalid policy {policy}: {e}') from e

        if debug:
            print(f'[DEBUG] loaded policy from {policy}', file=sys.stderr)
            print(f'[DEBUG]   required: {", ".join(loaded.required)}', file=sys.stderr)
            print(f'[DEBUG]   optional: {", ".join(loaded.optional)}', file=sys.stderr)
            print(f'[DEBUG]   match: {", ".join(loaded.match)}', file=sys.stderr)

    ctx.ensure_object(dict)  # Ensure ctx.obj is a dict
    ctx.obj['policy'] = loaded  # Store loaded policy in context
    ctx.obj['debug'] = debug  # Store --debug flag in context

cli.add_command(cli_show)
cli.add_command(cli_validate)


if __name__ == "__main__":
    cli()
