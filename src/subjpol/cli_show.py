# SPDX-FileCopyrightText: 2025 Frederic Ruget <fred@atlant.is> (GitHub: @douzebis)
#
# SPDX-License-Identifier: MIT

import click

from subjpol.auxiliaries import get_policy
from subjpol.policy_file import dump_policy


# === SHOW =====================================================================

@click.command(
    'show',
    help='''
        Print the loaded subject item policy in its canonical YAML form:
        required attributes first, then optional, then match attributes
        with their pinned values.

        Useful to check that a policy file parses, or to normalize it.
    ''',
)
@click.pass_context
def cli_show(ctx) -> None:
    """Dumps the subject item policy."""

    policy = get_policy(ctx)
    print(dump_policy(policy), end='')
