# Copyright 2026 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

r"""Batch evaluation and reporting for a project's dependencies.

Manifest parsers and registry lookups live outside this package; they
hand over :class:`~licensesentinel._types.DependencyLicense` records and
this module evaluates them against one policy and renders the verdicts.

Renderers::

    print_verdict_table   Rich table + diagnostics on a console
    format_verdict_table  the same, captured to a string
    verdicts_to_json      machine-readable list of records
    verdicts_to_markdown  compliance report for humans

Usage::

    from licensesentinel._types import DependencyLicense
    from licensesentinel.policy import Policy
    from licensesentinel.report import evaluate_dependencies, format_verdict_table

    deps = [DependencyLicense('express', '4.19.2', 'MIT', 'package.json')]
    verdicts = evaluate_dependencies(deps, Policy.create(allowed=['mit']))
    print(format_verdict_table(verdicts))
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from io import StringIO

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from licensesentinel._types import ComplianceStatus, DependencyLicense
from licensesentinel.evaluate import EvaluationResult, Evaluator, default_evaluator
from licensesentinel.logging import get_logger
from licensesentinel.policy import Policy

log = get_logger('licensesentinel.report')


@dataclass(frozen=True)
class DependencyVerdict:
    """A dependency paired with its evaluation result."""

    dependency: DependencyLicense
    result: EvaluationResult

    @property
    def status(self) -> ComplianceStatus:
        """Shortcut for ``result.status``."""
        return self.result.status


@dataclass(frozen=True)
class VerdictSummary:
    """Counts of verdicts by status."""

    compliant: int = 0
    non_compliant: int = 0
    unknown: int = 0

    @property
    def total(self) -> int:
        """Number of dependencies counted."""
        return self.compliant + self.non_compliant + self.unknown


def evaluate_dependencies(
    dependencies: Iterable[DependencyLicense],
    policy: Policy,
    evaluator: Evaluator | None = None,
) -> list[DependencyVerdict]:
    """Evaluate every dependency's license against *policy*.

    Args:
        dependencies: Records from manifest parsers or registry lookups.
        policy: The policy to apply.
        evaluator: Evaluator to use.  Defaults to the shared one.

    Returns:
        One verdict per dependency, in input order.
    """
    evaluator = evaluator or default_evaluator()
    verdicts = [DependencyVerdict(dep, evaluator.evaluate(dep.license, policy)) for dep in dependencies]
    summary = summarize(verdicts)
    log.info(
        'dependencies_evaluated',
        total=summary.total,
        compliant=summary.compliant,
        non_compliant=summary.non_compliant,
        unknown=summary.unknown,
    )
    return verdicts


def summarize(verdicts: Iterable[DependencyVerdict]) -> VerdictSummary:
    """Count verdicts by status."""
    counts = dict.fromkeys(ComplianceStatus, 0)
    for v in verdicts:
        counts[v.status] += 1
    return VerdictSummary(
        compliant=counts[ComplianceStatus.COMPLIANT],
        non_compliant=counts[ComplianceStatus.NON_COMPLIANT],
        unknown=counts[ComplianceStatus.UNKNOWN],
    )


_STATUS_STYLE: dict[ComplianceStatus, tuple[str, str]] = {
    ComplianceStatus.COMPLIANT: ('✅', 'green'),
    ComplianceStatus.UNKNOWN: ('❓', 'yellow'),
    ComplianceStatus.NON_COMPLIANT: ('❌', 'red'),
}


def print_verdict_table(
    verdicts: list[DependencyVerdict],
    console: Console | None = None,
) -> None:
    """Print verdicts with Rich formatting.

    A summary table is followed by diagnostic blocks for every
    non-compliant (error) and unknown (warning) dependency, listing its
    warnings as notes and its suggestions as help lines.

    Args:
        verdicts: Evaluated dependencies.
        console: Rich :class:`Console` to print to.  When ``None``,
            a default ``Console()`` is created (auto-detects TTY).
    """
    if console is None:
        console = Console()

    # ── Summary table ──
    table = Table(
        show_header=True,
        header_style='bold',
        show_edge=False,
        pad_edge=False,
        expand=True,
    )
    table.add_column('Package', min_width=16, style='bold')
    table.add_column('Version', min_width=8)
    table.add_column('License', ratio=2)
    table.add_column('Status', min_width=16)
    table.add_column('Risk', width=5, justify='right')

    for v in verdicts:
        icon, style = _STATUS_STYLE.get(v.status, ('?', ''))
        table.add_row(
            v.dependency.name,
            v.dependency.version,
            v.dependency.license if v.dependency.found else '-',
            Text(f'{icon} {v.status.value}', style=style),
            f'{v.result.risk_score:.2f}',
        )

    console.print(table)

    summary = summarize(verdicts)
    if summary.compliant == summary.total:
        console.print(f'\n[bold green]{summary.compliant}/{summary.total} dependencies compliant.[/]')
    else:
        console.print(f'\n{summary.compliant}/{summary.total} dependencies compliant.')

    # ── Diagnostics for non-compliant and unknown dependencies ──
    issues = [v for v in verdicts if not v.result.ok]
    if not issues:
        return
    console.print()
    for v in issues:
        dep = v.dependency
        if v.status is ComplianceStatus.NON_COMPLIANT:
            console.print(f'[bold red]error\\[{dep.name}][/][bold]: {escape(v.result.reason)}[/]')
        else:
            console.print(f'[bold yellow]warning\\[{dep.name}][/][bold]: {escape(v.result.reason)}[/]')
        console.print(f'  [cyan]-->[/] {escape(dep.source or "unknown source")}')
        for note in v.result.warnings:
            console.print(f'   [cyan]=[/] [bold]note[/]: {escape(note)}')
        for hint in v.result.suggestions:
            console.print(f'   [cyan]=[/] [green]help[/]: {escape(hint)}')
        console.print()

    parts: list[str] = []
    if summary.non_compliant:
        parts.append(f'[bold red]{summary.non_compliant} error(s)[/]')
    if summary.unknown:
        parts.append(f'[bold yellow]{summary.unknown} warning(s)[/]')
    console.print(f'Found {", ".join(parts)}.')


def format_verdict_table(
    verdicts: list[DependencyVerdict],
    *,
    color: bool = False,
) -> str:
    """Format verdicts as a string.

    Thin wrapper around :func:`print_verdict_table` that captures the
    Rich output.

    Args:
        verdicts: Evaluated dependencies.
        color: If ``True``, include ANSI color codes in the output.

    Returns:
        Multi-line formatted string.
    """
    buf = StringIO()
    console = Console(file=buf, force_terminal=color, width=120)
    print_verdict_table(verdicts, console=console)
    return buf.getvalue().rstrip('\n')


def verdicts_to_json(verdicts: list[DependencyVerdict], *, indent: int = 2) -> str:
    """Serialize verdicts to JSON.

    Args:
        verdicts: Evaluated dependencies.
        indent: JSON indentation level.

    Returns:
        JSON string: a list of ``{name, version, license, source, ...}``
        records with the full evaluation under ``evaluation``.
    """
    records = [
        {
            'name': v.dependency.name,
            'version': v.dependency.version,
            'license': v.dependency.license,
            'source': v.dependency.source,
            'evaluation': v.result.to_dict(),
        }
        for v in verdicts
    ]
    return json.dumps(records, indent=indent)


def _md_code(text: str) -> str:
    return '`' + text.replace('`', "'").replace('|', '\\|') + '`'


def verdicts_to_markdown(
    verdicts: list[DependencyVerdict],
    *,
    generated: datetime | None = None,
) -> str:
    """Render a Markdown compliance report.

    Args:
        verdicts: Evaluated dependencies.
        generated: Timestamp for the report header.  Omitted when
            ``None``, which keeps the output reproducible.

    Returns:
        The report, ending with a newline.
    """
    summary = summarize(verdicts)
    denied = [v for v in verdicts if v.status is ComplianceStatus.NON_COMPLIANT]
    unknown = [v for v in verdicts if v.status is ComplianceStatus.UNKNOWN]

    lines = ['# License Sentinel - Compliance Report', '']
    if generated is not None:
        lines += [f'**Generated:** {generated.strftime("%a, %d %b %Y %H:%M:%S %Z").strip()}', '']
    lines += [
        '## Summary',
        '',
        '| Status | Count |',
        '| :--- | :---: |',
        f'| ✅ Compliant | {summary.compliant} |',
        f'| ❓ Unknown | {summary.unknown} |',
        f'| ❌ Non-Compliant | {summary.non_compliant} |',
    ]

    if denied:
        lines += [
            '',
            f'## Non-Compliant Dependencies ({len(denied)})',
            '',
            "These dependencies have licenses that are explicitly forbidden by your project's policy.",
            '',
            '| Package | Version | License | Reason |',
            '| :--- | :--- | :--- | :--- |',
        ]
        for v in denied:
            dep = v.dependency
            reason = v.result.reason.replace('|', '\\|')
            lines.append(f'| {_md_code(dep.name)} | {_md_code(dep.version)} | {_md_code(dep.license)} | {reason} |')

    if unknown:
        lines += [
            '',
            f'## Unknown Status Dependencies ({len(unknown)})',
            '',
            'These dependencies have licenses that are not on your allowed or denied lists. '
            'Manual review is required.',
            '',
            '| Package | Version | License | Source File |',
            '| :--- | :--- | :--- | :--- |',
        ]
        for v in unknown:
            dep = v.dependency
            lines.append(
                f'| {_md_code(dep.name)} | {_md_code(dep.version)} | {_md_code(dep.license)} | {_md_code(dep.source)} |'
            )

    return '\n'.join(lines) + '\n'


__all__ = [
    'DependencyVerdict',
    'VerdictSummary',
    'evaluate_dependencies',
    'format_verdict_table',
    'print_verdict_table',
    'summarize',
    'verdicts_to_json',
    'verdicts_to_markdown',
]
