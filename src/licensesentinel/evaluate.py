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

"""Policy evaluation of license expressions.

Ties the pieces together: the expression is parsed into a tree, every
leaf is normalized, scored and classified against a :class:`Policy`,
and the verdicts are combined bottom-up.

Combining rules::

    ┌──────┬───────────────────────────────┬──────────────────────┐
    │ Node │ Status                        │ Risk                 │
    ├──────┼───────────────────────────────┼──────────────────────┤
    │ OR   │ any compliant   -> compliant  │ min of children      │
    │      │ all denied      -> denied     │ max of children      │
    │      │ otherwise       -> unknown    │ max of children      │
    ├──────┼───────────────────────────────┼──────────────────────┤
    │ AND  │ any denied      -> denied     │ max of children      │
    │      │ all compliant   -> compliant  │ max of children      │
    │      │ otherwise       -> unknown    │ max of children      │
    └──────┴───────────────────────────────┴──────────────────────┘

``risk_score`` is the root node's risk.  ``peak_risk``, obligations,
warnings, suggestions, compatibility issues and the trace are collected
from every leaf, including branches that did not decide the verdict.

Evaluation never raises on bad license text: missing or invalid input
comes back as ``unknown`` with a fixed "no information" risk.

Usage::

    from licensesentinel.evaluate import evaluate
    from licensesentinel.policy import Policy

    policy = Policy.create(allowed=['mit'], denied=['agpl-3.0-only'])
    result = evaluate('GPL-3.0-only OR MIT', policy)
    assert result.status == 'compliant'
"""

from __future__ import annotations

import functools
from dataclasses import dataclass, field
from typing import Any

from licensesentinel._types import ComplianceStatus, LicenseCategory, is_invalid_license
from licensesentinel.catalog import LicenseCatalog, Obligation
from licensesentinel.compat import CAVEAT, CompatibilityMatrix, default_matrix
from licensesentinel.expr import Combinator, ExprNode, Leaf, Operator, parse
from licensesentinel.logging import get_logger
from licensesentinel.normalize import Normalizer, default_normalizer
from licensesentinel.policy import Policy
from licensesentinel.risk import NO_INFORMATION_RISK, score

__all__ = [
    'CompatibilityIssue',
    'EvaluationResult',
    'Evaluator',
    'TraceEntry',
    'default_evaluator',
    'evaluate',
    'is_invalid_license',
]

log = get_logger('licensesentinel.evaluate')

_NO_INFORMATION_WARNING = 'No usable license information was found for this dependency.'
_NO_INFORMATION_SUGGESTION = "Verify the license manually on the package's registry page or source repository."


@dataclass(frozen=True)
class TraceEntry:
    """How one leaf token was resolved."""

    token: str
    license_id: str
    method: str
    confidence: float
    category: LicenseCategory
    risk: float
    exception: str = ''

    def __str__(self) -> str:
        text = f'{self.token!r} -> {self.license_id} ({self.method}, confidence {self.confidence:.2f}, {self.category.value})'
        if self.exception:
            text += f', exception {self.exception!r} ignored'
        return text


@dataclass(frozen=True)
class CompatibilityIssue:
    """A dependency license the project license may not incorporate."""

    from_license: str
    to_license: str

    def __str__(self) -> str:
        return f'{self.from_license} -> {self.to_license}'


@dataclass(frozen=True)
class EvaluationResult:
    """Verdict for one license expression.

    Attributes:
        expression: The license string as given.
        status: Overall compliance verdict.
        reason: Explanation naming the token(s) or rule that decided it.
        risk_score: Risk of the deciding tree root, in ``[0, 1]``.
        peak_risk: Highest risk of any leaf in the expression.
        obligations: Deduplicated, most severe first.
        trace: One entry per leaf, in input order.
        warnings: Catalog notes and compatibility messages.
        suggestions: Remediation hints.
        compatibility_issues: ``from -> to`` pairs found incompatible.
    """

    expression: str
    status: ComplianceStatus
    reason: str
    risk_score: float
    peak_risk: float
    obligations: tuple[Obligation, ...] = ()
    trace: tuple[TraceEntry, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()
    compatibility_issues: tuple[CompatibilityIssue, ...] = ()

    @property
    def ok(self) -> bool:
        """``True`` if the expression is compliant."""
        return self.status is ComplianceStatus.COMPLIANT

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready representation."""
        return {
            'expression': self.expression,
            'status': self.status.value,
            'reason': self.reason,
            'risk_score': self.risk_score,
            'peak_risk': self.peak_risk,
            'obligations': [
                {'key': o.key, 'summary': o.summary, 'risk_level': o.risk_level.value} for o in self.obligations
            ],
            'trace': [
                {
                    'token': t.token,
                    'license_id': t.license_id,
                    'method': t.method,
                    'confidence': t.confidence,
                    'category': t.category.value,
                    'risk': t.risk,
                    'exception': t.exception,
                }
                for t in self.trace
            ],
            'warnings': list(self.warnings),
            'suggestions': list(self.suggestions),
            'compatibility_issues': [{'from': c.from_license, 'to': c.to_license} for c in self.compatibility_issues],
        }


@dataclass(frozen=True)
class _Outcome:
    status: ComplianceStatus
    reason: str
    risk: float


@dataclass
class _Collected:
    """Per-call accumulator; dict keys keep first-seen order."""

    obligations: dict[str, Obligation] = field(default_factory=dict)
    warnings: dict[str, None] = field(default_factory=dict)
    suggestions: dict[str, None] = field(default_factory=dict)
    issues: dict[CompatibilityIssue, None] = field(default_factory=dict)
    trace: list[TraceEntry] = field(default_factory=list)
    risks: list[float] = field(default_factory=list)

    def warn(self, message: str) -> None:
        self.warnings.setdefault(message, None)

    def suggest(self, message: str) -> None:
        self.suggestions.setdefault(message, None)


class Evaluator:
    """Evaluates license expressions against a policy.

    Holds no per-call state, so one instance can serve concurrent
    callers.

    Args:
        normalizer: Token normalizer.  Defaults to the shared one over
            the built-in catalog.
        matrix: Compatibility matrix.  Defaults to the built-in one.
    """

    def __init__(
        self,
        normalizer: Normalizer | None = None,
        matrix: CompatibilityMatrix | None = None,
    ) -> None:
        self._normalizer = normalizer or default_normalizer()
        self._matrix = matrix or default_matrix()

    @property
    def catalog(self) -> LicenseCatalog:
        """The catalog behind the normalizer."""
        return self._normalizer.catalog

    @property
    def normalizer(self) -> Normalizer:
        """The token normalizer."""
        return self._normalizer

    def evaluate(self, expression: str | None, policy: Policy | None = None) -> EvaluationResult:
        """Evaluate *expression* against *policy*.

        Args:
            expression: Raw license string of one dependency.
            policy: The policy to apply.  An empty policy makes every
                license ``unknown``.

        Returns:
            A complete :class:`EvaluationResult`; never raises for bad
            license text.
        """
        policy = policy or Policy()
        if expression is None or is_invalid_license(expression):
            log.debug('evaluation_skipped', expression=expression, reason='invalid license')
            return EvaluationResult(
                expression=expression or '',
                status=ComplianceStatus.UNKNOWN,
                reason=f'Missing or invalid license data: {expression!r}.',
                risk_score=NO_INFORMATION_RISK,
                peak_risk=NO_INFORMATION_RISK,
                warnings=(_NO_INFORMATION_WARNING,),
                suggestions=(_NO_INFORMATION_SUGGESTION,),
            )

        tree = parse(expression, atomic=self._normalizer.is_alias)
        collected = _Collected()
        outcome = self._evaluate_node(tree, policy, collected)

        obligations = sorted(collected.obligations.values(), key=lambda o: -o.risk_level.rank)
        result = EvaluationResult(
            expression=expression,
            status=outcome.status,
            reason=outcome.reason,
            risk_score=outcome.risk,
            peak_risk=max(collected.risks, default=outcome.risk),
            obligations=tuple(obligations),
            trace=tuple(collected.trace),
            warnings=tuple(collected.warnings),
            suggestions=tuple(collected.suggestions),
            compatibility_issues=tuple(collected.issues),
        )
        log.debug(
            'evaluation_complete',
            expression=expression,
            status=result.status.value,
            risk_score=result.risk_score,
            leaves=len(result.trace),
        )
        return result

    # ── Tree walk ────────────────────────────────────────────────────

    def _evaluate_node(self, node: ExprNode, policy: Policy, collected: _Collected) -> _Outcome:
        if isinstance(node, Leaf):
            return self._evaluate_leaf(node, policy, collected)
        outcomes = [self._evaluate_node(child, policy, collected) for child in node.children]
        if node.operator is Operator.OR:
            return _combine_or(outcomes)
        return _combine_and(node, outcomes)

    def _evaluate_leaf(self, leaf: Leaf, policy: Policy, collected: _Collected) -> _Outcome:
        if leaf.malformed:
            collected.warn(f'{leaf.token!r} could not be parsed as a license expression.')
        result = self._normalizer.fallback(leaf.token) if leaf.malformed else self._normalizer.normalize(leaf.token)
        if result is None:
            collected.suggest(_NO_INFORMATION_SUGGESTION)
            collected.risks.append(NO_INFORMATION_RISK)
            return _Outcome(ComplianceStatus.UNKNOWN, 'empty license token', NO_INFORMATION_RISK)

        risk = score(result)
        license_id = result.id
        collected.risks.append(risk)
        collected.trace.append(
            TraceEntry(
                token=leaf.token,
                license_id=license_id,
                method=result.method,
                confidence=result.confidence,
                category=result.category,
                risk=risk,
                exception=result.exception,
            )
        )

        entry = self.catalog.entry(license_id)
        if entry is not None:
            for note in entry.notes:
                collected.warn(f'{entry.canonical_id}: {note}')
        for obligation in self.catalog.obligations_for(license_id, result.category):
            collected.obligations.setdefault(obligation.key, obligation)
        if not result.matched:
            collected.suggest(f'{leaf.token!r} did not match any known license; verify the license text by hand.')

        if policy.main_license and result.category is not LicenseCategory.UNKNOWN:
            self._check_compatibility(license_id, policy.main_license, collected)

        denied = policy.denial_for(license_id)
        if denied is not None:
            collected.suggest(f"Replace the dependency licensed under '{license_id}' or obtain an exception for it.")
            if denied == license_id:
                reason = f"'{license_id}' is on the denied list"
            else:
                reason = f"'{license_id}' is covered by denied '{denied}'"
            return _Outcome(ComplianceStatus.NON_COMPLIANT, reason, risk)

        allowed = policy.allowance_for(license_id)
        if allowed is not None:
            if allowed == license_id:
                reason = f"'{license_id}' is on the allowed list"
            else:
                reason = f"'{license_id}' is covered by allowed '{allowed}'"
            return _Outcome(ComplianceStatus.COMPLIANT, reason, risk)

        collected.suggest(f"Triage '{license_id}': add it to the allowed or denied list.")
        return _Outcome(ComplianceStatus.UNKNOWN, f"'{license_id}' is on neither the allowed nor the denied list", risk)

    def _check_compatibility(self, license_id: str, project_license: str, collected: _Collected) -> None:
        if self._matrix.is_compatible(project_license, license_id):
            return
        project = project_license.lower()
        collected.issues.setdefault(CompatibilityIssue(license_id, project), None)
        if not self._matrix.knows(project):
            collected.warn(
                f"Project license '{project}' has no compatibility rule; its compatibility with dependencies "
                'could not be determined.'
            )
        collected.warn(f"'{license_id}' may not be compatible with the project license '{project}'.")
        collected.warn(CAVEAT)
        collected.suggest(f"Review whether code under '{license_id}' may be used in a '{project}' project.")


def _describe(outcomes: list[_Outcome], status: ComplianceStatus) -> str:
    return '; '.join(o.reason for o in outcomes if o.status is status)


def _combine_or(outcomes: list[_Outcome]) -> _Outcome:
    risks = [o.risk for o in outcomes]
    compliant = [o for o in outcomes if o.status is ComplianceStatus.COMPLIANT]
    if compliant:
        return _Outcome(
            ComplianceStatus.COMPLIANT,
            f'at least one OR alternative is compliant ({compliant[0].reason})',
            min(risks),
        )
    if all(o.status is ComplianceStatus.NON_COMPLIANT for o in outcomes):
        return _Outcome(
            ComplianceStatus.NON_COMPLIANT,
            f'every OR alternative is non-compliant ({_describe(outcomes, ComplianceStatus.NON_COMPLIANT)})',
            max(risks),
        )
    return _Outcome(
        ComplianceStatus.UNKNOWN,
        f'no OR alternative is compliant ({_describe(outcomes, ComplianceStatus.UNKNOWN)})',
        max(risks),
    )


def _combine_and(node: Combinator, outcomes: list[_Outcome]) -> _Outcome:
    risk = max(o.risk for o in outcomes)
    denied = [o for o in outcomes if o.status is ComplianceStatus.NON_COMPLIANT]
    if denied:
        return _Outcome(
            ComplianceStatus.NON_COMPLIANT,
            f'an AND-combined license is non-compliant ({denied[0].reason})',
            risk,
        )
    if all(o.status is ComplianceStatus.COMPLIANT for o in outcomes):
        return _Outcome(ComplianceStatus.COMPLIANT, f'all AND-combined licenses are compliant ({node})', risk)
    return _Outcome(
        ComplianceStatus.UNKNOWN,
        f'not every AND-combined license is compliant ({_describe(outcomes, ComplianceStatus.UNKNOWN)})',
        risk,
    )


@functools.cache
def default_evaluator() -> Evaluator:
    """Return the shared evaluator over the built-in catalog and matrix."""
    return Evaluator()


def evaluate(expression: str | None, policy: Policy | None = None) -> EvaluationResult:
    """Evaluate *expression* with the shared default evaluator."""
    return default_evaluator().evaluate(expression, policy)
