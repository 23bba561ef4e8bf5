"""Expand templated paths and URLs into families of concrete names.

A template is an ordinary string in which single characters act as
placeholders. Each `Rule` names one such character and the ordered values
to substitute for it. A run of consecutive occurrences of the character
forms a field, and the length of the run is the width to which numeric
values are left-padded:

    >>> expand("pageviews-bbbbff.gz", [Rule("b", (2016,)), Rule("f", (7,))])
    ['pageviews-201607.gz']

Ordering
--------

The result is the cross product of the values of all rules. The first rule
varies slowest and the last rule varies fastest:

    >>> expand("tesxyt", [Rule("x", (1, 2)), Rule("y", (1, 2))])
    ['tes11t', 'tes12t', 'tes21t', 'tes22t']

Expanding two templates with the same rules therefore yields two lists of
equal length whose items correspond by position. The download stage relies
on this to pair each source URL with its destination file.
"""

from __future__ import annotations

import itertools
import re
from collections.abc import Collection, Sequence
from dataclasses import dataclass
from typing import Final

from .errors import InvalidRuleError, RuleParseError

_RANGE_RE: Final = re.compile(r"^(\w):(\d+)-(\d+)$")


@dataclass(frozen=True)
class Rule:
    """
    Substitution rule for a single placeholder character.

    Attributes:
        variable: the single placeholder character.
        values: ordered values to substitute. Integers are rendered as
            decimal numerals padded to the field width; any other value
            is substituted verbatim.
        pad_char: character used for left-padding numeric values.
    """

    variable: str
    values: tuple[int | str, ...]
    pad_char: str = "0"

    def __post_init__(self):
        if len(self.variable) != 1:
            raise InvalidRuleError(f"rule variable must be a single character: {self.variable!r}")
        if len(self.pad_char) != 1:
            raise InvalidRuleError(f"pad character must be a single character: {self.pad_char!r}")
        object.__setattr__(self, "values", tuple(self.values))

    @classmethod
    def from_range(cls, variable: str, low: int, high: int, *, pad_char: str = "0") -> Rule:
        """Build a rule substituting every integer in [low, high]."""
        return cls(variable, tuple(range(low, high + 1)), pad_char)

    def render(self, value: int | str, width: int) -> str:
        """Render a single value for a field of the given width."""
        if isinstance(value, int):
            return str(value).rjust(width, self.pad_char)
        return str(value)


def parse_rule(spec: str, *, pad_char: str = "0") -> Rule:
    """
    Parse a range specification such as `b:2016-2017` into a Rule.

    Raises:
        RuleParseError: if the specification is not `TOKEN:LOW-HIGH` or
            if LOW is greater than HIGH.
    """
    match = _RANGE_RE.match(spec.strip())
    if match is None:
        raise RuleParseError(f"invalid range specification: {spec!r} (expected TOKEN:LOW-HIGH)")
    variable, low, high = match.group(1), int(match.group(2)), int(match.group(3))
    if low > high:
        raise RuleParseError(f"invalid range specification: {spec!r} (LOW must be <= HIGH)")
    return Rule.from_range(variable, low, high, pad_char=pad_char)


def expand(template: str, rules: Sequence[Rule]) -> list[str]:
    """
    Expand the template into every combination of the rules' values.

    Raises:
        InvalidRuleError: if two rules share a variable or if a rule's
            variable never occurs in the template.
    """
    by_variable: dict[str, Rule] = {}
    for rule in rules:
        if rule.variable in by_variable:
            raise InvalidRuleError(f"duplicate rule for variable {rule.variable!r}")
        if rule.variable not in template:
            raise InvalidRuleError(
                f"variable {rule.variable!r} does not occur in template {template!r}"
            )
        by_variable[rule.variable] = rule

    segments = _tokenize(template, by_variable.keys())
    position = {rule.variable: index for index, rule in enumerate(rules)}

    result: list[str] = []
    for combination in itertools.product(*(rule.values for rule in rules)):
        parts = []
        for segment in segments:
            if isinstance(segment, str):
                parts.append(segment)
                continue
            variable, width = segment
            parts.append(by_variable[variable].render(combination[position[variable]], width))
        result.append("".join(parts))
    return result


def _tokenize(template: str, variables: Collection[str]) -> list[str | tuple[str, int]]:
    """Split the template into literal strings and (variable, width) fields."""
    segments: list[str | tuple[str, int]] = []
    for char, run in itertools.groupby(template):
        width = len(list(run))
        if char in variables:
            segments.append((char, width))
        elif segments and isinstance(segments[-1], str):
            segments[-1] += char * width
        else:
            segments.append(char * width)
    return segments
