"""Built-in classifier: extract values from matched lines with a regex."""
from __future__ import annotations

import re

from .._format import render_template
from ..base import ClassifierContext, ClassifierResult


class RegexExtractClassifier:
    """Count a line when ``regex`` matches it.

    Named groups feed the ``output`` template (``{line}`` is also
    available).  If ``metric`` names a numeric group, its value is reported
    as custom performance data ``<metric>=<value>``, which lets a check
    graph figures taken from the log instead of match counts.

    Example::

        checklog -l app.log -p "took" --classifier regex-extract \\
            -o "regex=took (?P<ms>\\d+)ms" -o metric=ms -o "output=slow call: {ms} ms"
    """

    name = "regex-extract"

    def __init__(
        self,
        regex: str,
        output: str | None = None,
        metric: str | None = None,
        ignore_case: bool | str = False,
    ) -> None:
        if isinstance(ignore_case, str):
            ignore_case = ignore_case.lower() in ("1", "true", "yes", "on")
        try:
            self._regex = re.compile(regex, re.IGNORECASE if ignore_case else 0)
        except re.error as exc:
            raise ValueError(f"invalid regex {regex!r}: {exc}") from exc
        if metric and metric not in self._regex.groupindex:
            raise ValueError(f"metric group {metric!r} not in regex")
        self.output = output
        self.metric = metric

    def classify(self, line: str, context: ClassifierContext) -> ClassifierResult:
        m = self._regex.search(line)
        if m is None:
            return ClassifierResult(0)
        groups = {k: v or "" for k, v in m.groupdict().items()}
        text = None
        if self.output:
            text = render_template(self.output, line=line.rstrip("\r\n"), **groups)
        perfdata = None
        if self.metric and groups.get(self.metric):
            perfdata = f"{self.metric}={groups[self.metric]}"
        return ClassifierResult(1, output=text, perfdata=perfdata)
