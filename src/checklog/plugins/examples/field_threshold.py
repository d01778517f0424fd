"""Built-in classifier: count delimited lines whose numeric field is too high."""
from __future__ import annotations

from .._format import render_template
from ..base import ClassifierContext, ClassifierResult


class FieldThresholdClassifier:
    """Count a line when field ``field`` (1-based) exceeds ``limit``.

    Typical use is a CSV-ish processing log where column 7 holds a duration::

        checklog -l processing.log -p , -w 50 \\
            --classifier field-threshold \\
            -o field=7 -o limit=4000 \\
            -o "output=Processing time for {f1} exceeded: {value}"

    ``output`` is a ``str.format`` template; ``{line}``, ``{value}`` and
    ``{f1}``..``{fN}`` are available.  Lines with a missing or non-numeric
    field are not counted.  If ``escalate_above`` is set, values above it
    return 2 (an escalation request).
    """

    name = "field-threshold"

    def __init__(
        self,
        field: int | str,
        limit: float | str,
        delimiter: str = ",",
        output: str | None = None,
        escalate_above: float | str | None = None,
    ) -> None:
        self.field = int(field)
        if self.field < 1:
            raise ValueError("field numbers start at 1")
        self.limit = float(limit)
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter
        self.output = output
        self.escalate_above = float(escalate_above) if escalate_above is not None else None

    def classify(self, line: str, context: ClassifierContext) -> ClassifierResult:
        fields = [f.strip() for f in line.rstrip("\r\n").split(self.delimiter)]
        if len(fields) < self.field:
            return ClassifierResult(0)
        try:
            value = float(fields[self.field - 1])
        except ValueError:
            return ClassifierResult(0)
        if value <= self.limit:
            return ClassifierResult(0)

        result = 1
        if self.escalate_above is not None and value > self.escalate_above:
            result = 2
        text = None
        if self.output:
            values = {f"f{i}": f for i, f in enumerate(fields, start=1)}
            text = render_template(self.output, line=line.rstrip("\r\n"), value=fields[self.field - 1], **values)
        return ClassifierResult(result, output=text)
