"""
Results table, JSON and text rendering of check outcomes.
"""

from __future__ import annotations

import json
import logging
from typing import Dict, Mapping

import pandas as pd

from .models import CheckOutcome, DependencyEntry


logger = logging.getLogger(__name__)

TABLE_COLUMNS = ["NAME", "OLD", "NEW", "INFO"]


def results_frame(results: Mapping[str, DependencyEntry]) -> pd.DataFrame:
    rows = [
        {
            "NAME": name,
            "OLD": entry.old_range,
            "NEW": entry.new_range or "",
            "INFO": entry.info_url or "",
        }
        for name, entry in results.items()
    ]
    return pd.DataFrame(rows, columns=TABLE_COLUMNS)


def format_table(results: Mapping[str, DependencyEntry]) -> str:
    """Render results as a left-aligned plain text table."""
    df = results_frame(results)
    if df.empty:
        return ""
    widths = {col: max(len(col), int(df[col].str.len().max())) for col in TABLE_COLUMNS}
    formatters = {col: (lambda value, w=widths[col]: value.ljust(w)) for col in TABLE_COLUMNS}
    text = df.to_string(index=False, formatters=formatters, justify="left", col_space=4)
    return "\n".join(line.rstrip() for line in text.splitlines())


def outcome_to_dict(outcome: CheckOutcome) -> Dict:
    output: Dict = {}
    if outcome.error is not None:
        output["error"] = str(outcome.error)
        return output
    if outcome.message:
        output["message"] = outcome.message
    output["results"] = {name: entry.to_dict() for name, entry in outcome.results.items()}
    return output


def format_json(outcome: CheckOutcome) -> str:
    return json.dumps(outcome_to_dict(outcome))


def format_text(outcome: CheckOutcome) -> str:
    """Table of changed dependencies followed by the message or error."""
    parts = []
    if outcome.ok and outcome.results:
        parts.append(format_table(outcome.results))
    if outcome.error is not None:
        parts.append(f"Error: {outcome.error}")
    elif outcome.message:
        parts.append(outcome.message)
    return "\n".join(parts)
