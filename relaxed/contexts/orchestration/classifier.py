"""
Change classification.

Maps a changed file path to the task that handles it. Rules are an ordered
table: the first rule whose suffix matches wins, so compound suffixes
(`.flowchart.json`, `.o.svg`) sit above the generic ones they overlap.
Classification is a pure function of the path string.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Tuple, Union


class TaskKind(Enum):
    CHARTJS_RENDER = "chartjs_render"
    MERMAID_RENDER = "mermaid_render"
    FLOWCHART_RENDER = "flowchart_render"
    FLOWCHART_JSON_RENDER = "flowchart_json_render"
    VEGALITE_RENDER = "vegalite_render"
    TABLE_TRANSPILE = "table_transpile"
    SVG_OPTIMIZE = "svg_optimize"
    MASTER_REBUILD = "master_rebuild"
    IGNORE = "ignore"


@dataclass(frozen=True)
class Classification:
    """
    A classified change.

    Attributes:
        kind: Task that handles the change
        path: File the task operates on (may be derived from the changed file)
        changed_path: The file that actually changed
    """

    kind: TaskKind
    path: Path
    changed_path: Path

    @property
    def ignored(self) -> bool:
        return self.kind is TaskKind.IGNORE


def _strip_json(path: str) -> str:
    # x.flowchart.json configures x.flowchart
    return path[: -len(".json")]


@dataclass(frozen=True)
class ClassificationRule:
    kind: TaskKind
    suffixes: Tuple[str, ...]
    derive: Optional[Callable[[str], str]] = None

    def matches(self, path: str) -> bool:
        return path.endswith(self.suffixes)


CLASSIFICATION_RULES: Tuple[ClassificationRule, ...] = (
    ClassificationRule(TaskKind.FLOWCHART_JSON_RENDER, (".flowchart.json",), _strip_json),
    ClassificationRule(TaskKind.CHARTJS_RENDER, (".chart.js",)),
    ClassificationRule(TaskKind.MERMAID_RENDER, (".mermaid",)),
    ClassificationRule(TaskKind.FLOWCHART_RENDER, (".flowchart",)),
    ClassificationRule(TaskKind.VEGALITE_RENDER, (".vegalite.json",)),
    ClassificationRule(TaskKind.TABLE_TRANSPILE, (".table.csv", ".htable.csv")),
    ClassificationRule(TaskKind.SVG_OPTIMIZE, (".o.svg",)),
    ClassificationRule(
        TaskKind.MASTER_REBUILD, (".pug", ".md", ".html", ".css", ".scss", ".svg", ".png")
    ),
)


def classify(path: Union[str, Path]) -> Classification:
    """
    Classify a changed file.

    Args:
        path: Absolute path of the changed file

    Returns:
        Classification for the first matching rule, or TaskKind.IGNORE

    Examples:
        >>> classify("/docs/report.flowchart.json").path
        PosixPath('/docs/report.flowchart')
        >>> classify("/docs/logo.o.svg").kind
        <TaskKind.SVG_OPTIMIZE: 'svg_optimize'>
    """
    changed = str(path)
    for rule in CLASSIFICATION_RULES:
        if rule.matches(changed):
            target = rule.derive(changed) if rule.derive else changed
            return Classification(rule.kind, Path(target), Path(changed))
    return Classification(TaskKind.IGNORE, Path(changed), Path(changed))
