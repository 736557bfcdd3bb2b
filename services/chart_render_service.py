import io
import logging
import warnings
from concurrent.futures import ProcessPoolExecutor
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import seaborn as sns

from models.chart_models import ChartData, ChartKind
from services.cell_value_service import to_number

warnings.filterwarnings("ignore", category=UserWarning)

logger = logging.getLogger(__name__)

CHART_WIDTH = 800
CHART_HEIGHT = 600
BACKGROUND_COLOR = "white"
DPI = 100

# Excel's default palette, in series order
CHART_COLORS = (
    "#4472C4", "#ED7D31", "#A5A5A5", "#FFC000", "#5B9BD5",
    "#70AD47", "#264478", "#9E480E", "#636363", "#997300",
    "#255E91", "#43682B", "#698ED0", "#F1975A", "#B7B7B7",
)

ENGINE_TYPES = {
    ChartKind.BAR: "bar",
    ChartKind.LINE: "line",
    ChartKind.PIE: "pie",
    ChartKind.DOUGHNUT: "doughnut",
    ChartKind.SCATTER: "scatter",
    ChartKind.AREA: "line",
    ChartKind.RADAR: "radar",
}

PIE_TYPES = (ChartKind.PIE, ChartKind.DOUGHNUT)


def palette_color(index: int) -> str:
    return CHART_COLORS[index % len(CHART_COLORS)]


def build_render_config(chart_data: ChartData) -> Dict[str, Any]:
    """
    Map a ChartData onto the drawing engine's configuration.

    Area charts are line charts with a fill; only bar charts honour the
    horizontal flag; pie-like charts color every slice and get no axes.
    """
    is_pie = chart_data.type in PIE_TYPES
    is_horizontal = chart_data.horizontal and chart_data.type == ChartKind.BAR

    datasets = []
    for i, ds in enumerate(chart_data.datasets):
        base_color = ds.color or palette_color(i)
        if is_pie:
            background = [palette_color(j) for j in range(len(ds.data))]
        else:
            background = base_color
        datasets.append(
            {
                "label": ds.label,
                "data": list(ds.data),
                "background_color": background,
                "border_color": base_color,
                "border_width": 2 if chart_data.type == ChartKind.LINE else 1,
                "fill": chart_data.type == ChartKind.AREA,
                "tension": 0.1 if chart_data.type == ChartKind.LINE else 0,
            }
        )

    options: Dict[str, Any] = {
        "index_axis": "y" if is_horizontal else "x",
        "title": {"display": bool(chart_data.title), "text": chart_data.title or ""},
        "legend": {"display": len(chart_data.datasets) > 1 or is_pie, "position": "bottom"},
    }

    if not is_pie:
        # "x" is always the horizontal axis of the picture
        category_title, value_title = chart_data.x_axis_title, chart_data.y_axis_title
        x_title, y_title = (value_title, category_title) if is_horizontal else (category_title, value_title)
        options["scales"] = {
            "x": {"begin_at_zero": True, "title": {"display": bool(x_title), "text": x_title or ""}, "stacked": chart_data.stacked},
            "y": {"begin_at_zero": True, "title": {"display": bool(y_title), "text": y_title or ""}, "stacked": chart_data.stacked},
        }

    return {
        "type": ENGINE_TYPES[chart_data.type],
        "kind": chart_data.type.value,
        "data": {"labels": list(chart_data.labels), "datasets": datasets},
        "options": options,
    }


# Drawing helpers
def _category_positions(labels: Sequence[str]) -> np.ndarray:
    return np.arange(len(labels), dtype=float)


def _scatter_positions(labels: Sequence[str]) -> np.ndarray:
    numbers = [to_number(label) for label in labels]
    if labels and all(n is not None for n in numbers):
        return np.array(numbers, dtype=float)
    return np.arange(1, len(labels) + 1, dtype=float)


def _set_category_ticks(ax, labels: Sequence[str], horizontal: bool = False) -> None:
    positions = _category_positions(labels)
    rotation = 45 if len(labels) > 8 and not horizontal else 0
    if horizontal:
        ax.set_yticks(positions)
        ax.set_yticklabels(labels)
    else:
        ax.set_xticks(positions)
        ax.set_xticklabels(labels, rotation=rotation, ha="right" if rotation else "center")


def _draw_bar(ax, config: Dict[str, Any]) -> None:
    labels = config["data"]["labels"]
    datasets = config["data"]["datasets"]
    horizontal = config["options"]["index_axis"] == "y"
    stacked = config["options"]["scales"]["x"]["stacked"]

    positions = _category_positions(labels)
    n = len(datasets)
    width = 0.8 if stacked else 0.8 / max(n, 1)
    pos_base = np.zeros(len(labels))
    neg_base = np.zeros(len(labels))

    for i, ds in enumerate(datasets):
        values = np.array(ds["data"], dtype=float)
        if stacked:
            offsets = positions
            base = np.where(values >= 0, pos_base, neg_base)
        else:
            offsets = positions - 0.4 + width * (i + 0.5)
            base = np.zeros(len(values))
        kwargs = dict(color=ds["background_color"], edgecolor=ds["border_color"],
                      linewidth=ds["border_width"], label=ds["label"])
        if horizontal:
            ax.barh(offsets, values, height=width, left=base, **kwargs)
        else:
            ax.bar(offsets, values, width=width, bottom=base, **kwargs)
        if stacked:
            pos_base = pos_base + np.where(values >= 0, values, 0)
            neg_base = neg_base + np.where(values < 0, values, 0)

    _set_category_ticks(ax, labels, horizontal=horizontal)
    if horizontal:
        ax.invert_yaxis()


def _draw_line(ax, config: Dict[str, Any]) -> None:
    labels = config["data"]["labels"]
    stacked = config["options"]["scales"]["y"]["stacked"]
    positions = _category_positions(labels)
    baseline = np.zeros(len(labels))

    for ds in config["data"]["datasets"]:
        values = np.array(ds["data"], dtype=float)
        top = baseline + values if stacked else values
        ax.plot(positions, top, color=ds["border_color"], linewidth=ds["border_width"],
                marker="o", markersize=3, label=ds["label"])
        if ds["fill"]:
            lower = baseline if stacked else np.zeros(len(values))
            ax.fill_between(positions, lower, top, color=ds["background_color"], alpha=0.35)
        if stacked:
            baseline = top

    _set_category_ticks(ax, labels)


def _draw_scatter(ax, config: Dict[str, Any]) -> None:
    positions = _scatter_positions(config["data"]["labels"])
    for ds in config["data"]["datasets"]:
        ax.scatter(positions, ds["data"], color=ds["background_color"],
                   edgecolors=ds["border_color"], label=ds["label"])


def _draw_pie(ax, config: Dict[str, Any]) -> None:
    labels = config["data"]["labels"]
    datasets = config["data"]["datasets"]
    doughnut = config["kind"] == ChartKind.DOUGHNUT.value
    n = len(datasets)
    # one ring per dataset, outermost first
    ring = (0.5 if doughnut else 1.0) / max(n, 1)

    for i, ds in enumerate(datasets):
        values = np.clip(np.array(ds["data"], dtype=float), 0, None)
        if values.sum() <= 0:
            continue
        wedgeprops = {"edgecolor": "white"}
        if doughnut or n > 1:
            wedgeprops["width"] = ring
        ax.pie(values, colors=ds["background_color"], radius=1.0 - i * ring,
               wedgeprops=wedgeprops, startangle=90, counterclock=False,
               labels=labels if i == 0 and not config["options"]["legend"]["display"] else None)
    ax.axis("equal")


def _draw_radar(ax, config: Dict[str, Any]) -> None:
    labels = config["data"]["labels"]
    angles = np.linspace(0, 2 * np.pi, len(labels), endpoint=False)
    closed = np.concatenate([angles, angles[:1]])
    for ds in config["data"]["datasets"]:
        values = np.array(ds["data"], dtype=float)
        values = np.concatenate([values, values[:1]])
        ax.plot(closed, values, color=ds["border_color"], linewidth=ds["border_width"], label=ds["label"])
        ax.fill(closed, values, color=ds["background_color"], alpha=0.15)
    ax.set_xticks(angles)
    ax.set_xticklabels(labels)


def _apply_axes(ax, config: Dict[str, Any]) -> None:
    scales = config["options"].get("scales")
    if not scales:
        return
    x_title = scales["x"]["title"]
    y_title = scales["y"]["title"]
    if x_title["display"]:
        ax.set_xlabel(x_title["text"])
    if y_title["display"]:
        ax.set_ylabel(y_title["text"])

    value_axis = "x" if config["options"]["index_axis"] == "y" else "y"
    if config["type"] in ("bar", "line") and scales[value_axis]["begin_at_zero"]:
        low, high = ax.get_xlim() if value_axis == "x" else ax.get_ylim()
        if low > 0:
            if value_axis == "x":
                ax.set_xlim(left=0)
            else:
                ax.set_ylim(bottom=0)


def _apply_legend(fig, ax, config: Dict[str, Any]) -> None:
    if not config["options"]["legend"]["display"]:
        return
    if config["type"] in ("pie", "doughnut"):
        handles = ax.patches[: len(config["data"]["labels"])]
        ax.legend(handles, config["data"]["labels"], loc="upper center",
                  bbox_to_anchor=(0.5, -0.02), ncol=min(len(handles), 5) or 1, frameon=False)
    else:
        ax.legend(loc="upper center", bbox_to_anchor=(0.5, -0.12),
                  ncol=min(len(config["data"]["datasets"]), 5) or 1, frameon=False)


def render_config_to_png(config: Dict[str, Any], width: int = CHART_WIDTH, height: int = CHART_HEIGHT) -> bytes:
    """Draw an engine configuration onto a width x height PNG with a solid background."""
    with sns.axes_style("whitegrid"):
        fig = plt.figure(figsize=(width / DPI, height / DPI), dpi=DPI, facecolor=BACKGROUND_COLOR)
        try:
            if config["type"] == "radar":
                ax = fig.add_subplot(111, projection="polar")
            else:
                ax = fig.add_subplot(111)

            if config["type"] == "bar":
                _draw_bar(ax, config)
            elif config["type"] == "line":
                _draw_line(ax, config)
            elif config["type"] == "scatter":
                _draw_scatter(ax, config)
            elif config["type"] in ("pie", "doughnut"):
                _draw_pie(ax, config)
            elif config["type"] == "radar":
                _draw_radar(ax, config)
            else:
                raise ValueError(f"Unknown chart type: {config['type']}")

            title = config["options"]["title"]
            if title["display"]:
                ax.set_title(title["text"], fontsize=16, fontweight="bold", pad=10)

            _apply_axes(ax, config)
            _apply_legend(fig, ax, config)
            fig.tight_layout()

            buffer = io.BytesIO()
            fig.savefig(buffer, format="png", dpi=DPI, facecolor=BACKGROUND_COLOR)
            return buffer.getvalue()
        finally:
            plt.close(fig)


def render_chart(chart_data: ChartData, width: int = CHART_WIDTH, height: int = CHART_HEIGHT) -> bytes:
    config = build_render_config(chart_data)
    logger.info(
        "Rendering %s chart (horizontal=%s) with %d series",
        chart_data.type.value, chart_data.horizontal, len(chart_data.datasets),
    )
    image = render_config_to_png(config, width=width, height=height)
    logger.debug("PNG bytes length: %d", len(image))
    return image


# Multiprocessing helper for rendering many charts
def _render_chart_process(task) -> Optional[bytes]:
    chart_data, width, height = task
    try:
        return render_chart(chart_data, width=width, height=height)
    except Exception as e:
        logger.warning("Chart render failed: %s", e)
        return None


def render_charts(
    chart_datas: List[ChartData],
    width: int = CHART_WIDTH,
    height: int = CHART_HEIGHT,
    workers: int = 1,
) -> List[Optional[bytes]]:
    """Render several charts, in a process pool when workers > 1. Failed renders come back as None."""
    tasks = [(cd, width, height) for cd in chart_datas]
    if workers <= 1 or len(tasks) <= 1:
        return [_render_chart_process(t) for t in tasks]

    with ProcessPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(_render_chart_process, tasks))
