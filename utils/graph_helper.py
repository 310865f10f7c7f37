from typing import List

import pyqtgraph as pg

RUN_COLORS = ["#c8c8ff", "#eab308", "#22c55e", "#ef4444", "#88c0d0"]


def setup_wpm_plot(plot_widget: pg.PlotWidget):
    plot_widget.setBackground(None)
    plot_widget.showGrid(x=False, y=True, alpha=0.08)
    plot_widget.setMenuEnabled(False)
    plot_widget.setMouseEnabled(x=False, y=False)
    plot_widget.hideButtons()
    plot_widget.setClipToView(True)
    plot_widget.setLabel("left", "WPM")
    plot_widget.setLabel("bottom", "Time (s)")
    plot_widget.addLegend(offset=(-10, 10))


def add_run_curve(plot_widget: pg.PlotWidget, run_number: int,
                  times: List[float], wpms: List[float]):
    color = RUN_COLORS[(run_number - 1) % len(RUN_COLORS)]
    return plot_widget.plot(
        times, wpms,
        pen=pg.mkPen(color, width=2.5),
        antialias=True,
        name=f"Run {run_number}",
    )
