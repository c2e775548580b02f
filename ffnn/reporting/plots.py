"""Headless-safe plotting of the per-epoch training cost."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect epoch costs and optionally write ``cost.png`` on :meth:`close`."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False) -> None:
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self.history.append((int(epoch), float(metrics.get("cost", 0.0))))

    def close(self) -> Path | None:
        if not self.enable_plots or not self.history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, costs = zip(*self.history)
        fig, ax = plt.subplots()
        ax.plot(epochs, costs, marker="o")
        ax.set_xlabel("Epoch")
        ax.set_ylabel("Mean cost")
        ax.set_title("Training Cost")
        plot_path = self.run_dir / "cost.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path


__all__ = ["PlotAdapter"]
