from __future__ import annotations

from idleprogress.report import SimulationReport

_FLOOR = 1e-10


def _decorate(ax, title: str, ylabel: str = "", log: bool = False) -> None:
    ax.set_title(title)
    ax.set_xlabel("Time (s)")
    if ylabel:
        ax.set_ylabel(ylabel)
    if log:
        ax.set_yscale("log")
    if ax.get_legend_handles_labels()[0]:
        ax.legend(fontsize=8)
    ax.grid(True, alpha=0.3)


def plot_simulation(
    report: SimulationReport,
    output_path: str | None = None,
) -> None:
    """Plot run resource, income, purchases and meta progress on a 2x2 grid.

    Requires matplotlib (the ``viz`` extra).
    """
    try:
        import matplotlib.pyplot as plt
    except ImportError:
        raise ImportError(
            "matplotlib is required for plotting. "
            "Install with: pip install idleprogress[viz]"
        )

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle(
        f"{report.game_name or 'idleprogress'}: {report.strategy_description}",
        fontsize=14,
    )
    resource_ax, rate_ax = axes[0]
    purchase_ax, meta_ax = axes[1]

    # Rebirths cut the run resource back to zero; mark them on every time axis.
    for ax in (resource_ax, rate_ax, meta_ax):
        for r in report.rebirths:
            ax.axvline(r.time, color="grey", linestyle=":", alpha=0.6)

    for attr, label in (("resource", "banked"), ("lifetime_resource", "lifetime")):
        points = report.series(attr)
        if points:
            t, v = zip(*points)
            resource_ax.plot(t, [max(x, _FLOOR) for x in v], label=label)
    _decorate(resource_ax, "Run Resource", "Resource", log=True)

    points = report.series("resource_per_second")
    positive = any(v > 0 for _, v in points)
    if points:
        t, v = zip(*points)
        rate_ax.plot(t, [max(x, _FLOOR) for x in v] if positive else v)
    _decorate(rate_ax, "Income", "Resource/s", log=positive)

    if report.purchases:
        ids = sorted({p.modifier_id for p in report.purchases})
        row = {mid: i for i, mid in enumerate(ids)}
        purchase_ax.scatter(
            [p.time for p in report.purchases],
            [row[p.modifier_id] for p in report.purchases],
            s=10,
            alpha=0.6,
        )
        purchase_ax.set_yticks(range(len(ids)))
        purchase_ax.set_yticklabels(ids, fontsize=7)
    _decorate(purchase_ax, "Modifier Purchases")

    for attr, label in (("currency", "currency"), ("dark_matter", "dark matter")):
        points = report.series(attr)
        if any(v > 0 for _, v in points):
            t, v = zip(*points)
            meta_ax.plot(t, v, label=label)
    _decorate(meta_ax, "Meta Progress")

    plt.tight_layout()

    if output_path:
        plt.savefig(output_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()
