"""
stats.py  –  Per-session statistics and end-of-session reports.

SessionStats snapshots the intent vector once per second, counts
combat events (threats, attacks landed, hazard hits, power-ups) and,
at session end, prints a formatted summary and saves two charts via
matplotlib:

  intent_trend.png   – the five intent channels over time
  path_heatmap.png   – visit counts of the path heatmap grid
"""

import logging
import os
import time

import numpy as np

logger = logging.getLogger(__name__)

import matplotlib
matplotlib.use("Agg")  # headless backend, charts are only written to disk
import matplotlib.pyplot as plt

from settings import INTENT_SNAPSHOT_INTERVAL, REPORT_DPI

_CHANNEL_COLORS = {
    "aggression": "#d62728",
    "evasion":    "#1f77b4",
    "greed":      "#bcbd22",
    "panic":      "#9467bd",
    "precision":  "#2ca02c",
}


class SessionStats:
    """Tracks events for one session and produces end-of-session reports.

    Attributes tracked:
        player_style       – str  (scripted style, or "live")
        threats            – int  (attack telegraphs that resolved into attacks)
        damage_to_player   – float
        damage_to_enemies  – float
        hazard_hits        – int
        enemies_killed     – int
        power_ups          – list[str]
        intent_history     – list[(t, {channel: score})]
        duration           – float (seconds, set at end_session)
    """

    def __init__(self, player_style: str = "live", clock=time.monotonic):
        self.player_style: str = player_style
        self._clock = clock

        # Cumulative counters
        self.threats: int = 0
        self.damage_to_player: float = 0.0
        self.damage_to_enemies: float = 0.0
        self.hazard_hits: int = 0
        self.enemies_killed: int = 0
        self.power_ups: list[str] = []

        # Timing
        self._start_time: float = clock()
        self.duration: float = 0.0

        # Intent snapshots
        self.intent_history: list[tuple[float, dict]] = []
        self._last_snapshot_time: float | None = None

    # ===========================================================
    #  Per-tick / per-event recorders
    # ===========================================================

    def record_threat(self):
        self.threats += 1

    def record_player_damage(self, amount: float):
        """Damage flagged against the player (enemy attacks and spikes)."""
        self.damage_to_player += amount

    def record_enemy_damage(self, amount: float, killed: bool = False):
        self.damage_to_enemies += amount
        if killed:
            self.record_kill()

    def record_kill(self):
        self.enemies_killed += 1

    def record_hazard_hit(self):
        self.hazard_hits += 1

    def record_power_up(self, power_up_type: str):
        self.power_ups.append(power_up_type)

    def tick(self, scores):
        """Call once per tick.  Snapshots the intent vector when the interval elapses."""
        now = self._clock()
        if (self._last_snapshot_time is None
                or now - self._last_snapshot_time >= INTENT_SNAPSHOT_INTERVAL):
            self.intent_history.append((now - self._start_time, scores.as_dict()))
            self._last_snapshot_time = now

    # ===========================================================
    #  End-of-session
    # ===========================================================

    def end_session(self, judgment_data, judgment: str,
                    report_dir: str | None = None, plot: bool = True) -> list[str]:
        """Finalise stats, print the summary and save charts.

        Returns the paths of the charts written.
        """
        self.duration = self._clock() - self._start_time
        # Final snapshot so the chart always ends at the judged state
        self.intent_history.append((self.duration, judgment_data.intent_scores.as_dict()))

        self._print_summary(judgment_data, judgment)
        if not plot:
            return []
        out_dir = report_dir or "."
        os.makedirs(out_dir, exist_ok=True)
        paths = [self._plot_intents(out_dir)]
        heatmap = self._plot_heatmap(judgment_data.path_heatmap, out_dir)
        if heatmap:
            paths.append(heatmap)
        return [p for p in paths if p]

    # ===========================================================
    #  Reports
    # ===========================================================

    def _print_summary(self, data, judgment: str):
        """Print a clean formatted session summary to stdout."""
        stats = data.movement_stats
        print("\n" + "=" * 52)
        print("  SESSION SUMMARY")
        print("=" * 52)
        print(f"  Player Style     : {self.player_style}")
        print(f"  Duration         : {self.duration:.1f}s")
        print(f"  Dominant Intent  : {data.dominant_intent}")
        print("-" * 52)
        for name, value in data.intent_scores.as_dict().items():
            print(f"  {name.capitalize():<16} : {value:.2f}")
        print("-" * 52)
        print(f"  Moving Ratio     : {stats.moving_ratio:.0%}")
        print(f"  Path Repetition  : {stats.path_repetition:.0%}")
        print(f"  Avg Reaction     : {data.average_reaction_time:.2f}s")
        print(f"  Threats          : {self.threats}")
        print(f"  Damage Taken     : {self.damage_to_player:.0f}")
        print(f"  Damage Dealt     : {self.damage_to_enemies:.0f}")
        print(f"  Hazard Hits      : {self.hazard_hits}")
        print(f"  Enemies Killed   : {self.enemies_killed}")
        print(f"  Power-ups        : {', '.join(self.power_ups) or '-'}")
        print("-" * 52)
        print(f'  "{judgment}"')
        print("=" * 52 + "\n")

    def _plot_intents(self, out_dir: str) -> str | None:
        """Save a line graph of every intent channel over the session."""
        if not self.intent_history:
            return None

        t = np.array([snap[0] for snap in self.intent_history])
        fig, ax = plt.subplots(figsize=(8, 4))
        for name, color in _CHANNEL_COLORS.items():
            y = np.array([snap[1][name] for snap in self.intent_history])
            ax.plot(t, y, label=name, color=color)
        ax.set_ylim(0.0, 1.0)
        ax.set_xlabel("Time (seconds)")
        ax.set_ylabel("Intent Score")
        ax.set_title(f"Intent Trend  -  {self.player_style}")
        ax.grid(True, alpha=0.3)
        ax.legend(loc="upper left", fontsize="small")

        filename = os.path.join(out_dir, "intent_trend.png")
        fig.savefig(filename, dpi=REPORT_DPI, bbox_inches="tight")
        plt.close(fig)
        logger.info("Intent graph saved to %s", filename)
        return filename

    def _plot_heatmap(self, cells, out_dir: str) -> str | None:
        """Save the path heatmap as an image (x across, z down)."""
        grid, extent = heatmap_grid(cells)
        if grid is None:
            return None

        fig, ax = plt.subplots(figsize=(5, 5))
        im = ax.imshow(grid, origin="lower", cmap="inferno", extent=extent)
        fig.colorbar(im, ax=ax, label="Visits")
        ax.set_xlabel("Cell X")
        ax.set_ylabel("Cell Z")
        ax.set_title("Path Heatmap")

        filename = os.path.join(out_dir, "path_heatmap.png")
        fig.savefig(filename, dpi=REPORT_DPI, bbox_inches="tight")
        plt.close(fig)
        logger.info("Heatmap saved to %s", filename)
        return filename

    # ===========================================================
    #  Data accessors
    # ===========================================================

    def as_dict(self) -> dict:
        """Return a plain dict snapshot (useful for JSON serialisation)."""
        return {
            "player_style":      self.player_style,
            "threats":           self.threats,
            "damage_to_player":  round(self.damage_to_player, 2),
            "damage_to_enemies": round(self.damage_to_enemies, 2),
            "hazard_hits":       self.hazard_hits,
            "enemies_killed":    self.enemies_killed,
            "power_ups":         list(self.power_ups),
            "duration":          round(self.duration, 2),
            "intent_snapshots":  len(self.intent_history),
        }


def heatmap_grid(cells) -> tuple[np.ndarray | None, tuple]:
    """Dense (z, x) count array from [((cx, cz), count), ...] heatmap items."""
    cells = list(cells)
    if not cells:
        return None, ()
    xs = [c[0][0] for c in cells]
    zs = [c[0][1] for c in cells]
    x0, z0 = min(xs), min(zs)
    grid = np.zeros((max(zs) - z0 + 1, max(xs) - x0 + 1), dtype=int)
    for (cx, cz), count in cells:
        grid[cz - z0, cx - x0] = count
    extent = (x0 - 0.5, max(xs) + 0.5, z0 - 0.5, max(zs) + 0.5)
    return grid, extent
