"""
main.py - Entry point for the Conscience intent inference engine.

The engine has no renderer of its own; the CLI runs headless sessions
with scripted players so the whole per-tick data flow can be observed:

- Behavior sampling and intent scoring (ai/intent_tracker.py)
- Threat / reaction timing (ai/reaction_tracker.py)
- Enemy state machines (ai/enemy_behavior.py)
- Judgmental platforms and spikes (systems/world_reactions.py)
- Power-ups with deferred costs (systems/powerup_system.py)
- End-of-session judgment (ai/judgment.py)

Run:  python main.py --simulate 3 --style evasive --seed 42
"""
VERSION = "1.0.0"

import argparse
import logging
import sys

logger = logging.getLogger(__name__)

# ── Project imports ───────────────────────────────────────
from settings import FPS, TITLE, SIM_DEFAULT_DURATION
from ai.simulation_runner import SimulationRunner, PLAY_STYLES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=TITLE)
    parser.add_argument("--simulate", type=int, default=1, metavar="N",
                        help="Number of headless sessions to run (default 1)")
    parser.add_argument("--duration", type=float, default=SIM_DEFAULT_DURATION, metavar="S",
                        help="Simulated seconds per session")
    parser.add_argument("--style", choices=PLAY_STYLES, default=None,
                        help="Scripted play style (random per session if omitted)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--fps", type=int, default=FPS, help="Simulation tick rate")
    parser.add_argument("--report-dir", default=None,
                        help="Directory for intent/heatmap charts")
    parser.add_argument("--no-plot", action="store_true", help="Skip chart generation")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    logger.info("%s v%s", TITLE, VERSION)

    runner = SimulationRunner(
        n_sessions=args.simulate,
        duration=args.duration,
        style=args.style,
        seed=args.seed,
        fps=args.fps,
        report_dir=args.report_dir,
        plot=not args.no_plot and args.report_dir is not None,
    )
    runner.run()
    return 0


# ── Run ───────────────────────────────────────────────────
if __name__ == "__main__":
    sys.exit(main())
