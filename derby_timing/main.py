"""
main.py

Entry point: runs one Royal Derby race in a headless Qt event loop and prints
the countdown and draws to the console, or estimates lane odds with
--simulate.
"""
import argparse
import logging
import os
import sys
from PyQt5 import QtCore

from derby_core.errors import InvalidWager
from derby_core.model import RacePhase
from derby_core.simulation import simulate_races
from derby_core.wagers import WagerCategory
from derby_timing.core.config import Config
from derby_timing.core.config_backend import ConfigBackend
from derby_timing.core.config_store import ConfigStore, set_config_store
from derby_timing.core.version import __version__
from derby_timing.ui.console_view import ConsoleView
from derby_timing.updater.race_updater import RaceUpdater
from derby_timing.utils.log_handlers import CappedFileHandler

log = logging.getLogger(__name__)


def configure_logging(level=logging.INFO, log_path=None):
    base_dir = os.path.dirname(sys.argv[0])
    log_path = log_path or os.path.join(base_dir, "derby_log.txt")
    handlers = [CappedFileHandler(log_path, max_lines=200), logging.StreamHandler(sys.stdout)]
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


def build_parser():
    parser = argparse.ArgumentParser(description="Royal Derby card race")
    parser.add_argument("--config", help="path to settings.ini")
    parser.add_argument("--seed", type=int, help="seed for reproducible decks")
    parser.add_argument("--countdown", type=int, help="betting countdown in seconds")
    parser.add_argument("--draw-ms", type=int, help="delay between automatic draws")
    parser.add_argument("--red", default="", help="stake on the red lane")
    parser.add_argument("--black", default="", help="stake on the black lane")
    parser.add_argument("--suit", default="", help="suit finish stake")
    parser.add_argument("--straight", default="", help="straight strike stake")
    parser.add_argument("--simulate", type=int, metavar="N", help="simulate N races and print lane odds")
    parser.add_argument("-v", "--verbose", action="store_true", help="log every draw")
    return parser


def run_simulation(races, seed, finish_line):
    summary = simulate_races(races, seed=seed, finish_line=finish_line)
    for key, value in summary.to_dict().items():
        print(f"{key:>16}: {value}")
    return 0


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    log.info(f"Starting Royal Derby {__version__}")

    try:
        store = set_config_store(ConfigStore(ConfigBackend(args.config)))
        store.apply_overrides(
            seed=args.seed,
            countdown_start=args.countdown,
            draw_interval_ms=args.draw_ms,
        )
    except ValueError as exc:
        parser.error(str(exc))
    cfg = Config.current()

    if args.simulate is not None:
        # per-race INFO lines would swamp the summary
        logging.getLogger("derby_core.race").setLevel(logging.WARNING)
        return run_simulation(args.simulate, cfg.seed, cfg.finish_line)

    app = QtCore.QCoreApplication(sys.argv[:1])
    updater = RaceUpdater(cfg)
    Config.subscribe(updater.apply_config)
    view = ConsoleView(updater)  # noqa: F841 - keeps the signal receivers alive

    stakes = {
        WagerCategory.RED: args.red,
        WagerCategory.BLACK: args.black,
        WagerCategory.SUIT_FINISH: args.suit,
        WagerCategory.STRAIGHT_STRIKE: args.straight,
    }
    for category, amount in stakes.items():
        try:
            updater.set_wager(category, amount)
        except InvalidWager as exc:
            parser.error(str(exc))

    def on_finished(_state):
        updater.stop()
        # let the last lines flush before leaving the loop
        QtCore.QTimer.singleShot(0, app.quit)

    updater.race_finished.connect(on_finished)
    app.aboutToQuit.connect(updater.stop)

    if cfg.auto_draw:
        updater.request_start_betting()
    else:
        # manual mode on a console: skip the window and draw until the race ends
        updater.manual_start_race()
        while updater.race.phase is RacePhase.RACING:
            updater.manual_advance()
        return 0

    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
