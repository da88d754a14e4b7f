from __future__ import annotations

import argparse
import os
from pathlib import Path

from hackeros.config.balance import Balance
from hackeros.runtime.logsetup import configure_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="hackeros", description="Simulated hacking terminal game.")
    parser.add_argument("--plain", action="store_true", help="use the line-based REPL instead of the textual UI")
    parser.add_argument("--no-save", action="store_true", help="do not load or write the save file")
    args = parser.parse_args(argv)

    log_file = os.environ.get("HACKEROS_LOG_FILE")
    if args.plain:
        configure_logging(path=log_file)
        from hackeros.cli import repl

        repl.main(save=not args.no_save)
        return

    # logs must not draw over the textual screen
    configure_logging(path=log_file or Path(Balance.SAVE_DIR).expanduser() / Balance.LOG_FILE)
    from hackeros.bootstrap import create_session
    from hackeros.runtime.savegame import SaveStore, default_save_path
    from hackeros.ui_textual.app import HackerOSApp

    session = create_session()
    store = None
    path = None if args.no_save else default_save_path()
    if path is not None:
        store = SaveStore(path)
        store.load_game(session.fs, session.missions)
    HackerOSApp(session=session, store=store).run()


if __name__ == "__main__":
    main()
