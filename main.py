import argparse
import logging
import sys
import threading
import time
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from clock.capture import OcrError, PillowCapturer, Region, TesseractReader
from clock.date import MAX_DAYS_AHEAD, StampedDate
from clock.sync import ClockSync, DateCell
from config import get_settings
from memory.reminders import ReminderBook
from memory.storage import ReminderStorage, StorageError
from utils.expr import evaluate_interval
from utils.logger import get_logger, setup_logging
from utils.sound import Notifier

console = Console()
log = get_logger()


class TimerApp:
    """Glues the clock, the reminder book and the timer file together.

    The console thread and the ticker thread both touch the book, so every
    access goes through ``self.lock``.
    """

    def __init__(self, cell: DateCell, book: ReminderBook, storage: ReminderStorage,
                 notifier: Notifier, sync: Optional[ClockSync] = None, tick_interval: float = 0.5):
        self.cell = cell
        self.book = book
        self.storage = storage
        self.notifier = notifier
        self.sync = sync
        self.tick_interval = tick_interval
        self.lock = threading.Lock()
        self._stop = threading.Event()
        self._ticker: Optional[threading.Thread] = None

    def save(self) -> bool:
        try:
            self.storage.save(self.cell.get(), self.book)
            return True
        except StorageError:
            log.exception("Failed to save reminders")
            return False

    def add(self, days_text: str, label: str) -> Optional[StampedDate]:
        try:
            days = evaluate_interval(days_text)
        except ValueError as e:
            log.debug(f"Bad interval {days_text!r}: {e}")
            return None
        with self.lock:
            # The sync loop may update the clock between this read and the insert.
            key = self.book.insert(label, days, self.cell.get())
            if key is not None:
                self.save()
        return key

    def remove(self, index: int) -> Optional[StampedDate]:
        with self.lock:
            keys = self.book.keys()
            if not 1 <= index <= len(keys):
                return None
            key = keys[index - 1]
            self.book.remove(key)
            self.save()
        return key

    def snapshot(self):
        with self.lock:
            return [(key, reminder.label, reminder.triggered) for key, reminder in self.book.items()]

    def next_pending(self):
        """Earliest reminder that hasn't fired yet, as (key, label), or None."""
        with self.lock:
            pending = self.book.pending()
        if not pending:
            return None
        key, reminder = pending[0]
        return key, reminder.label

    def tick(self) -> List[str]:
        with self.lock:
            fired = self.book.scan_and_trigger(self.cell.get())
            if fired:
                self.save()
        for label in fired:
            self.notifier.notify(label)
        return fired

    def _tick_loop(self):
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                log.exception("Error while checking reminders")
            if self._stop.wait(self.tick_interval):
                break

    def start(self):
        if self.sync is not None:
            self.sync.start()
        self._stop.clear()
        self._ticker = threading.Thread(target=self._tick_loop, name="reminder-ticker", daemon=True)
        self._ticker.start()

    def shutdown(self):
        with self.lock:
            self.save()
        self._stop.set()
        if self._ticker is not None:
            self._ticker.join()
            self._ticker = None
        if self.sync is not None:
            self.sync.stop()


# === Dispatcher Functions ===

def handle_add(app, argv):
    if len(argv) < 2:
        console.print("[red]❌ Usage: add <days> <label>[/]")
        return
    days_text, label = argv[0], " ".join(argv[1:])
    key = app.add(days_text, label)
    if key is None:
        console.print(f"[red]❌ Interval must be a number of days between 1 and {MAX_DAYS_AHEAD}.[/]")
    else:
        console.print(f"✅ Reminder saved: '{label}' on [cyan]{key.date}[/]")


def handle_list(app, argv=None):
    rows = app.snapshot()
    if not rows:
        console.print("[yellow]📭 No reminders.[/]")
        return
    table = Table(title=f"Reminders (now {app.cell.get()})")
    table.add_column("#", justify="right")
    table.add_column("Reminder")
    table.add_column("Date", style="cyan")
    table.add_column("State")
    for i, (key, label, triggered) in enumerate(rows, 1):
        state = "[bold blue]🔔 reached[/]" if triggered else "waiting"
        table.add_row(str(i), label, str(key.date), state)
    console.print(table)


def handle_clear(app, argv):
    if len(argv) != 1 or not argv[0].isdigit():
        console.print("[red]❌ Usage: clear <number>[/]")
        return
    key = app.remove(int(argv[0]))
    if key is None:
        console.print("[red]❌ Invalid reminder number.[/]")
    else:
        console.print(f"🗑️ Reminder {argv[0]} cleared.")


def handle_date(app, argv=None):
    synced_at = app.cell.synced_at
    if synced_at is None:
        status = "[yellow]not synced yet[/]"
    else:
        status = f"synced {time.time() - synced_at:.0f}s ago"
    console.print(f"📅 [bold]{app.cell.get()}[/] ({status})")
    upcoming = app.next_pending()
    if upcoming:
        key, label = upcoming
        console.print(f"⏭️ Next: '{label}' on [cyan]{key.date}[/]")


def handle_help(app=None, argv=None):
    console.print(
        "[bold green]💡 Commands:[/]\n"
        "• add <days> <label>   e.g. add 12*30 Check the fleet\n"
        "• list\n"
        "• clear <number>\n"
        "• date\n"
        "• exit"
    )


def handle_exit(app=None, argv=None):
    console.print("[bold red]Goodbye![/]")
    sys.exit(0)


dispatch = {
    "add": handle_add,
    "list": handle_list,
    "clear": handle_clear,
    "date": handle_date,
    "help": handle_help,
    "exit": handle_exit,
    "quit": handle_exit,
}


def run_command(app, line):
    parts = line.split()
    if not parts:
        return
    handler = dispatch.get(parts[0].lower())
    if handler is None:
        console.print(f"[red]Unknown command: {parts[0]}[/] (try 'help')")
        return
    handler(app, parts[1:])


def build_parser():
    parser = argparse.ArgumentParser(description="Stellaris Timer")
    parser.add_argument("--file", default="", help="Path to the timer file")
    parser.add_argument("--region", type=Region.parse, default=None, help="Date region as x,y or x,y,w,h")
    parser.add_argument("--interval", type=float, default=None, help="Seconds between clock reads")
    parser.add_argument("--silent", action="store_true", help="Disable the reminder sound")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


# === MAIN LOOP ===

def main(argv=None):
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(logging.DEBUG if args.debug else logging.INFO, console=console)

    reader = TesseractReader(settings.tesseract_cmd)
    try:
        log.debug(f"Using tesseract {reader.check()}")
    except OcrError:
        log.exception("Cannot read the game clock without tesseract")
        return 1

    storage = ReminderStorage(args.file or settings.timer_file)
    date, book = storage.load()
    cell = DateCell(date)
    sync = ClockSync(
        PillowCapturer(),
        reader,
        cell,
        region=args.region or settings.region,
        interval=args.interval or settings.poll_interval,
    )
    notifier = Notifier(settings.sound_command, settings.sound_file, console=console, silent=args.silent)
    app = TimerApp(cell, book, storage, notifier, sync=sync, tick_interval=settings.tick_interval)

    console.print("[bold magenta]🕰️ Stellaris Timer is watching the clock...[/]")
    app.start()
    try:
        while True:
            try:
                line = input("\n> ").strip()
                run_command(app, line)
            except (KeyboardInterrupt, EOFError):
                console.print("\n[red]❌ Interrupted. Exiting.[/]")
                break
            except SystemExit:
                break
            except Exception:
                log.exception("Unhandled error in main loop.")
    finally:
        app.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
