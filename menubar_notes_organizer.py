import subprocess
import threading
from pathlib import Path
from typing import Optional

import rumps
from watchdog.observers import Observer

import app_runtime as rt
from app_contract import APP_NAME, APP_VERSION, DEFAULT_LOCALE
from category_rules import supported_locales
from notes_analyzer import EmptyInputError, analyze


class NotesMenuApp(rumps.App):
    def __init__(self):
        super().__init__(APP_NAME, quit_button=None)
        self.title = "🧠"

        self.status_msg = "Idle"
        self.observer: Optional[Observer] = None

        self.mi_analyze = rumps.MenuItem("Analyze Clipboard", callback=self.analyze_clipboard)
        self.mi_start = rumps.MenuItem("Start Watching", callback=self.start_watching)
        self.mi_stop = rumps.MenuItem("Stop Watching", callback=self.stop_watching)
        self.mi_setup = rumps.MenuItem("Setup…", callback=self.setup)
        self.mi_status = rumps.MenuItem("Status…", callback=self.show_status)
        self.mi_open_watch = rumps.MenuItem("Open Watch Folder", callback=self.open_watch_folder)
        self.mi_open_failed = rumps.MenuItem("Open _failed", callback=self.open_failed)
        self.mi_quit = rumps.MenuItem("Quit", callback=self.quit_app)

        self.menu = [
            self.mi_analyze,
            None,
            self.mi_start,
            self.mi_stop,
            None,
            self.mi_setup,
            self.mi_status,
            self.mi_open_watch,
            self.mi_open_failed,
            None,
            self.mi_quit,
        ]

        self._refresh_menu_states()
        rt.log(f"{APP_NAME} {APP_VERSION} started")

    def status_cb(self, msg: str):
        self.status_msg = msg
        self._refresh_menu_states()

    def notify_cb(self, title: str, body: str):
        rumps.notification(APP_NAME, title, body)

    def _refresh_menu_states(self):
        running = self.observer is not None
        self.mi_start.state = 1 if running else 0
        self.mi_stop.state = 0

    def _locale(self, cfg: dict) -> str:
        locale = cfg.get("LOCALE", DEFAULT_LOCALE)
        return locale if locale in supported_locales() else DEFAULT_LOCALE

    def _notion_credentials(self, cfg: dict):
        token = rt.keychain_get("NOTION_TOKEN")
        page_id = cfg.get("NOTION_PAGE_ID")
        if token and page_id:
            return token, page_id
        return None, None

    def analyze_clipboard(self, _):
        cfg = rt.load_config()
        try:
            result = analyze(rt.read_clipboard(), locale=self._locale(cfg))
        except EmptyInputError as e:
            rumps.alert("Nothing to analyze", str(e))
            return

        rt.write_clipboard(result.rendered_output)
        self.status_msg = f"Copied outline ({len(result.structured_notes)} lines)"
        rt.log(self.status_msg)
        rumps.notification(
            APP_NAME,
            "Outline copied",
            f"{len(result.categories)} categories: {', '.join(result.categories)}",
        )

    def _ensure_config(self) -> Optional[dict]:
        cfg = rt.load_config()
        if not cfg.get("WATCH_FOLDER"):
            return None
        return cfg

    def setup(self, _):
        cfg = rt.load_config()

        w = rumps.Window(
            title="Watch folder path",
            message="Notes (.txt / .md) dropped here are turned into outlines.",
            default_text=cfg.get("WATCH_FOLDER", ""),
            ok="Next",
            cancel="Cancel"
        ).run()
        if not w.clicked:
            return

        loc = rumps.Window(
            title="Keyword language",
            message=f"One of: {', '.join(supported_locales())}",
            default_text=cfg.get("LOCALE", DEFAULT_LOCALE),
            ok="Next",
            cancel="Cancel"
        ).run()
        if not loc.clicked:
            return

        nurl = rumps.Window(
            title="Notion page URL (optional)",
            message="Paste the Notion page link (URL). Leave blank to skip Notion.",
            default_text=cfg.get("NOTION_PAGE_URL", ""),
            ok="Next",
            cancel="Cancel"
        ).run()
        if not nurl.clicked:
            return

        notion_tok = rumps.Window(
            title="Notion integration token",
            message="Saved to Keychain. Leave blank to keep existing.",
            default_text="",
            ok="Save",
            cancel="Cancel"
        ).run()
        if not notion_tok.clicked:
            return

        locale = loc.text.strip() or DEFAULT_LOCALE
        if locale not in supported_locales():
            rumps.alert("Unknown language", f"Use one of: {', '.join(supported_locales())}")
            return

        if nurl.text.strip():
            try:
                cfg["NOTION_PAGE_ID"] = rt.extract_notion_page_id(nurl.text)
            except ValueError as e:
                rumps.alert("Bad Notion URL", str(e))
                return
            cfg["NOTION_PAGE_URL"] = nurl.text.strip()
        else:
            cfg.pop("NOTION_PAGE_ID", None)
            cfg.pop("NOTION_PAGE_URL", None)

        cfg["WATCH_FOLDER"] = w.text.strip()
        cfg["LOCALE"] = locale
        rt.save_config(cfg)

        if notion_tok.text.strip():
            rt.keychain_set("NOTION_TOKEN", notion_tok.text.strip())

        self.status_msg = "Saved setup."
        rt.log("Setup saved")
        rumps.alert("Saved", "Setup saved. Now click Start Watching.")

    def start_watching(self, _):
        if self.observer is not None:
            rumps.alert("Already running", "Watcher is already running.")
            return

        cfg = self._ensure_config()
        if not cfg:
            rumps.alert("Setup needed", "Click Setup… and choose a watch folder.")
            return

        watch = Path(cfg["WATCH_FOLDER"]).expanduser()
        watch.mkdir(parents=True, exist_ok=True)
        token, page_id = self._notion_credentials(cfg)

        try:
            pipeline = rt.Pipeline(
                status_cb=self.status_cb,
                output_dir=watch / "_outlines",
                notion_token=token,
                page_id=page_id,
                locale=self._locale(cfg),
            )
            handler = rt.FolderHandler(pipeline, watch, self.status_cb, notify_cb=self.notify_cb)

            self.observer = Observer()
            self.observer.schedule(handler, str(watch), recursive=False)
            self.observer.start()

            # backlog runs off the UI thread; files dropped meanwhile go through the observer
            threading.Thread(target=handler.handle_pending, name="backlog", daemon=True).start()

            self.status_msg = f"Watching: {watch}"
            rt.log(self.status_msg)
            rumps.notification(APP_NAME, "Started", str(watch))
        except Exception as e:
            self.observer = None
            rt.log(f"Could not start: {e!r}")
            rumps.alert("Could not start", str(e))
        finally:
            self._refresh_menu_states()

    def stop_watching(self, _):
        if self.observer is None:
            rumps.alert("Not running", "Watcher is not running.")
            return

        try:
            self.observer.stop()
            self.observer.join(timeout=5)
        finally:
            self.observer = None
            self.status_msg = "Stopped."
            rt.log(self.status_msg)
            rumps.notification(APP_NAME, "Stopped", "")
            self._refresh_menu_states()

    def show_status(self, _):
        rumps.alert("Status", self.status_msg or "—")

    def open_watch_folder(self, _):
        cfg = rt.load_config()
        p = cfg.get("WATCH_FOLDER")
        if p:
            subprocess.run(["open", p])

    def open_failed(self, _):
        cfg = rt.load_config()
        p = cfg.get("WATCH_FOLDER")
        if p:
            subprocess.run(["open", str(Path(p) / "_failed")])

    def quit_app(self, _):
        try:
            if self.observer is not None:
                self.observer.stop()
                self.observer.join(timeout=2)
        finally:
            rumps.quit_application()


def main():
    NotesMenuApp().run()


if __name__ == "__main__":
    main()
