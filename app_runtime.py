import hashlib
import json
import logging
import re
import subprocess
import threading
import time
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional

import keyring
import requests
from watchdog.events import FileSystemEventHandler

from app_contract import APP_NAME, DEFAULT_LOCALE, NOTION_VERSION
from notes_analyzer import AnalysisResult, analyze
from notion_format import build_notion_blocks, extract_first_heading_block_id

SERVICE_NAME = "com.notes-organizer"

CONFIG_DIR = Path.home() / "Library" / "Application Support" / APP_NAME
CONFIG_PATH = CONFIG_DIR / "config.json"
STATE_PATH = CONFIG_DIR / "processed.json"
LOG_PATH = CONFIG_DIR / "app.log"

SUPPORTED_EXTS = {".txt", ".md"}
NOTION_CHUNK = 60


def ensure_dirs():
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)


def log(msg: str) -> None:
    """Append a timestamped line to LOG_PATH."""
    logger = logging.getLogger(APP_NAME)
    target = str(LOG_PATH.resolve())
    if not any(getattr(h, "baseFilename", None) == target for h in logger.handlers):
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target, encoding="utf-8")
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    logger.info(msg)


def load_config() -> dict:
    if not CONFIG_PATH.exists():
        return {}
    return json.loads(CONFIG_PATH.read_text("utf-8"))


def save_config(cfg: dict) -> None:
    ensure_dirs()
    CONFIG_PATH.write_text(json.dumps(cfg, ensure_ascii=False, indent=2), "utf-8")


def state_load() -> dict:
    if STATE_PATH.exists():
        try:
            return json.loads(STATE_PATH.read_text("utf-8"))
        except json.JSONDecodeError:
            return {"processed": {}}
    return {"processed": {}}


def state_save(state: dict) -> None:
    ensure_dirs()
    STATE_PATH.write_text(json.dumps(state, ensure_ascii=False, indent=2), "utf-8")


def keychain_set(name: str, value: str) -> None:
    keyring.set_password(SERVICE_NAME, name, value)


def keychain_get(name: str) -> Optional[str]:
    return keyring.get_password(SERVICE_NAME, name)


def extract_notion_page_id(input_str: str) -> str:
    """
    Accepts Notion URL or raw page id.
    Extracts 32 hex chars and returns dashed UUID.
    """
    s = (input_str or "").strip()
    s = s.split("?")[0]
    m = re.search(r"([0-9a-fA-F]{32})", s.replace("-", ""))
    if not m:
        raise ValueError("Could not find a valid Notion page ID in the URL/text.")
    raw = m.group(1).lower()
    return f"{raw[0:8]}-{raw[8:12]}-{raw[12:16]}-{raw[16:20]}-{raw[20:32]}"


def build_notion_page_anchor_url(page_id: str, block_id: str) -> str:
    page = (page_id or "").replace("-", "")
    block = (block_id or "").replace("-", "")
    if not block:
        return f"https://www.notion.so/{page}"
    return f"https://www.notion.so/{page}#{block}"


def read_clipboard() -> str:
    r = subprocess.run(["pbpaste"], capture_output=True, text=True, check=True)
    return r.stdout


def write_clipboard(text: str) -> None:
    subprocess.run(["pbcopy"], input=text, text=True, check=True)


def list_pending_notes(folder: Path) -> List[Path]:
    """Supported, non-hidden note files directly in folder, oldest first."""
    out = []
    for p in folder.iterdir():
        if not p.is_file():
            continue
        if p.name.startswith("."):
            continue
        if p.suffix.lower() not in SUPPORTED_EXTS:
            continue
        out.append(p)
    return sorted(out, key=lambda p: p.stat().st_mtime)


class NotionClient:
    def __init__(self, token: str):
        self.token = token
        self.base = "https://api.notion.com/v1"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": NOTION_VERSION,
            "Content-Type": "application/json",
        }

    def append_children(self, block_id: str, children: list) -> dict:
        url = f"{self.base}/blocks/{block_id}/children"
        r = requests.patch(url, headers=self._headers(), data=json.dumps({"children": children}))
        if r.status_code >= 300:
            raise RuntimeError(f"Notion error {r.status_code}: {r.text}")
        return r.json()


class Pipeline:
    def __init__(
        self,
        status_cb: Callable[[str], None],
        output_dir: Path,
        notion_token: Optional[str] = None,
        page_id: Optional[str] = None,
        locale: str = DEFAULT_LOCALE,
    ):
        self.status_cb = status_cb
        self.output_dir = Path(output_dir)
        self.notion = NotionClient(notion_token) if notion_token and page_id else None
        self.page_id = page_id
        self.locale = locale
        self.state = state_load()

    def fingerprint(self, path: Path) -> str:
        return hashlib.sha256(path.read_bytes()).hexdigest()

    def seen(self, fp: str) -> bool:
        return fp in self.state.get("processed", {})

    def mark(self, fp: str, name: str) -> None:
        self.state.setdefault("processed", {})[fp] = {"name": name, "ts": time.time()}
        state_save(self.state)

    def send_to_notion(self, result: AnalysisResult, source_name: str) -> str:
        """Append the outline to the configured page; returns a link to the new entry."""
        blocks = build_notion_blocks(result, source_name, datetime.now(), locale=self.locale)

        first_id = ""
        for i in range(0, len(blocks), NOTION_CHUNK):
            resp = self.notion.append_children(self.page_id, blocks[i:i + NOTION_CHUNK])
            if not first_id:
                first_id = extract_first_heading_block_id(resp)
            time.sleep(0.1)

        return build_notion_page_anchor_url(self.page_id, first_id)

    def process(self, path: Path) -> Optional[AnalysisResult]:
        fp = self.fingerprint(path)
        if self.seen(fp):
            self.status_cb(f"Already processed: {path.name}")
            return None

        self.status_cb(f"Analyzing: {path.name}")
        result = analyze(path.read_text("utf-8"), locale=self.locale)

        self.output_dir.mkdir(parents=True, exist_ok=True)
        # a.txt -> a.txt.md, a.md -> a.md.md
        out_path = self.output_dir / f"{path.name}.md"
        out_path.write_text(result.rendered_output, "utf-8")
        log(f"Wrote outline {out_path} ({len(result.structured_notes)} lines, {len(result.categories)} categories)")

        if self.notion is not None:
            self.status_cb(f"Appending: {path.name}")
            url = self.send_to_notion(result, path.name)
            self.state["last_note_url"] = url
            log(f"Appended {path.name} to Notion: {url}")

        self.state["last_outline_path"] = str(out_path)
        self.mark(fp, path.name)
        self.status_cb(f"Done: {path.name}")
        return result


class FolderHandler(FileSystemEventHandler):
    def __init__(self, pipeline: Pipeline, watch: Path, status_cb, notify_cb: Optional[Callable[[str, str], None]] = None):
        self.pipeline = pipeline
        self.watch = watch
        self.status_cb = status_cb
        self.notify_cb = notify_cb
        self.proc = watch / "_processed"
        self.fail = watch / "_failed"
        self.proc.mkdir(exist_ok=True)
        self.fail.mkdir(exist_ok=True)
        self._lock = threading.Lock()

    def on_created(self, event):
        if event.is_directory:
            return
        self.handle(Path(event.src_path))

    def handle(self, path: Path) -> None:
        if path.name.startswith("."):
            return
        if path.suffix.lower() not in SUPPORTED_EXTS:
            return

        # wait for file to finish writing
        last = -1
        for _ in range(60):
            try:
                sz = path.stat().st_size
            except FileNotFoundError:
                return
            if sz > 0 and sz == last:
                break
            last = sz
            time.sleep(0.25)

        with self._lock:
            self._process_and_move(path)

    def _process_and_move(self, path: Path) -> None:
        # already handled by the event thread or the backlog pass
        if not path.exists():
            return

        try:
            result = self.pipeline.process(path)
            path.replace(self.proc / path.name)
        except Exception as e:
            log(f"Failed {path.name}: {e!r}")
            self.status_cb(f"Error: {e}")
            try:
                path.replace(self.fail / path.name)
            except OSError as move_err:
                log(f"Could not move {path.name} to _failed: {move_err!r}")
            if self.notify_cb:
                reason = (str(e).splitlines() or [type(e).__name__])[0]
                self.notify_cb("Analysis failed", f"{path.name}: {reason}")
            return

        if result is not None and self.notify_cb:
            self.notify_cb("Outline ready", f"{path.name}: {', '.join(result.categories)}")

    def handle_pending(self) -> None:
        """Process notes that were already in the folder before watching started."""
        for path in list_pending_notes(self.watch):
            self.handle(path)
