"""Live watcher for the projects tree with a debounced rediscovery signal."""

import logging
import os
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional

from PySide6.QtCore import QObject, Signal, QFileSystemWatcher, QTimer

from claude_session_monitor.errors import WatcherError
from claude_session_monitor.services.discovery import (
    default_projects_root,
    discover_sessions,
    is_transcript,
    parse_session_file,
)
from claude_session_monitor.services.git_resolver import VcsProvider, resolve_git_metadata
from claude_session_monitor.services.session_assembler import session_id_from_path
from claude_session_monitor.types.events import WatchEvent, WatchEventType
from claude_session_monitor.types.sessions import Session

if TYPE_CHECKING:
    from claude_session_monitor.services.config_manager import ConfigManager

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500

SessionsCallback = Callable[[list[Session]], None]
EventCallback = Callable[[WatchEvent], None]


class WatcherState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


class SessionWatcher(QObject):
    """Watches the Claude projects tree and reports transcript changes.

    Each create/modify/delete of a transcript is delivered to the event
    callback (re-parsed for create/modify), then restarts one debounce timer.
    When the timer fires a full discovery runs and the complete session list
    goes to the bulk callback and the sessions_changed signal. The bulk result
    is authoritative; per-event sessions may be superseded by later writes.
    """

    sessions_changed = Signal(list)  # list[Session]

    def __init__(
        self,
        projects_root: str | Path | None = None,
        parent=None,
        *,
        debounce_ms: Optional[int] = None,
        vcs_provider: Optional[VcsProvider] = resolve_git_metadata,
        config: Optional["ConfigManager"] = None,
    ):
        super().__init__(parent)
        if projects_root is None and config is not None:
            projects_root = config.projects_root()
        if debounce_ms is None:
            debounce_ms = config.debounce_ms() if config is not None else DEFAULT_DEBOUNCE_MS

        self._projects_root = Path(projects_root) if projects_root else default_projects_root()
        self._debounce_ms = debounce_ms
        self._vcs_provider = vcs_provider
        self._state = WatcherState.STOPPED
        self._callback: Optional[SessionsCallback] = None
        self._event_callback: Optional[EventCallback] = None

        # Owned for one start/stop lifetime
        self._watcher: Optional[QFileSystemWatcher] = None
        self._debounce_timer: Optional[QTimer] = None
        # directory -> (transcript names, subdirectory names)
        self._snapshots: dict[str, tuple[set[str], set[str]]] = {}
        self._watched_files: set[str] = set()

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is WatcherState.RUNNING

    @property
    def projects_root(self) -> Path:
        return self._projects_root

    @property
    def debounce_ms(self) -> int:
        return self._debounce_ms

    def watched_directories(self) -> set[str]:
        return set(self._watcher.directories()) if self._watcher is not None else set()

    def watched_files(self) -> set[str]:
        return set(self._watcher.files()) if self._watcher is not None else set()

    def set_event_callback(self, callback: Optional[EventCallback]):
        """Register the per-event callback; None disables per-event re-parsing."""
        self._event_callback = callback

    def start(self, callback: Optional[SessionsCallback] = None):
        """Start watching every directory under the projects root.

        Raises WatcherError when the root is missing or cannot be watched.
        """
        if self._state is WatcherState.RUNNING:
            return

        root = str(self._projects_root)
        if not self._projects_root.is_dir():
            raise WatcherError(f"Projects root is not a directory: {root}")

        self._callback = callback
        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._on_file_changed)
        self._watcher.directoryChanged.connect(self._on_directory_changed)

        self._debounce_timer = QTimer(self)
        self._debounce_timer.setSingleShot(True)
        self._debounce_timer.setInterval(self._debounce_ms)
        self._debounce_timer.timeout.connect(self._on_debounce_fired)

        if not self._watcher.addPath(root):
            self._teardown()
            raise WatcherError(f"Failed to watch projects root: {root}")

        self._state = WatcherState.RUNNING
        self._register_tree(root)
        logger.info(
            "Watching %s (%d directories, %d transcripts)",
            root, len(self._watcher.directories()), len(self._watcher.files()),
        )

    def stop(self):
        """Stop watching; no callbacks are delivered afterwards."""
        if self._state is WatcherState.STOPPED:
            return
        self._state = WatcherState.STOPPED
        self._teardown()
        logger.info("Stopped watching %s", self._projects_root)

    def _teardown(self):
        if self._debounce_timer is not None:
            self._debounce_timer.stop()
            self._debounce_timer.timeout.disconnect(self._on_debounce_fired)
            self._debounce_timer.deleteLater()
            self._debounce_timer = None
        if self._watcher is not None:
            if self._watcher.files():
                self._watcher.removePaths(self._watcher.files())
            if self._watcher.directories():
                self._watcher.removePaths(self._watcher.directories())
            self._watcher.fileChanged.disconnect(self._on_file_changed)
            self._watcher.directoryChanged.disconnect(self._on_directory_changed)
            self._watcher.deleteLater()
            self._watcher = None
        self._snapshots.clear()
        self._watched_files.clear()
        self._callback = None

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _register_tree(self, top: str) -> list[str]:
        """Watch top and everything below it; return the transcripts found."""
        transcripts = []
        if self._watcher is None:
            return transcripts
        for dirpath, dirnames, filenames in os.walk(top):
            dirnames.sort()
            if dirpath in self._snapshots:
                continue
            names = {f for f in filenames if is_transcript(f)}
            self._snapshots[dirpath] = (names, set(dirnames))
            # The root was added by start()
            if dirpath != str(self._projects_root) and not self._watcher.addPath(dirpath):
                logger.warning("Failed to watch directory %s", dirpath)
            for name in sorted(names):
                path = os.path.join(dirpath, name)
                self._watch_file(path)
                transcripts.append(path)
        return transcripts

    def _watch_file(self, path: str):
        if self._watcher is None or path in self._watched_files:
            return
        if self._watcher.addPath(path):
            self._watched_files.add(path)
        else:
            logger.debug("Failed to watch transcript %s", path)

    def _rewatch_file(self, path: str):
        """Qt drops the watch when a file is replaced; add it back."""
        if self._watcher is not None and path not in self._watcher.files():
            self._watched_files.discard(path)
            self._watch_file(path)

    # ------------------------------------------------------------------
    # Qt notifications
    # ------------------------------------------------------------------

    def _on_directory_changed(self, path: str):
        """Diff the directory against its snapshot to classify the change."""
        if not self.is_running:
            return

        previous = self._snapshots.get(path)
        if not os.path.isdir(path):
            self._forget_directory(path)
            return
        if previous is None:
            for transcript in self._register_tree(path):
                self._handle_path_event(WatchEventType.CREATED, transcript)
            return

        old_names, old_dirs = previous
        new_names, new_dirs = _scan_directory(path)
        self._snapshots[path] = (new_names, new_dirs)

        for name in sorted(old_dirs - new_dirs):
            self._forget_directory(os.path.join(path, name))
        for name in sorted(new_dirs - old_dirs):
            for transcript in self._register_tree(os.path.join(path, name)):
                self._handle_path_event(WatchEventType.CREATED, transcript)
        for name in sorted(new_names - old_names):
            transcript = os.path.join(path, name)
            self._watch_file(transcript)
            self._handle_path_event(WatchEventType.CREATED, transcript)
        for name in sorted(old_names - new_names):
            transcript = os.path.join(path, name)
            self._watched_files.discard(transcript)
            self._handle_path_event(WatchEventType.DELETED, transcript)

    def _on_file_changed(self, path: str):
        if not self.is_running:
            return

        directory = os.path.dirname(path)
        if os.path.exists(path):
            self._rewatch_file(path)
            self._handle_path_event(WatchEventType.MODIFIED, path)
            return

        self._watched_files.discard(path)
        names, dirs = self._snapshots.get(directory, (set(), set()))
        name = os.path.basename(path)
        if name in names:
            self._snapshots[directory] = (names - {name}, dirs)
            self._handle_path_event(WatchEventType.DELETED, path)

    def _forget_directory(self, path: str):
        """A watched directory vanished: report its transcripts as deleted."""
        prefix = path + os.sep
        for directory in sorted(d for d in self._snapshots if d == path or d.startswith(prefix)):
            names, _ = self._snapshots.pop(directory)
            for name in sorted(names):
                transcript = os.path.join(directory, name)
                self._watched_files.discard(transcript)
                self._handle_path_event(WatchEventType.DELETED, transcript)

    # ------------------------------------------------------------------
    # Event delivery
    # ------------------------------------------------------------------

    def _handle_path_event(self, event_type: WatchEventType, path: str):
        """Deliver one transcript event and restart the debounce timer."""
        if not self.is_running or not is_transcript(path):
            return

        logger.debug("Transcript %s: %s", event_type.value, path)
        if self._event_callback is not None:
            event = WatchEvent(event_type=event_type, session_id=session_id_from_path(path))
            if event_type is not WatchEventType.DELETED:
                try:
                    event.session = parse_session_file(
                        path,
                        projects_root=self._projects_root,
                        vcs_provider=self._vcs_provider,
                    )
                except OSError:
                    logger.debug("Could not re-parse %s", path, exc_info=True)
                except Exception:
                    # vcs_provider is caller-supplied
                    logger.exception("Re-parse failed for %s", path)
            try:
                self._event_callback(event)
            except Exception:
                logger.exception("Watch event callback failed for %s", path)

        # Re-check: the callback may have stopped the watcher
        if self._debounce_timer is not None:
            self._debounce_timer.start()

    def _on_debounce_fired(self):
        if not self.is_running:
            return
        try:
            sessions = discover_sessions(self._projects_root, vcs_provider=self._vcs_provider)
        except Exception:
            # DiscoveryError, or anything raised by the caller-supplied vcs_provider
            logger.exception("Rediscovery failed after change in %s", self._projects_root)
            return

        logger.debug("Rediscovered %d sessions", len(sessions))
        self.sessions_changed.emit(sessions)
        if self._callback is not None:
            try:
                self._callback(sessions)
            except Exception:
                logger.exception("Sessions callback failed")


def _scan_directory(path: str) -> tuple[set[str], set[str]]:
    """Transcript names and subdirectory names currently in path."""
    names: set[str] = set()
    dirs: set[str] = set()
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                if entry.is_dir(follow_symlinks=False):
                    dirs.add(entry.name)
                elif is_transcript(entry.name):
                    names.add(entry.name)
    except OSError:
        logger.debug("Failed to scan %s", path, exc_info=True)
    return names, dirs
