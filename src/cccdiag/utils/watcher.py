from pathlib import Path
from typing import Callable, Iterable, Set
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler


class SaveHandler(FileSystemEventHandler):
    """
    Routes modifications of watched documents to on_save and of
    configuration files to on_config. Runs on the observer thread.
    """
    def __init__(self, documents: Set[str], config_files: Set[str],
                 on_save: Callable[[str], None], on_config: Callable[[str], None]):
        self.documents = documents
        self.config_files = config_files
        self.on_save = on_save
        self.on_config = on_config

    def _dispatch_path(self, path: str):
        resolved = str(Path(path).resolve())
        if resolved in self.documents:
            self.on_save(resolved)
        elif resolved in self.config_files:
            self.on_config(resolved)

    def on_modified(self, event):
        if event.is_directory:
            return
        self._dispatch_path(event.src_path)

    def on_created(self, event):
        # Editors that save via rename show up as created files
        if event.is_directory:
            return
        self._dispatch_path(event.src_path)

    def on_moved(self, event):
        if event.is_directory:
            return
        self._dispatch_path(event.dest_path)


class FileWatcher:
    """
    Manages the watchdog observer thread. Each directory holding a watched
    file is scheduled once.
    """
    def __init__(self):
        self.observer = Observer()
        self.documents: Set[str] = set()
        self.config_files: Set[str] = set()
        self._directories: Set[str] = set()
        self.handler = None

    def start_watching(self, file_paths: Iterable[str], config_files: Iterable[Path],
                       on_save: Callable[[str], None], on_config: Callable[[str], None]):
        for file_path in file_paths:
            path = Path(file_path).resolve()
            if not path.exists():
                raise FileNotFoundError(f"Cannot watch non-existent file: {file_path}")
            self.documents.add(str(path))
        self.config_files.update(str(Path(p).resolve()) for p in config_files)

        self.handler = SaveHandler(self.documents, self.config_files, on_save, on_config)
        for watched in sorted(self.documents | self.config_files):
            directory = Path(watched).parent
            if directory.is_dir() and str(directory) not in self._directories:
                self.observer.schedule(self.handler, str(directory), recursive=False)
                self._directories.add(str(directory))
        self.observer.start()

    def stop_watching(self):
        if self.observer.is_alive():
            self.observer.stop()
            self.observer.join()
