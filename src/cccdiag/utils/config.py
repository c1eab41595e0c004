import copy
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

# Name of the per-folder settings file (resource scope)
FOLDER_CONFIG_NAME = ".cccdiag.json"
SECTION = "cccdiag"

DEFAULT_CONFIG: Dict[str, Any] = {
    "maxNumberOfProblems": 100,
    "compileCommand": "gcc",
    "compileOptions": ["-fsyntax-only", "-Wall", "-fdiagnostics-parseable-fixits"],
    "includeOptionPrefix": "-I",
    "includePath": {
        "absolute": [],
        "relative": [],
    },
    "diagDelimiter": "^.+:[0-9]+:[0-9]+:",
    "parse": {
        "encoding": "utf-8",
        "diagInfoPattern": r"^(.+):([0-9]+):([0-9]+):\s*(.+):.*",
        "index": {
            "file_name": 1,
            "line_pos": 2,
            "char_pos": 3,
            "severity": 4,
        },
        "severityIdentifier": {
            "error": "error",
            "warning": "warning",
            "information": "info",
            "hint": "hint",
        },
    },
}


def expand_dotted(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Turn {"parse.index.line_pos": 2} into {"parse": {"index": {"line_pos": 2}}}."""
    result: Dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            value = expand_dotted(value)
        parts = key.split(".")
        node = result
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        if isinstance(value, dict) and isinstance(node.get(parts[-1]), dict):
            node[parts[-1]] = deep_merge(node[parts[-1]], value)
        else:
            node[parts[-1]] = value
    return result


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _unwrap(data: Any) -> Dict[str, Any]:
    """Accept either a bare settings object or one nested under "cccdiag"."""
    if not isinstance(data, dict):
        raise ValueError("top-level JSON value must be an object")
    data = expand_dotted(data)
    section = data.get(SECTION)
    if isinstance(section, dict) and len(data) == 1:
        return section
    return data


def _lookup(data: Mapping[str, Any], dotted: str) -> Any:
    node: Any = data
    for part in dotted.split("."):
        if not isinstance(node, Mapping) or part not in node:
            raise ConfigurationError(f"missing setting '{SECTION}.{dotted}'")
        node = node[part]
    return node


def _expect_str(data: Mapping[str, Any], key: str) -> str:
    value = _lookup(data, key)
    if not isinstance(value, str):
        raise ConfigurationError(f"'{SECTION}.{key}' must be a string, got {value!r}")
    return value


def _expect_int(data: Mapping[str, Any], key: str) -> int:
    value = _lookup(data, key)
    # bool is an int subclass, but true/false is never a valid index
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"'{SECTION}.{key}' must be an integer, got {value!r}")
    return value


def _expect_str_list(data: Mapping[str, Any], key: str) -> Tuple[str, ...]:
    value = _lookup(data, key)
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigurationError(f"'{SECTION}.{key}' must be a list of strings, got {value!r}")
    return tuple(value)


@dataclass(frozen=True)
class SeverityIdentifiers:
    error: str = "error"
    warning: str = "warning"
    information: str = "info"
    hint: str = "hint"


@dataclass(frozen=True)
class CaptureIndices:
    """1-based capture-group positions inside the record pattern."""
    file_name: int = 1
    line_pos: int = 2
    char_pos: int = 3
    severity: int = 4

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return (self.file_name, self.line_pos, self.char_pos, self.severity)


@dataclass(frozen=True)
class Settings:
    """
    Immutable settings snapshot used for one validation pass.
    Hashable, so compiled patterns can be cached per snapshot.
    """
    compile_command: str = "gcc"
    compile_options: Tuple[str, ...] = ("-fsyntax-only", "-Wall", "-fdiagnostics-parseable-fixits")
    include_option_prefix: str = "-I"
    include_paths_absolute: Tuple[str, ...] = ()
    include_paths_relative: Tuple[str, ...] = ()
    diag_delimiter: str = "^.+:[0-9]+:[0-9]+:"
    encoding: str = "utf-8"
    diag_info_pattern: str = r"^(.+):([0-9]+):([0-9]+):\s*(.+):.*"
    index: CaptureIndices = CaptureIndices()
    severity_identifier: SeverityIdentifiers = SeverityIdentifiers()
    max_number_of_problems: int = 100

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        """Build settings from a (nested or dotted) mapping merged over the defaults."""
        merged = deep_merge(DEFAULT_CONFIG, expand_dotted(data))
        return cls(
            compile_command=_expect_str(merged, "compileCommand"),
            compile_options=_expect_str_list(merged, "compileOptions"),
            include_option_prefix=_expect_str(merged, "includeOptionPrefix"),
            include_paths_absolute=_expect_str_list(merged, "includePath.absolute"),
            include_paths_relative=_expect_str_list(merged, "includePath.relative"),
            diag_delimiter=_expect_str(merged, "diagDelimiter"),
            encoding=_expect_str(merged, "parse.encoding"),
            diag_info_pattern=_expect_str(merged, "parse.diagInfoPattern"),
            index=CaptureIndices(
                file_name=_expect_int(merged, "parse.index.file_name"),
                line_pos=_expect_int(merged, "parse.index.line_pos"),
                char_pos=_expect_int(merged, "parse.index.char_pos"),
                severity=_expect_int(merged, "parse.index.severity"),
            ),
            severity_identifier=SeverityIdentifiers(
                error=_expect_str(merged, "parse.severityIdentifier.error"),
                warning=_expect_str(merged, "parse.severityIdentifier.warning"),
                information=_expect_str(merged, "parse.severityIdentifier.information"),
                hint=_expect_str(merged, "parse.severityIdentifier.hint"),
            ),
            max_number_of_problems=_expect_int(merged, "maxNumberOfProblems"),
        )


class ConfigManager:
    """
    Loads the user-level config (~/.cccdiag/config.json) and layers
    per-folder .cccdiag.json files on top of it for each document.
    """

    def __init__(self, workspace_root: Optional[str] = None, config_dir: Optional[Path] = None):
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".cccdiag"
        self.config_file = self.config_dir / "config.json"
        self.workspace_root = Path(workspace_root).resolve() if workspace_root else None
        self.config = self.load_config()

    def load_config(self) -> Dict[str, Any]:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        if not self.config_file.exists():
            return copy.deepcopy(DEFAULT_CONFIG)
        try:
            with open(self.config_file, "r") as f:
                user_config = _unwrap(json.load(f))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable config %s: %s", self.config_file, e)
            return copy.deepcopy(DEFAULT_CONFIG)
        return deep_merge(DEFAULT_CONFIG, user_config)

    def get(self, key: str, default: Any = None) -> Any:
        try:
            return _lookup(self.config, key)
        except ConfigurationError:
            return default

    def set(self, key: str, value: Any) -> None:
        self.config = deep_merge(self.config, expand_dotted({key: value}))
        self.save_config()

    def save_config(self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        with open(self.config_file, "w") as f:
            json.dump(self.config, f, indent=2)

    def reload(self) -> None:
        self.config = self.load_config()

    def folder_config_files(self, document_path: str) -> List[Path]:
        """Folder config files that apply to a document, outermost first."""
        directory = Path(document_path).resolve().parent
        root = self.workspace_root
        if root is not None and (directory == root or root in directory.parents):
            chain = [directory, *directory.parents]
            chain = chain[: chain.index(root) + 1]
        else:
            chain = [directory]
        return [d / FOLDER_CONFIG_NAME for d in reversed(chain) if (d / FOLDER_CONFIG_NAME).is_file()]

    def settings_for(self, document_path: str) -> Settings:
        """Resolve the resource-scoped settings for one document."""
        merged = self.config
        for path in self.folder_config_files(document_path):
            try:
                with open(path, "r") as f:
                    overrides = _unwrap(json.load(f))
            except (OSError, ValueError) as e:
                raise ConfigurationError(f"cannot read {path}: {e}") from e
            merged = deep_merge(merged, overrides)
        return Settings.from_mapping(merged)

    def watched_files(self, directories: Iterable[str]) -> List[Path]:
        """Every config file whose modification should invalidate cached settings."""
        files = [self.config_file]
        for directory in directories:
            files.append(Path(directory).resolve() / FOLDER_CONFIG_NAME)
        if self.workspace_root is not None:
            files.append(self.workspace_root / FOLDER_CONFIG_NAME)
        return files
