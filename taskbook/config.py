from __future__ import annotations

import json
import os
import sys
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path

from dotenv import load_dotenv

from taskbook.domain.errors import StorageError, ValidationError
from taskbook.ui.keymap import default_key_mappings


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "taskbook"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"


def load_env() -> None:
    env_name = os.getenv("TASKBOOK_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Styles:
    border_color: str = "240"
    accent_color: str = "205"
    normal_text_color: str = "86"
    selected_text_color: str = "229"
    selected_bg_color: str = "57"
    error_color: str = "9"
    project_color: str = "2"
    context_color: str = "4"


@dataclass(frozen=True)
class Settings:
    database_url: str
    config_path: Path
    keymap: dict[str, str] = field(default_factory=default_key_mappings)
    styles: Styles = field(default_factory=Styles)
    log_level: str = "INFO"
    log_dir: Path = DEFAULT_CONFIG_DIR / "logs"


def expand_path(value: str | Path) -> Path:
    return Path(value).expanduser()


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise StorageError(f"Cannot create directory {path}: {exc}") from exc


def _read_or_create(path: Path, defaults: dict) -> dict:
    if not path.exists():
        _ensure_dir(path.parent)
        try:
            path.write_text(json.dumps(defaults, indent=2), encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc
        return dict(defaults)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise ValidationError(f"{path} is not valid UTF-8: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Invalid JSON in {path}: {exc}") from exc
    except OSError as exc:
        raise StorageError(f"Cannot read {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a JSON object in {path}")
    return data


def load_styles(path: Path) -> Styles:
    data = _read_or_create(path, asdict(Styles()))
    known = {f.name for f in fields(Styles)}
    return Styles(**{key: str(value) for key, value in data.items() if key in known})


def load_settings(config_path: str | Path | None = None) -> Settings:
    load_env()

    if config_path is None:
        config_path = os.getenv("TASKBOOK_CONFIG", "").strip() or DEFAULT_CONFIG_PATH
    config_path = expand_path(config_path)
    config_dir = config_path.parent

    defaults = {
        "database": str(config_dir / "todo.db"),
        "keymap": default_key_mappings(),
        "styles_file": str(config_dir / "styles.json"),
    }
    data = _read_or_create(config_path, defaults)

    keymap = default_key_mappings()
    keymap.update({str(k): str(v) for k, v in (data.get("keymap") or {}).items() if v})

    database_url = os.getenv("DATABASE_URL", "").strip()
    if not database_url:
        db_path = expand_path(data.get("database") or defaults["database"])
        _ensure_dir(db_path.parent)
        database_url = f"sqlite:///{db_path}"

    log_dir = expand_path(os.getenv("LOG_DIR", "logs"))
    if not log_dir.is_absolute():
        log_dir = config_dir / log_dir

    return Settings(
        database_url=database_url,
        config_path=config_path,
        keymap=keymap,
        styles=load_styles(expand_path(data.get("styles_file") or defaults["styles_file"])),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=log_dir,
    )
