from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
import json
from appdirs import user_config_dir

from phototouch.util.errors import SettingsError
from phototouch.util.timeparse import DEFAULT_TIMEZONE

def _config_path() -> Path:
    cfg_dir = Path(user_config_dir(appname="phototouch", appauthor=False))
    cfg_dir.mkdir(parents=True, exist_ok=True)
    return cfg_dir / "settings.json"

@dataclass
class AppSettings:
    """User-persistent defaults; command line flags override them.

    Stored in: ~/.config/phototouch/settings.json (Linux),
    ~/Library/Application Support/phototouch/settings.json (macOS)
    """
    exiftool_path: str = ""
    timezone: str = DEFAULT_TIMEZONE
    max_workers: int = 0  # 0 = one worker per file
    log_path: str = ""
    show_progress: bool = True

    @classmethod
    def load(cls) -> "AppSettings":
        """Read saved settings; any unreadable or ill-typed file yields defaults."""
        try:
            p = _config_path()
            if not p.exists():
                return cls()
            data = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return cls()
        if not isinstance(data, dict):
            return cls()
        defaults = cls()
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        for name, value in values.items():
            expected = type(getattr(defaults, name))
            # bool is an int subclass; keep the two apart.
            if type(value) is not expected:
                return cls()
        if values.get("max_workers", 0) < 0:
            return cls()
        return cls(**values)

    def save(self) -> None:
        try:
            p = _config_path()
            p.write_text(json.dumps(asdict(self), indent=2), encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"can't save settings: {e}") from e
