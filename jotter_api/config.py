from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    roaming_dir: Path
    autosave_interval_s: float
    save_under_load_lock: bool
    signed_in: bool
    todo_api_base_url: str
    todo_api_token: str | None
    todo_list_name: str
    api_auth_mode: str
    api_auth_token: str | None
    api_debug_log: bool


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


def load_settings() -> Settings:
    data_dir = Path(os.environ.get("JOTTER_DATA_DIR", "./data")).resolve()
    roaming_raw = os.environ.get("JOTTER_ROAMING_DIR")
    roaming_dir = Path(roaming_raw).resolve() if roaming_raw else data_dir / "roaming"
    autosave_interval_s = float(os.environ.get("JOTTER_AUTOSAVE_INTERVAL_S", "10"))
    if autosave_interval_s <= 0:
        raise ValueError("JOTTER_AUTOSAVE_INTERVAL_S must be positive")
    return Settings(
        data_dir=data_dir,
        roaming_dir=roaming_dir,
        autosave_interval_s=autosave_interval_s,
        save_under_load_lock=_flag("JOTTER_SAVE_UNDER_LOAD_LOCK"),
        signed_in=_flag("JOTTER_SIGNED_IN"),
        todo_api_base_url=os.environ.get("TODO_API_BASE_URL", "https://graph.microsoft.com/v1.0"),
        todo_api_token=os.environ.get("TODO_API_TOKEN") or None,
        todo_list_name=os.environ.get("TODO_LIST_NAME", "Jotter"),
        api_auth_mode=os.environ.get("API_AUTH_MODE", "none").lower(),
        api_auth_token=os.environ.get("API_AUTH_TOKEN") or None,
        api_debug_log=_flag("API_DEBUG_LOG"),
    )
