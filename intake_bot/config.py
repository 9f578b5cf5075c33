import os
from dataclasses import dataclass

DEFAULT_GRANT_URL = "http://127.0.0.1:3001/internal/base-member/approve"
DEFAULT_NOTIFY_URL = "http://127.0.0.1:3001/internal/base-member/notify"


@dataclass(frozen=True)
class Settings:
    token: str = ""
    data_dir: str = "data"
    # Fallback target guild for forms and applications without one
    guild_id: str = ""
    staff_code: str = "changeme"
    grant_url: str = DEFAULT_GRANT_URL
    notify_url: str = DEFAULT_NOTIFY_URL
    authority_secret: str = ""
    base_member_role_id: str = ""
    vip_role_id: str = ""
    authority_timeout: float = 10.0
    review_channel: str = "applications-review"


def _env(name: str, default: str = "") -> str:
    return os.getenv(name, default).strip()


def _env_float(name: str, default: float) -> float:
    try:
        value = float(_env(name) or default)
    except ValueError:
        return default
    return value if value > 0 else default


def load_settings() -> Settings:
    return Settings(
        token=_env("DISCORD_BOT_TOKEN"),
        data_dir=_env("BOT_DATA_DIR") or "data",
        guild_id=_env("GUILD_ID"),
        staff_code=_env("STAFF_CODE") or "changeme",
        grant_url=_env("BOT_APPROVE_URL") or DEFAULT_GRANT_URL,
        notify_url=_env("BOT_NOTIFY_URL") or DEFAULT_NOTIFY_URL,
        authority_secret=_env("BOT_INTERNAL_API_SECRET"),
        base_member_role_id=_env("BASE_MEMBER_ROLE_ID"),
        vip_role_id=_env("VIP_ROLE_ID"),
        authority_timeout=_env_float("AUTHORITY_TIMEOUT", 10.0),
        review_channel=_env("REVIEW_CHANNEL") or "applications-review",
    )
