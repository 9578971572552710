import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    """Upstream origin and outbound request settings, read once at startup."""

    host: str
    username: str
    password: str
    user_agent: str = "VLC/3.0.20 LibVLC/3.0.20"
    referer: str = ""
    timeout: float = 15.0
    chunk_size: int = 65536

    @classmethod
    def from_env(cls, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            host=env.get("UPSTREAM_HOST", "http://localhost:8080").rstrip("/"),
            username=env.get("UPSTREAM_USER", "user"),
            password=env.get("UPSTREAM_PASS", "pass"),
            user_agent=env.get("USER_AGENT", "VLC/3.0.20 LibVLC/3.0.20"),
            referer=env.get("REFERER", ""),
            timeout=float(env.get("UPSTREAM_TIMEOUT", "15")),
            chunk_size=int(env.get("CHUNK_SIZE", "65536")),
        )

    def live_base(self) -> str:
        return f"{self.host}/live/{self.username}/{self.password}"
