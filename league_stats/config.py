"""Settings for the league statistics service (pydantic-settings).

Every value can be overridden by an environment variable of the same name
(case-insensitive) or a `.env` file. Only the dependency wiring in
league_stats.dependencies reads these; services take plain arguments.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    log_level: str = "INFO"

    # Comma-separated list of allowed browser origins
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Upstream FPL API and client throttling
    fpl_api_base_url: str = "https://fantasy.premierleague.com/api"
    requests_per_second: float = 10.0
    max_concurrent_requests: int = 10
    request_timeout: float = 30.0  # Seconds, per request

    # Assembled statistics are cached per league
    cache_ttl_statistics: int = 300
    cache_max_leagues: int = 10
    cache_ttl_player_names: int = 300

    # Only the top of a league gets per-member history
    detail_member_limit: int = 50
    detail_batch_size: int = 10
    head_to_head_member_limit: int = 20  # 20 members -> 190 pairs

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()
