from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_data_dir() -> Path:
    # Sample GeoJSON assets ship next to the backend package.
    return Path(__file__).resolve().parents[1] / "data"


def _default_roads_path() -> str:
    return str(_default_data_dir() / "roads.geojson")


def _default_floods_path() -> str:
    return str(_default_data_dir() / "flood_zones.geojson")


class Settings(BaseSettings):
    """Validated settings (env-driven), keeping config out of code for easy extension."""

    model_config = SettingsConfigDict(
        # Support both "repo root/.env" (docker compose) and "backend/.env" (local dev)
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    roads_geojson_path: str = Field(default_factory=_default_roads_path, alias="ROADS_GEOJSON_PATH")
    floods_geojson_path: str = Field(default_factory=_default_floods_path, alias="FLOODS_GEOJSON_PATH")

    # Edges crossing a flood polygon cost this many times their length.
    # 10x means a detour up to ten times longer is preferred over the flooded road.
    hazard_multiplier: float = Field(default=10.0, ge=1.0, alias="HAZARD_MULTIPLIER")
    max_snap_distance_m: float = Field(default=500.0, gt=0.0, alias="MAX_SNAP_DISTANCE_M")

    out_dir: str = Field(default="out", alias="OUT_DIR")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    cors_allow_origins: str = Field(default="*", alias="CORS_ALLOW_ORIGINS")

    def cors_origins(self) -> list[str]:
        raw = (self.cors_allow_origins or "").strip()
        if not raw:
            return []
        return [part.strip() for part in raw.split(",") if part.strip()]


settings = Settings()
