"""Configuration management using Pydantic Settings."""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment presets."""

    DEV = "dev"
    PROD = "prod"
    TEST = "test"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Environment = Environment.DEV

    # Canvas (rendering surface size the layout targets)
    canvas_width: float = 1200.0
    canvas_height: float = 900.0
    layout_seed: int | None = Field(
        default=None,
        description="Seed for organic placement; None draws a fresh seed per session"
    )

    # Organic placement
    placement_max_attempts: int = 50
    placement_band_every: int = 10  # Widen the sampling band every N failed attempts
    placement_padding: float = 15.0
    importance_pull_cutoff: float = 5.0
    importance_pull_ratio: float = 0.3

    # Collision resolution
    collision_padding: float = 25.0
    collision_max_iterations: int = 20
    collision_push_extra: float = 5.0

    # Clustering
    cluster_threshold: float = Field(
        default=0.3,
        ge=0.0,
        le=1.0,
        description="Minimum edge strength kept when threshold filtering is on"
    )
    cluster_threshold_enabled: bool = True

    # Importance score (product-tuned constants, not invariants)
    recency_window_days: float = Field(
        default=30.0,
        description="Days after which recency weight reaches its floor"
    )
    recency_floor: float = 0.2
    centrality_second_hop_weight: float = 0.3

    # Suggestion defaults when a method omits confidence
    embedding_default_confidence: float = 0.7
    tag_similarity_default_confidence: float = 0.6
    derived_default_confidence: float = 0.6

    # External similarity scoring service (embedding method)
    similarity_service_url: str = "http://localhost:8081"
    similarity_service_timeout: float = 60.0
    similarity_service_api_key: str = ""
    similarity_service_max_concurrent: int = 4
    similarity_service_retries: int = 2

    # Neo4j Configuration (card/relationship store)
    neo4j_uri: str = "bolt://localhost:7687"
    neo4j_user: str = "neo4j"
    neo4j_password: str = "cardnet_password"
    neo4j_database: str = "neo4j"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_debug: bool = False
    api_max_loaded_boards: int = Field(
        default=32, ge=1, description="Boards kept loaded before the least recently used is closed"
    )


def get_dev_settings() -> Settings:
    """Get development environment settings."""
    return Settings(
        environment=Environment.DEV,
        layout_seed=42,
        api_debug=True,
    )


def get_prod_settings() -> Settings:
    """Get production environment settings."""
    return Settings(
        environment=Environment.PROD,
        layout_seed=None,
        api_debug=False,
    )


def get_test_settings() -> Settings:
    """Get test environment settings."""
    return Settings(
        environment=Environment.TEST,
        layout_seed=1234,
        neo4j_database="neo4j_test",
    )


def get_settings(environment: Environment | str) -> Settings:
    """Get the settings preset for an environment."""
    presets = {
        Environment.DEV: get_dev_settings,
        Environment.PROD: get_prod_settings,
        Environment.TEST: get_test_settings,
    }
    return presets[Environment(environment)]()


# Global settings instance
settings = Settings()
