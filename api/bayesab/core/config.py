from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    PROJECT_NAME: str = "Bayes AB Engine"
    API_V1_PREFIX: str = "/api/v1"

    # Inference defaults
    MONTE_CARLO_SAMPLES: int = 10_000
    MAX_MONTE_CARLO_SAMPLES: int = 1_000_000
    MAX_SEQUENTIAL_STEPS: int = 1_000
    CREDIBLE_LEVEL: float = 0.95
    STOP_THRESHOLD: float = 0.95
    DEFAULT_PRIOR: str = "uniform"
    RANDOM_SEED: int | None = None  # None = non-deterministic

    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
