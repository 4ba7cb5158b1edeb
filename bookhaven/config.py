from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"

    database_url: str = "sqlite:///./bookhaven.db"

    secret_key: str = "change-me"
    algorithm: str = "HS256"

    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""

    # Catalog prices are weekly rates in catalog units; display_rate converts
    # them to the display currency and never touches stored totals.
    currency: str = "INR"
    display_rate: float = 83.0

    default_rental_days: int = 7
    rental_tiers: List[int] = [7, 14, 21, 30]
    return_window_days: int = 30

    cors_origins: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
