from pydantic_settings import BaseSettings
import os

class Settings(BaseSettings):
    train_file: str = os.environ.get("TRAIN_FILE", "train.bin")
    test_file: str = os.environ.get("TEST_FILE", "test.bin")
    k: int = int(os.environ.get("K", "3"))
    num_threads: int = int(os.environ.get("NUM_THREADS", "4"))
    output_file: str = os.environ.get("OUTPUT_FILE", "output.txt")
    stats_file: str = os.environ.get("STATS_FILE", "")  # empty disables the JSON stats dump
    log_level: str = os.environ.get("LOG_LEVEL", "INFO")
    debug: bool = os.environ.get("DEBUG", "false").lower() in ("1", "true", "yes")
    verify: bool = os.environ.get("VERIFY", "false").lower() in ("1", "true", "yes")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
