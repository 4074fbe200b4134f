import os

DEFAULT_DATA_SOURCE = os.getenv(
    "CARDIO_STATS_DATA_SOURCE",
    "https://raw.githubusercontent.com/zuzannaku/cardiovascular_statistics_project/refs/heads/main/cardio_data.csv",
)
DOWNLOAD_TIMEOUT = int(os.getenv("CARDIO_STATS_DOWNLOAD_TIMEOUT", "60"))
