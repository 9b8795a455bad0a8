from .demo import (  # noqa: F401
    archive_and_publish,
    bootstrap_session,
    fetch_feed,
    run_demo,
    seed_sample_data,
)

__all__ = [
    "bootstrap_session",
    "seed_sample_data",
    "archive_and_publish",
    "fetch_feed",
    "run_demo",
]
