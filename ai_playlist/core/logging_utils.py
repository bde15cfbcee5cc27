import logging

# Pipeline logger shared by the generation stages
logger = logging.getLogger("ai_playlist")


def log_section(title: str) -> None:
    """
    Log a header for a whole generation run.
    """
    logger.info("=== %s ===", title)


def log_info(message: str) -> None:
    logger.info("%s", message)


def log_step(message: str) -> None:
    """
    A pipeline stage is starting.
    """
    logger.info("→ %s", message)


def log_success(message: str) -> None:
    logger.info("✅ %s", message)


def log_warning(message: str) -> None:
    """
    Degraded but recoverable situation (a source failed, no audio features...).
    """
    logger.warning("⚠️ %s", message)


def log_error(message: str) -> None:
    logger.error("❌ %s", message)


def log_progress(
    current: int,
    total: int,
    prefix: str = "",
) -> None:
    """
    Log a batch/page counter.

    Example:
      log_progress(3, 12, prefix="  Audio feature batches")
      -> "  Audio feature batches 3/12 (25.0%)"
    """
    if total <= 0:
        total = 1

    percent = max(0.0, min(1.0, current / total)) * 100

    if prefix:
        logger.info("%s %d/%d (%.1f%%)", prefix, current, total, percent)
    else:
        logger.info("%d/%d (%.1f%%)", current, total, percent)
