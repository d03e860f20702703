import logging


def configure_logging(level_name: str = "INFO") -> int:
    """Basic process-wide logging setup shared by the Streamlit app and the API."""
    log_level = getattr(logging, str(level_name).upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    logging.getLogger("tuna_core").setLevel(log_level)
    logging.getLogger(__name__).info("Logging configured, level=%s", level_name)
    return log_level
