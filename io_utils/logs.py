import logging
from pathlib import Path


def setup_logging(output_dir: Path, level: str = "INFO") -> Path:
    """Log to the console and to ``mapping.log`` in ``output_dir``.

    Returns the path of the log file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    log_path = output_dir / "mapping.log"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_path, mode="w", encoding="utf-8"),
        ],
        force=True,
    )
    return log_path
