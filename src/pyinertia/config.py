"""Configuration loader for pyinertia."""
import importlib.util
import logging
from pathlib import Path
from typing import Any, Dict

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "inertia.config.py"


def load_config(path: Path | str | None = None) -> Dict[str, Any]:
    """
    Load configuration from a python file.

    If path is provided, loads from there.
    Otherwise, looks for inertia.config.py in the current working directory.

    Returns the options understood by ``PageFactory.configure``.
    """
    if path is None:
        path = Path.cwd() / DEFAULT_CONFIG_FILENAME
    else:
        path = Path(path)

    if not path.exists():
        return {}

    try:
        spec = importlib.util.spec_from_file_location("inertia_config", path)
        if spec is None or spec.loader is None:
            return {}

        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
    except Exception as e:
        logger.warning("Failed to load config from %s: %s", path, e)
        return {}

    config = {key: getattr(module, key) for key in dir(module) if key.isupper()}

    # ROOT_VIEW -> root_view
    # VERSION -> version (string or callable resolver)
    # TEMPLATES_DIR -> templates_dir
    mapped_config: Dict[str, Any] = {}
    if "ROOT_VIEW" in config:
        mapped_config["root_view"] = str(config["ROOT_VIEW"])
    if "VERSION" in config:
        mapped_config["version"] = config["VERSION"]
    if "TEMPLATES_DIR" in config:
        mapped_config["templates_dir"] = str(config["TEMPLATES_DIR"])

    return mapped_config
