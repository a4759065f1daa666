import json
from pathlib import Path
from typing import Any, Dict, List


def load_seed_terms(path: str | Path) -> List[Dict[str, Any]]:
    """
    Load the bundled JSON snapshot of glossary terms.

    Parameters
    ----------
    path : str or Path
        Location of a JSON file holding an array of term objects.

    Returns
    -------
    list of dict
        The term records, or an empty list if the file does not exist.

    Raises
    ------
    ValueError
        If the file does not contain a JSON array.
    """
    path = Path(path)
    if not path.is_file():
        return []
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"Seed file {path} must contain a JSON array")
    return data


def is_blank(value: Any) -> bool:
    """True for None and for strings that are empty once stripped."""
    return value is None or (isinstance(value, str) and not value.strip())
