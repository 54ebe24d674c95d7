"""Word sources for building decks."""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)

WordSource = Union[List[str], Dict[str, Optional[List[float]]]]


def _get_inputs_path() -> Path:
    """Get path to tajniacy/inputs directory."""
    return Path(__file__).parent / "inputs"


def _normalize(data, source: Path) -> WordSource:
    if isinstance(data, list):
        if not all(isinstance(w, str) for w in data):
            raise ValueError(f"Vocabulary {source} contains non-string words")
        return list(data)

    if isinstance(data, dict):
        vectors: Dict[str, Optional[List[float]]] = {}
        for word, vector in data.items():
            if vector is not None and not isinstance(vector, list):
                raise ValueError(f"Vocabulary {source}: vector for '{word}' must be a list or null")
            vectors[str(word)] = [float(x) for x in vector] if vector is not None else None
        return vectors

    raise ValueError(f"Vocabulary {source} must hold a list of words or a word -> vector mapping")


def load_vocabulary(path: Optional[Union[str, Path]] = None) -> WordSource:
    """Load words from YAML (``words:`` key) or a JSON word -> vector object.

    Returns either a list of words or a mapping of word -> vector, both of
    which ``Deck.from_vocabulary`` accepts.
    """
    path = Path(path) if path is not None else _get_inputs_path() / "words.yaml"

    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix.lower() == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f) or {}
                if not isinstance(data, dict) or "words" not in data:
                    raise ValueError(f"Vocabulary {path} has no 'words' key")
                data = data["words"]
    except FileNotFoundError:
        logger.error(f"Vocabulary file not found: {path}")
        raise
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Vocabulary {path} is not valid: {e}") from e

    words = _normalize(data, path)
    logger.debug(f"Loaded {len(words)} words from {path}")
    return words
