# DOMESTICA/backend/app/utils.py

import math
import warnings
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List

from app.errors import IntegrityWarning


def utc_now() -> datetime:
    """Horodatage UTC naïf (format stocké en base)"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def round_half_up(value: float) -> int:
    """Arrondi à l'entier le plus proche, les demis vers le haut (round() de Python arrondit au pair)"""
    return int(math.floor(value + 0.5))


@contextmanager
def collect_integrity_warnings() -> Iterator[List[str]]:
    """Capture les IntegrityWarning émis dans le bloc pour les renvoyer au client"""
    collected: List[str] = []
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", IntegrityWarning)
        yield collected
    collected.extend(str(w.message) for w in caught if issubclass(w.category, IntegrityWarning))
