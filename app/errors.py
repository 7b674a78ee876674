# DOMESTICA/backend/app/errors.py

"""Erreurs métier du moteur de planification et du grand livre.

Chaque erreur est limitée à l'opération demandée: aucune n'est fatale pour le process.
Les routes les convertissent en réponses HTTP via le handler enregistré dans main.py.
"""

from typing import Any, Dict, List, Optional


class DomainError(Exception):
    """Base de toutes les erreurs métier"""

    status_code = 400
    kind = "domain_error"

    def __init__(self, message: str, **extra: Any):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error": self.kind, **self.extra}


class ValidationError(DomainError):
    """Entrée invalide, rejetée avant toute écriture"""

    status_code = 422
    kind = "validation_error"


class NotFound(DomainError):
    status_code = 404
    kind = "not_found"


class Forbidden(DomainError):
    status_code = 403
    kind = "forbidden"


class PreconditionFailed(DomainError):
    """L'entité n'est pas dans l'état requis (ex: visite déjà complétée)"""

    status_code = 409
    kind = "precondition_failed"

    def __init__(self, message: str, current_state: Optional[str] = None, **extra: Any):
        super().__init__(message, current_state=current_state, **extra)
        self.current_state = current_state


class PartialWriteError(DomainError):
    """Création/suppression multi-documents interrompue en cours de route"""

    status_code = 500
    kind = "partial_write"

    def __init__(
        self,
        message: str,
        entity_id: Optional[int] = None,
        written: int = 0,
        expected: int = 0,
        pending: Optional[List[int]] = None,
    ):
        pending = list(pending or [])
        super().__init__(
            message, entity_id=entity_id, written=written, expected=expected, pending=pending
        )
        self.entity_id = entity_id
        self.written = written
        self.expected = expected
        self.pending = pending


class IntegrityWarning(UserWarning):
    """Incohérence signalée mais non bloquante (émise via warnings.warn)"""
