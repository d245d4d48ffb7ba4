from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Iterable, Sequence, Optional
from app.schemas.assignment import Assignment, AssignmentStatus, Submission, UserRef

class AssignmentRepo(ABC):
    @abstractmethod
    async def create(self, assignment: Assignment) -> str:
        """Inserisce un assignment e ritorna il suo ID."""
        raise NotImplementedError

    @abstractmethod
    async def find_for_teacher(
        self, teacher_id: str, status: Optional[AssignmentStatus] = None
    ) -> Sequence[Assignment]:
        """Ritorna gli assignment di un teacher, dal piu' recente, filtrati per status se indicato."""
        raise NotImplementedError

    @abstractmethod
    async def find_published(self) -> Sequence[Assignment]:
        """Ritorna gli assignment pubblicati, dal piu' recente."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, assignment_id: str) -> Optional[Assignment]:
        """Ritorna un assignment per ID, oppure None se non esiste."""
        raise NotImplementedError

    @abstractmethod
    async def update(self, assignment: Assignment) -> Optional[Assignment]:
        """Salva i campi modificabili (title, description, dueDate, status).
        Non tocca submissions ne' teacherId. Ritorna il documento aggiornato."""
        raise NotImplementedError

    @abstractmethod
    async def delete(self, assignment_id: str) -> bool:
        """Cancella un assignment. Ritorna True se qualcosa è stato cancellato."""
        raise NotImplementedError

    @abstractmethod
    async def add_submission(self, assignment_id: str, submission: Submission) -> bool:
        """Aggiunge la submission in modo atomico, solo se l'assignment è published,
        non scaduto e lo studente non ha già consegnato. Ritorna True se inserita."""
        raise NotImplementedError

    @abstractmethod
    async def find_users(self, user_ids: Iterable[str]) -> Dict[str, UserRef]:
        """Risolve nome ed email degli utenti referenziati."""
        raise NotImplementedError
