from .commitment_service import CommitmentService
from .document_service import DocumentService
from .document_state_service import DocumentStateService
from .errors import DocumentError

__all__ = ['CommitmentService', 'DocumentService', 'DocumentStateService', 'DocumentError']
