from .user import User
from .document import Document, DocumentKind, ReportStatus, ActaStatus
from .signature import Signatory, Signature
from .commitment import Commitment, CommitmentStatus

__all__ = [
    'User', 'Document', 'DocumentKind', 'ReportStatus', 'ActaStatus',
    'Signatory', 'Signature', 'Commitment', 'CommitmentStatus',
]
