"""Núcleo cliente de la bitácora: documentos versionados, firmas y fotos.

Typical use::

    http = ApiClient(user_id=profile.id)
    api = BitacoraApi(http)
    workspace = DocumentWorkspace(api, Capabilities.for_user(profile))
    session = (await workspace.open_current(DocumentKind.ACTA, acta_id)).value
"""
from bitacora.client.api import BitacoraApi
from bitacora.client.capabilities import Capabilities
from bitacora.client.commitments import CommitmentTracker, DueState, due_state
from bitacora.client.errors import (
    AlreadySignedError, ApiError, ClientError, InvalidInputError, NetworkError,
    NotAuthorizedError, OperationInProgressError, StaleReferenceError, WrongSecretError,
)
from bitacora.client.http import ApiClient
from bitacora.client.models import CommitmentStatus, Document, DocumentKind
from bitacora.client.notices import Notice, NoticeBoard, NoticeLevel
from bitacora.client.reorder import ReorderableCollection
from bitacora.client.results import OperationResult
from bitacora.client.session import DocumentSession, DocumentWorkspace
from bitacora.client.signature_store import PersonalSignatureStore
from bitacora.client.signing import ConsentPayload, SignatureConsentEngine, SignerState
from bitacora.client.uploads import FileSelection, SelectedFile
from bitacora.client.versions import VersionChain, derives_from, next_version_hint

__all__ = [
    'ApiClient', 'BitacoraApi', 'Capabilities', 'CommitmentTracker', 'DueState', 'due_state',
    'ClientError', 'AlreadySignedError', 'ApiError', 'InvalidInputError', 'NetworkError',
    'NotAuthorizedError', 'OperationInProgressError', 'StaleReferenceError', 'WrongSecretError',
    'CommitmentStatus', 'Document', 'DocumentKind', 'Notice', 'NoticeBoard', 'NoticeLevel',
    'ReorderableCollection', 'OperationResult', 'DocumentSession', 'DocumentWorkspace',
    'PersonalSignatureStore', 'ConsentPayload', 'SignatureConsentEngine', 'SignerState',
    'FileSelection', 'SelectedFile', 'VersionChain', 'derives_from', 'next_version_hint',
]
