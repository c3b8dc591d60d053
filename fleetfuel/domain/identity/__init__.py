"""Identities, roles and authentication."""
from .entities import Credentials, Identity, Role
from .permissions import require_active, require_role
from .provider import DatabaseIdentityProvider, IdentityProvider
from .repository import IdentityRepository, IdentityRepositoryProtocol
from .service import IdentityService
