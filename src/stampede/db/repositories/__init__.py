from stampede.db.repositories.auth_repository import AuthRepository, hash_api_key
from stampede.db.repositories.load_tests_repository import LoadTestRepository
from stampede.db.repositories.models import TerminalUpdate

__all__ = [
    "AuthRepository",
    "LoadTestRepository",
    "TerminalUpdate",
    "hash_api_key",
]
